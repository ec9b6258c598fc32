"""Coach comment agent reacting to newly logged items."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

from logic.history import build_history_context
from logic.prompts import ModePicker, RenderedPrompt, compose_prompt, weighted_mode_picker
from memory.user_profile import UserProfileStore
from models.errors import ConfigurationError, GenerationError, PersistenceError
from models.item_record import GeneratedComment, ItemRecord, item_from_document
from tidy_app.config import CoachConfig
from tidy_app.logging_config import get_logger, log_event, operation_context
from tools.item_store import ItemStore
from tools.text_generation import GenerationClient

LOGGER = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TidyCommentAgent:
    """Generates one short coach comment per logged item.

    The trigger is fire-and-forget: every outcome is reported through the
    returned status and the logs, never by raising.
    """

    def __init__(
        self,
        config: CoachConfig,
        item_store: ItemStore,
        profile_store: UserProfileStore,
        generation_client: GenerationClient,
        mode_picker: ModePicker | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.item_store = item_store
        self.profile_store = profile_store
        self.generation_client = generation_client
        self.mode_picker = mode_picker or weighted_mode_picker(config.short_mode_weight)
        self.clock = clock or _utc_now

    def _skip_reason(self, item: ItemRecord) -> str | None:
        if not item.is_processable:
            return "missing_fields"
        if item.has_automated_comment:
            return "already_commented"
        return None

    def _history_records(self, item: ItemRecord) -> List[ItemRecord]:
        records = self.item_store.list_items_for_user(str(item.user_id))
        if not any(record.item_id == item.item_id for record in records):
            records.append(item)
        return records

    def handle_item_created(self, item_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        """React to a record-creation notification for ``item_id``."""

        with operation_context("agent:tidy_comment.handle_item_created") as correlation_id:
            item = item_from_document(item_id, document)
            response: Dict[str, Any] = {"status": "skipped", "agent": "tidy_comment", "itemId": item.item_id}

            reason = self._skip_reason(item)
            if reason:
                log_event(
                    LOGGER,
                    level=logging.INFO,
                    event="comment_skipped",
                    item_id=item.item_id,
                    reason=reason,
                    correlation_id=correlation_id,
                )
                response["reason"] = reason
                return response

            now = self.clock()
            try:
                records = self._history_records(item)
                profile = self.profile_store.get_profile(str(item.user_id))
            except PersistenceError as exc:
                log_event(
                    LOGGER,
                    level=logging.ERROR,
                    event="comment_context_failed",
                    item_id=item.item_id,
                    error=str(exc),
                    correlation_id=correlation_id,
                )
                response["status"] = "failed"
                return response

            history = build_history_context(records, profile=profile, now=now)
            mode = self.mode_picker()
            prompt = compose_prompt(item, history, mode)
            response["mode"] = mode.value

            try:
                text = self.generation_client.generate_from_prompt(
                    prompt, timeout_seconds=self.config.trigger_timeout_seconds
                )
            except (GenerationError, ConfigurationError) as exc:
                log_event(
                    LOGGER,
                    level=logging.ERROR,
                    event="comment_generation_failed",
                    item_id=item.item_id,
                    mode=mode.value,
                    error_type=type(exc).__name__,
                    error=str(exc),
                    correlation_id=correlation_id,
                )
                response["status"] = "failed"
                return response

            comment = GeneratedComment(text=text, created_at=now.isoformat())
            try:
                appended = self.item_store.append_comment(
                    item.item_id, comment.to_document(), only_if_no_automated=True
                )
            except PersistenceError as exc:
                log_event(
                    LOGGER,
                    level=logging.ERROR,
                    event="comment_write_failed",
                    item_id=item.item_id,
                    error=str(exc),
                    correlation_id=correlation_id,
                )
                response["status"] = "generated_not_saved"
                return response

            if not appended:
                log_event(
                    LOGGER,
                    level=logging.INFO,
                    event="comment_skipped",
                    item_id=item.item_id,
                    reason="already_commented",
                    correlation_id=correlation_id,
                )
                response["reason"] = "already_commented"
                return response

            log_event(
                LOGGER,
                level=logging.INFO,
                event="comment_added",
                item_id=item.item_id,
                mode=mode.value,
                prompt_version=prompt.version,
                history_size=history.total_items,
                correlation_id=correlation_id,
            )
            response["status"] = "ok"
            response["comment"] = comment.to_document()
            return response

    def generate_from_prompt(self, prompt: str) -> str:
        """Generate a comment for a prompt rendered by the client.

        Used when the creation trigger does not fire; errors propagate to the
        HTTP layer.
        """

        with operation_context("agent:tidy_comment.generate_from_prompt") as correlation_id:
            text = self.generation_client.generate_from_prompt(
                RenderedPrompt(user=prompt, version="client"),
                timeout_seconds=self.config.request_timeout_seconds,
            )
            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="tidy_comment",
                method="generate_from_prompt",
                correlation_id=correlation_id,
            )
            return text


__all__ = ["TidyCommentAgent"]
