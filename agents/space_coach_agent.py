"""Space coach agent: photo analysis, after visualization and session record."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from logic.analysis_parsing import recover_analysis
from logic.space_prompts import (
    EDIT_PROMPT_VERSION,
    SCENE_PROMPT_VERSION,
    build_edit_instruction,
    build_scene_instruction,
)
from logic.validation import AnalyzeSpaceRequest, parse_payload
from memory.session_store import CoachSessionStore
from models.analysis import AnalysisResult, CoachSession
from models.errors import CoachError, PersistenceError
from tidy_app.config import CoachConfig
from tidy_app.logging_config import get_logger, log_event, operation_context
from tools.blob_store import BlobStore
from tools.image_edit import ImageEditProvider
from tools.media import DecodedImage, decode_image_payload
from tools.observability import instrument_call
from tools.text_generation import GenerationClient, ImageAttachment

LOGGER = get_logger(__name__)

AFTER_IMAGE_MEDIA_TYPE = "image/png"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SpaceCoachAgent:
    """Runs the five-stage space analysis pipeline.

    Only decoding, scene analysis and analysis recovery can fail the request.
    The after image and the persisted session are best effort.
    """

    def __init__(
        self,
        config: CoachConfig,
        analysis_client: GenerationClient,
        blob_store: BlobStore,
        session_store: CoachSessionStore,
        image_provider: Optional[ImageEditProvider] = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config
        self.analysis_client = analysis_client
        self.blob_store = blob_store
        self.session_store = session_store
        self.image_provider = image_provider
        self.clock = clock or _utc_now

    def _analyze_scene(
        self, image: DecodedImage, user_vision: str | None
    ) -> tuple[Dict[str, Any], AnalysisResult]:
        raw_text = self.analysis_client.generate_text(
            build_scene_instruction(user_vision),
            max_tokens=self.config.analysis_max_tokens,
            timeout_seconds=self.config.analysis_timeout_seconds,
            image=ImageAttachment(media_type=image.media_type, data=image.raw_base64),
        )
        return recover_analysis(raw_text)

    def _render_after_image(self, image: DecodedImage, analysis: AnalysisResult) -> Optional[bytes]:
        if self.image_provider is None or not self.image_provider.configured:
            log_event(LOGGER, level=logging.INFO, event="after_image_skipped", reason="not_configured")
            return None

        edit = instrument_call(f"image_edit:{self.image_provider.name}")(self.image_provider.edit)
        try:
            edited = edit(
                image=image.data,
                media_type=image.media_type,
                instruction=build_edit_instruction(analysis),
            )
        except Exception as exc:
            log_event(
                LOGGER,
                level=logging.WARNING if isinstance(exc, CoachError) else logging.ERROR,
                event="after_image_failed",
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return None
        log_event(
            LOGGER,
            level=logging.INFO,
            event="after_image_generated",
            prompt_version=EDIT_PROMPT_VERSION,
            size_bytes=len(edited),
        )
        return edited

    def _save_blob(self, path: str, data: bytes, content_type: str) -> Optional[str]:
        try:
            return self.blob_store.save_public(path, data, content_type)
        except PersistenceError as exc:
            log_event(LOGGER, level=logging.ERROR, event="blob_save_failed", path=path, error=str(exc))
            return None

    def _persist(
        self,
        user_id: str,
        image: DecodedImage,
        after_image: Optional[bytes],
        analysis: Dict[str, Any],
    ) -> Optional[str]:
        timestamp = int(self.clock().timestamp() * 1000)
        prefix = f"coach/{user_id}/{timestamp}"
        before_url = self._save_blob(f"{prefix}_before.{image.extension}", image.data, image.media_type)
        after_url = None
        if after_image is not None:
            after_url = self._save_blob(f"{prefix}_after.png", after_image, AFTER_IMAGE_MEDIA_TYPE)

        session = CoachSession(
            user_id=user_id,
            before_image_url=before_url,
            after_image_url=after_url,
            analysis=analysis,
            created_at=self.clock().isoformat(),
        )
        try:
            self.session_store.create_session(session)
        except PersistenceError as exc:
            log_event(LOGGER, level=logging.ERROR, event="session_save_failed", error=str(exc))
        else:
            log_event(
                LOGGER,
                level=logging.INFO,
                event="session_saved",
                session_id=session.session_id,
                has_after_image=after_url is not None,
            )
        return after_url

    def analyze_space(self, payload: Dict[str, Any] | AnalyzeSpaceRequest) -> Dict[str, Any]:
        """Analyze one photo and return the analysis plus the after image URL."""

        with operation_context("agent:space_coach.analyze_space") as correlation_id:
            request = parse_payload(AnalyzeSpaceRequest, payload)
            request.require("image_base64", "user_id")

            image = decode_image_payload(request.image_base64)
            raw_analysis, analysis = self._analyze_scene(image, request.user_vision)
            log_event(
                LOGGER,
                level=logging.INFO,
                event="scene_analyzed",
                prompt_version=SCENE_PROMPT_VERSION,
                media_type=image.media_type,
                item_count=len(analysis.visible_items),
                removable_count=len(analysis.removable_items),
                correlation_id=correlation_id,
            )

            after_image = self._render_after_image(image, analysis)
            after_url = self._persist(request.user_id, image, after_image, raw_analysis)

            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="space_coach",
                method="analyze_space",
                has_after_image=after_url is not None,
                correlation_id=correlation_id,
            )
            return {"analysis": raw_analysis, "afterImageUrl": after_url}


__all__ = ["SpaceCoachAgent"]
