"""Tidy coach app bootstrap."""

from __future__ import annotations

from typing import Optional

from agents.encouragement_agent import EncouragementAgent
from agents.space_coach_agent import SpaceCoachAgent
from agents.tidy_comment_agent import TidyCommentAgent
from logic.prompts import ModePicker
from memory.session_store import CoachSessionStore, build_session_store
from memory.user_profile import UserProfileStore
from tidy_app.config import CoachConfig
from tidy_app.logging_config import configure_logging, get_logger
from tools.blob_store import BlobStore, build_blob_store
from tools.image_edit import ImageEditProvider, build_image_edit_provider
from tools.item_store import ItemStore, SQLiteItemStore
from tools.text_generation import GenerationClient, TextGenerationProvider, build_text_provider

LOGGER = get_logger(__name__)


class TidyCoachApp:
    """Wires together stores, providers and the coach agents.

    Every collaborator can be injected so tests and local runs stay offline;
    anything not injected is built from ``config``.
    """

    def __init__(
        self,
        config: CoachConfig | None = None,
        *,
        text_provider: Optional[TextGenerationProvider] = None,
        image_provider: Optional[ImageEditProvider] = None,
        item_store: Optional[ItemStore] = None,
        profile_store: Optional[UserProfileStore] = None,
        session_store: Optional[CoachSessionStore] = None,
        blob_store: Optional[BlobStore] = None,
        mode_picker: Optional[ModePicker] = None,
    ) -> None:
        self.config = config or CoachConfig.from_env()
        configure_logging()

        self.text_provider = text_provider or build_text_provider(self.config)
        self.image_provider = image_provider or build_image_edit_provider(self.config)
        self.item_store = item_store or SQLiteItemStore(self.config.item_db_path)
        self.profile_store = profile_store or UserProfileStore(self.config.profile_dir)
        self.session_store = session_store or build_session_store(
            self.config.session_store_backend, self.config.session_store_path
        )
        self.blob_store = blob_store or build_blob_store(self.config)

        self.comment_client = GenerationClient(
            self.text_provider,
            max_tokens_cap=self.config.max_tokens_cap,
            timeout_seconds=self.config.request_timeout_seconds,
        )
        self.analysis_client = GenerationClient(
            self.text_provider,
            max_tokens_cap=self.config.analysis_max_tokens,
            timeout_seconds=self.config.analysis_timeout_seconds,
        )

        self.tidy_comment = TidyCommentAgent(
            config=self.config,
            item_store=self.item_store,
            profile_store=self.profile_store,
            generation_client=self.comment_client,
            mode_picker=mode_picker,
        )
        self.encouragement = EncouragementAgent(config=self.config, generation_client=self.comment_client)
        self.space_coach = SpaceCoachAgent(
            config=self.config,
            analysis_client=self.analysis_client,
            blob_store=self.blob_store,
            session_store=self.session_store,
            image_provider=self.image_provider,
        )
        LOGGER.info(
            "Tidy coach app ready",
            extra={
                "text_provider": self.text_provider.name,
                "after_images_enabled": self.image_provider is not None,
            },
        )


__all__ = ["TidyCoachApp"]
