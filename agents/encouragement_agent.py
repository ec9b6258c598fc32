"""Encouragement agent answering direct requests from the web client."""

from __future__ import annotations

import logging
from typing import Any, Dict

from logic.prompts import compose_encouragement_prompt
from logic.validation import EncouragementRequest, parse_payload
from tidy_app.config import CoachConfig
from tidy_app.logging_config import get_logger, log_event, operation_context
from tools.text_generation import GenerationClient

LOGGER = get_logger(__name__)

ENCOURAGEMENT_MAX_TOKENS = 150


class EncouragementAgent:
    """Writes a one-sentence encouragement for a just-logged item."""

    def __init__(self, config: CoachConfig, generation_client: GenerationClient) -> None:
        self.config = config
        self.generation_client = generation_client

    def encourage(self, payload: Dict[str, Any] | EncouragementRequest) -> Dict[str, Any]:
        with operation_context("agent:encouragement.encourage") as correlation_id:
            request = parse_payload(EncouragementRequest, payload)
            request.require("item_name", "category")

            prompt = compose_encouragement_prompt(request)
            message = self.generation_client.generate_from_prompt(
                prompt,
                max_tokens=ENCOURAGEMENT_MAX_TOKENS,
                timeout_seconds=self.config.request_timeout_seconds,
            )
            log_event(
                LOGGER,
                level=logging.INFO,
                event="agent_call_completed",
                agent="encouragement",
                method="encourage",
                category=request.category,
                streak=request.streak,
                correlation_id=correlation_id,
            )
            return {"message": message}


__all__ = ["ENCOURAGEMENT_MAX_TOKENS", "EncouragementAgent"]
