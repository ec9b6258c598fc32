"""Text generation providers and the bounded, single-attempt generation client."""

from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import google.generativeai as genai
import requests
from google.api_core import exceptions as google_exceptions
from pydantic import BaseModel, ValidationError

from logic.prompts import RenderedPrompt
from models.errors import (
    ConfigurationError,
    GenerationTimeout,
    InvalidRequestError,
    ProviderError,
)
from tidy_app.config import DEFAULT_GEMINI_MODEL, DEFAULT_TEXT_MODEL, CoachConfig
from tools.observability import instrument_call

LOGGER = logging.getLogger(__name__)

ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"


class _ContentBlock(BaseModel):
    type: str
    text: Optional[str] = None


class _MessagesResponse(BaseModel):
    content: List[_ContentBlock] = []


@dataclass(frozen=True)
class ImageAttachment:
    """An inline image sent with the instruction (raw base64, no data-URL prefix)."""

    media_type: str
    data: str


class TextGenerationProvider(ABC):
    """Abstract text generation provider interface."""

    name = "provider"

    @abstractmethod
    def generate(
        self,
        *,
        system: Optional[str],
        user: str,
        max_tokens: int,
        timeout_seconds: float,
        image: Optional[ImageAttachment] = None,
    ) -> str:
        """Return the generated text or raise a :class:`GenerationError`."""


class AnthropicTextProvider(TextGenerationProvider):
    """Anthropic Messages API over plain HTTPS."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str | None,
        model: str = DEFAULT_TEXT_MODEL,
        endpoint: str = ANTHROPIC_MESSAGES_URL,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint

    @staticmethod
    def _content(user: str, image: Optional[ImageAttachment]) -> Any:
        if image is None:
            return user
        return [
            {
                "type": "image",
                "source": {"type": "base64", "media_type": image.media_type, "data": image.data},
            },
            {"type": "text", "text": user},
        ]

    def generate(
        self,
        *,
        system: Optional[str],
        user: str,
        max_tokens: int,
        timeout_seconds: float,
        image: Optional[ImageAttachment] = None,
    ) -> str:
        if not self.api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is not configured")

        payload: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": self._content(user, image)}],
        }
        if system:
            payload["system"] = system
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

        try:
            response = requests.post(self.endpoint, json=payload, headers=headers, timeout=timeout_seconds)
        except requests.Timeout as exc:
            raise GenerationTimeout(timeout_seconds) from exc
        except requests.RequestException as exc:
            raise ProviderError(0, str(exc)) from exc

        if not response.ok:
            raise ProviderError(response.status_code, response.text)

        try:
            parsed = _MessagesResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ProviderError(response.status_code, "unparseable provider payload") from exc

        for block in parsed.content:
            if block.type == "text" and block.text:
                return block.text.strip()
        raise ProviderError(response.status_code, "provider returned no text content")


class GeminiTextProvider(TextGenerationProvider):
    """Google Gemini through the ``google-generativeai`` SDK."""

    name = "gemini"

    def __init__(self, api_key: str | None, model: str = DEFAULT_GEMINI_MODEL) -> None:
        self.api_key = api_key
        self.model = model

    def generate(
        self,
        *,
        system: Optional[str],
        user: str,
        max_tokens: int,
        timeout_seconds: float,
        image: Optional[ImageAttachment] = None,
    ) -> str:
        if not self.api_key:
            raise ConfigurationError("GOOGLE_API_KEY is not configured")

        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(self.model, system_instruction=system)
        contents: List[Any] = [user]
        if image is not None:
            contents.insert(0, {"mime_type": image.media_type, "data": base64.b64decode(image.data)})

        try:
            response = model.generate_content(
                contents,
                generation_config=genai.GenerationConfig(max_output_tokens=max_tokens),
                request_options={"timeout": timeout_seconds},
            )
        except google_exceptions.DeadlineExceeded as exc:
            raise GenerationTimeout(timeout_seconds) from exc
        except google_exceptions.GoogleAPICallError as exc:
            raise ProviderError(int(exc.code or 500), str(exc.message)) from exc

        try:
            text = response.text
        except ValueError as exc:
            raise ProviderError(200, "response carried no text (blocked or empty)") from exc
        if not text or not text.strip():
            raise ProviderError(200, "provider returned no text content")
        return text.strip()


class MockTextProvider(TextGenerationProvider):
    """Offline deterministic provider for tests and local runs.

    ``responses`` are served in order (the last one repeats); an exception
    instance in the sequence is raised instead of returned.
    """

    name = "mock"

    def __init__(self, responses: Sequence[Any] | str = "Lovely progress 🌿") -> None:
        self.responses = [responses] if isinstance(responses, str) else list(responses)
        self.calls: List[Dict[str, Any]] = []

    def generate(
        self,
        *,
        system: Optional[str],
        user: str,
        max_tokens: int,
        timeout_seconds: float,
        image: Optional[ImageAttachment] = None,
    ) -> str:
        self.calls.append(
            {
                "system": system,
                "user": user,
                "max_tokens": max_tokens,
                "timeout_seconds": timeout_seconds,
                "image": image,
            }
        )
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return str(response).strip()


class GenerationClient:
    """Single-attempt text generation with a token cap and client-side deadline.

    The cap applies regardless of what a caller asks for, so a template change
    can never raise the cost of a call.
    """

    def __init__(
        self,
        provider: TextGenerationProvider,
        max_tokens_cap: int = 200,
        timeout_seconds: float = 15.0,
    ) -> None:
        self.provider = provider
        self.max_tokens_cap = max_tokens_cap
        self.timeout_seconds = timeout_seconds
        self._generate = instrument_call(f"text_generation:{provider.name}")(provider.generate)

    def generate_text(
        self,
        user_instruction: str,
        system_instruction: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        image: Optional[ImageAttachment] = None,
    ) -> str:
        if not user_instruction or not user_instruction.strip():
            raise InvalidRequestError("user instruction is empty")

        budget = min(max_tokens or self.max_tokens_cap, self.max_tokens_cap)
        return self._generate(
            system=system_instruction,
            user=user_instruction,
            max_tokens=budget,
            timeout_seconds=timeout_seconds or self.timeout_seconds,
            image=image,
        )

    def generate_from_prompt(
        self,
        prompt: RenderedPrompt,
        max_tokens: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
    ) -> str:
        return self.generate_text(
            prompt.user,
            system_instruction=prompt.system,
            max_tokens=max_tokens,
            timeout_seconds=timeout_seconds,
        )


def build_text_provider(config: CoachConfig) -> TextGenerationProvider:
    """Select the configured text provider."""

    if config.text_provider == "gemini":
        return GeminiTextProvider(api_key=config.google_api_key, model=config.text_model)
    if config.text_provider == "mock":
        return MockTextProvider()
    if config.text_provider != "anthropic":
        LOGGER.warning("Unknown text provider, using anthropic", extra={"text_provider": config.text_provider})
    return AnthropicTextProvider(api_key=config.anthropic_api_key, model=config.text_model)


__all__ = [
    "AnthropicTextProvider",
    "GeminiTextProvider",
    "GenerationClient",
    "ImageAttachment",
    "MockTextProvider",
    "TextGenerationProvider",
    "build_text_provider",
]
