"""Image edit providers used for the "after" visualization."""

from __future__ import annotations

import base64
import binascii
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import openai
import requests
from openai import OpenAI

from models.errors import ConfigurationError, GenerationTimeout, ProviderError
from tidy_app.config import DEFAULT_IMAGE_MODEL, CoachConfig
from tools.media import extension_for

LOGGER = logging.getLogger(__name__)


class ImageEditProvider(ABC):
    """Abstract image edit provider interface."""

    name = "image_provider"

    @property
    def configured(self) -> bool:
        return True

    @abstractmethod
    def edit(self, *, image: bytes, media_type: str, instruction: str) -> bytes:
        """Return the edited image bytes or raise a :class:`GenerationError`."""


class OpenAIImageEditProvider(ImageEditProvider):
    """OpenAI image edits through the official SDK, with retries disabled."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_IMAGE_MODEL,
        size: str = "1024x1024",
        quality: str = "medium",
        timeout_seconds: float = 90.0,
        client: Any | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.size = size
        self.quality = quality
        self.timeout_seconds = timeout_seconds
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key) or self._client is not None

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError("OPENAI_API_KEY is not configured")
            self._client = OpenAI(api_key=self.api_key, timeout=self.timeout_seconds, max_retries=0)
        return self._client

    def _download(self, url: str) -> bytes:
        try:
            response = requests.get(url, timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.Timeout as exc:
            raise GenerationTimeout(self.timeout_seconds) from exc
        except requests.RequestException as exc:
            raise ProviderError(0, f"edited image download failed: {exc}") from exc
        return response.content

    def edit(self, *, image: bytes, media_type: str, instruction: str) -> bytes:
        client = self._get_client()
        filename = f"source.{extension_for(media_type)}"
        try:
            result = client.images.edit(
                model=self.model,
                image=(filename, image, media_type),
                prompt=instruction,
                size=self.size,
                quality=self.quality,
                n=1,
            )
        except openai.APITimeoutError as exc:
            raise GenerationTimeout(self.timeout_seconds) from exc
        except openai.APIStatusError as exc:
            raise ProviderError(exc.status_code, exc.response.text) from exc
        except openai.APIError as exc:
            raise ProviderError(0, str(exc)) from exc

        try:
            first = result.data[0] if result.data else None
            if first is not None and first.b64_json:
                return base64.b64decode(first.b64_json, validate=True)
        except (AttributeError, TypeError, binascii.Error) as exc:
            raise ProviderError(200, f"image edit returned a malformed image: {exc}") from exc
        if first is not None and first.url:
            return self._download(first.url)
        raise ProviderError(200, "image edit returned no image")


class MockImageEditProvider(ImageEditProvider):
    """Offline image edit provider returning canned bytes or raising."""

    name = "mock"

    def __init__(self, result: bytes | Exception = b"\x89PNG\r\n\x1a\nmock-after") -> None:
        self.result = result
        self.calls: List[Dict[str, Any]] = []

    def edit(self, *, image: bytes, media_type: str, instruction: str) -> bytes:
        self.calls.append({"image": image, "media_type": media_type, "instruction": instruction})
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


def build_image_edit_provider(config: CoachConfig) -> Optional[ImageEditProvider]:
    """Return the configured image edit provider, or ``None`` when no key is set."""

    if not config.openai_api_key:
        LOGGER.info("OPENAI_API_KEY not configured; after images disabled")
        return None
    return OpenAIImageEditProvider(
        api_key=config.openai_api_key,
        model=config.image_model,
        size=config.image_size,
        quality=config.image_quality,
        timeout_seconds=config.analysis_timeout_seconds,
    )


__all__ = [
    "ImageEditProvider",
    "MockImageEditProvider",
    "OpenAIImageEditProvider",
    "build_image_edit_provider",
]
