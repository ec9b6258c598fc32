"""Generation client and provider tests (offline)."""

from __future__ import annotations

from typing import Any, Dict, List

import pytest
import requests

from logic.prompts import RenderedPrompt
from models.errors import ConfigurationError, GenerationTimeout, InvalidRequestError, ProviderError
from tidy_app.config import CoachConfig
from tools import text_generation
from tools.text_generation import (
    AnthropicTextProvider,
    GeminiTextProvider,
    GenerationClient,
    ImageAttachment,
    MockTextProvider,
    build_text_provider,
)


class _FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


def _capture_post(monkeypatch: pytest.MonkeyPatch, response: Any) -> List[Dict[str, Any]]:
    calls: List[Dict[str, Any]] = []

    def fake_post(url: str, **kwargs: Any) -> _FakeResponse:
        calls.append({"url": url, **kwargs})
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(text_generation.requests, "post", fake_post)
    return calls


def test_anthropic_provider_builds_messages_request(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _capture_post(
        monkeypatch,
        _FakeResponse(payload={"content": [{"type": "text", "text": "  Cozy closet now 🧥  "}]}),
    )
    provider = AnthropicTextProvider(api_key="test-key")

    text = provider.generate(system="persona", user="hello", max_tokens=120, timeout_seconds=10)

    assert text == "Cozy closet now 🧥"
    request = calls[0]
    assert request["timeout"] == 10
    assert request["headers"]["x-api-key"] == "test-key"
    assert request["headers"]["anthropic-version"] == "2023-06-01"
    assert request["json"]["max_tokens"] == 120
    assert request["json"]["system"] == "persona"
    assert request["json"]["messages"] == [{"role": "user", "content": "hello"}]


def test_anthropic_provider_sends_image_blocks(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _capture_post(monkeypatch, _FakeResponse(payload={"content": [{"type": "text", "text": "{}"}]}))
    provider = AnthropicTextProvider(api_key="test-key")

    provider.generate(
        system=None,
        user="analyze",
        max_tokens=1500,
        timeout_seconds=60,
        image=ImageAttachment(media_type="image/png", data="iVBORw0KGgo="),
    )

    content = calls[0]["json"]["messages"][0]["content"]
    assert content[0]["source"] == {"type": "base64", "media_type": "image/png", "data": "iVBORw0KGgo="}
    assert content[1] == {"type": "text", "text": "analyze"}
    assert "system" not in calls[0]["json"]


def test_anthropic_provider_error_mapping(monkeypatch: pytest.MonkeyPatch) -> None:
    provider = AnthropicTextProvider(api_key="test-key")

    _capture_post(monkeypatch, _FakeResponse(status_code=529, text="overloaded"))
    with pytest.raises(ProviderError) as excinfo:
        provider.generate(system=None, user="hi", max_tokens=10, timeout_seconds=1)
    assert excinfo.value.status_code == 529

    _capture_post(monkeypatch, requests.Timeout("slow"))
    with pytest.raises(GenerationTimeout):
        provider.generate(system=None, user="hi", max_tokens=10, timeout_seconds=1)

    _capture_post(monkeypatch, _FakeResponse(payload={"content": []}))
    with pytest.raises(ProviderError):
        provider.generate(system=None, user="hi", max_tokens=10, timeout_seconds=1)


def test_anthropic_provider_requires_key(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = _capture_post(monkeypatch, _FakeResponse(payload={"content": []}))
    with pytest.raises(ConfigurationError):
        AnthropicTextProvider(api_key=None).generate(system=None, user="hi", max_tokens=10, timeout_seconds=1)
    assert calls == []


def test_generation_client_clamps_budget_and_applies_deadline() -> None:
    provider = MockTextProvider("ok")
    client = GenerationClient(provider, max_tokens_cap=200, timeout_seconds=15)

    client.generate_text("hello", max_tokens=5000)
    client.generate_text("hello", max_tokens=150, timeout_seconds=10)
    client.generate_text("hello")

    assert [call["max_tokens"] for call in provider.calls] == [200, 150, 200]
    assert [call["timeout_seconds"] for call in provider.calls] == [15, 10, 15]


def test_generation_client_single_attempt_and_empty_instruction() -> None:
    provider = MockTextProvider([ProviderError(500, "boom"), "never reached"])
    client = GenerationClient(provider)

    with pytest.raises(ProviderError):
        client.generate_text("hello")
    assert len(provider.calls) == 1

    with pytest.raises(InvalidRequestError):
        client.generate_text("   ")
    assert len(provider.calls) == 1


def test_generate_from_prompt_passes_both_parts() -> None:
    provider = MockTextProvider("fine")
    client = GenerationClient(provider)

    assert client.generate_from_prompt(RenderedPrompt(user="u", system="s"), timeout_seconds=10) == "fine"
    assert provider.calls[0]["system"] == "s"
    assert provider.calls[0]["user"] == "u"


def test_gemini_provider_uses_sdk(monkeypatch: pytest.MonkeyPatch) -> None:
    recorded: Dict[str, Any] = {}

    class _FakeModel:
        def __init__(self, model_name: str, system_instruction: str | None = None) -> None:
            recorded["model"] = model_name
            recorded["system"] = system_instruction

        def generate_content(self, contents: Any, generation_config: Any = None, request_options: Any = None):
            recorded["contents"] = contents
            recorded["request_options"] = request_options
            return type("Response", (), {"text": " Tidy shelf 📚 "})()

    monkeypatch.setattr(text_generation.genai, "configure", lambda **kwargs: recorded.update(kwargs))
    monkeypatch.setattr(text_generation.genai, "GenerativeModel", _FakeModel)

    provider = GeminiTextProvider(api_key="g-key", model="models/gemini-test")
    text = provider.generate(system="persona", user="hello", max_tokens=50, timeout_seconds=10)

    assert text == "Tidy shelf 📚"
    assert recorded["api_key"] == "g-key"
    assert recorded["model"] == "models/gemini-test"
    assert recorded["system"] == "persona"
    assert recorded["contents"] == ["hello"]
    assert recorded["request_options"] == {"timeout": 10}


def test_build_text_provider_selects_backend() -> None:
    assert isinstance(build_text_provider(CoachConfig(text_provider="mock")), MockTextProvider)
    assert isinstance(build_text_provider(CoachConfig(text_provider="gemini")), GeminiTextProvider)
    assert isinstance(build_text_provider(CoachConfig()), AnthropicTextProvider)
