"""Error taxonomy shared by the coaching pipelines and the HTTP surface."""

from __future__ import annotations


class CoachError(Exception):
    """Base class for all Tidy coach failures."""


class InvalidRequestError(CoachError):
    """Required input is missing or unusable; no provider call is attempted."""


class ConfigurationError(CoachError):
    """A required credential or setting is absent."""


class GenerationError(CoachError):
    """A generation provider call did not produce usable output."""


class GenerationTimeout(GenerationError):
    """The provider call exceeded the client-side deadline."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"generation call exceeded {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds


class ProviderError(GenerationError):
    """The provider answered with a non-success response."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"provider returned status {status_code}")
        self.status_code = status_code
        self.body = body


class MalformedAnalysis(CoachError):
    """Structured scene analysis could not be recovered from model output."""

    def __init__(self, message: str, raw_text: str | None = None) -> None:
        super().__init__(message)
        self.raw_text = raw_text


class PersistenceError(CoachError):
    """A document or blob store write failed."""


__all__ = [
    "CoachError",
    "InvalidRequestError",
    "ConfigurationError",
    "GenerationError",
    "GenerationTimeout",
    "ProviderError",
    "MalformedAnalysis",
    "PersistenceError",
]
