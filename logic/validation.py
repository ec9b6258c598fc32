"""Pydantic schemas and helpers for validating inbound requests and events."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from models.errors import InvalidRequestError


class InboundPayload(BaseModel):
    """Common envelope: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def missing_fields(self, *names: str) -> List[str]:
        missing = []
        for name in names:
            value = getattr(self, name, None)
            if value is None or (isinstance(value, str) and not value.strip()):
                field_info = type(self).model_fields[name]
                missing.append(field_info.alias or name)
        return missing

    def require(self, *names: str) -> None:
        """Raise :class:`InvalidRequestError` when any named field is empty."""

        missing = self.missing_fields(*names)
        if missing:
            raise InvalidRequestError(f"Missing required fields: {', '.join(missing)}")


class EncouragementRequest(InboundPayload):
    """Direct request for a one-sentence encouragement message."""

    item_name: Optional[str] = Field(None, alias="itemName")
    category: Optional[str] = None
    points: int = 0
    total_score: int = Field(0, alias="totalScore")
    streak: int = 0
    category_count: Dict[str, Any] = Field(default_factory=dict, alias="categoryCount")


class TidyCommentRequest(InboundPayload):
    """Fallback request carrying a prompt rendered by the client."""

    prompt: Optional[str] = None


class AnalyzeSpaceRequest(InboundPayload):
    """Direct request for a space analysis and after visualization."""

    image_base64: Optional[str] = Field(None, alias="imageBase64")
    user_id: Optional[str] = Field(None, alias="userId")
    user_vision: Optional[str] = Field(None, alias="userVision")

    @field_validator("user_id")
    @classmethod
    def _plain_user_id(cls, value: Optional[str]) -> Optional[str]:
        if value and ("/" in value or "\\" in value or ".." in value):
            raise ValueError("userId must not contain path separators")
        return value


class ItemCreatedEvent(InboundPayload):
    """Record-creation notification: the full document plus its identifier."""

    item_id: str = Field(min_length=1, alias="itemId")
    item: Dict[str, Any] = Field(default_factory=dict)


def parse_payload(model: type[InboundPayload], payload: Dict[str, Any] | InboundPayload) -> InboundPayload:
    """Validate a loose payload, translating schema errors to client errors."""

    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
        raise InvalidRequestError(f"Invalid request fields: {', '.join(fields)}") from exc


__all__ = [
    "AnalyzeSpaceRequest",
    "EncouragementRequest",
    "InboundPayload",
    "ItemCreatedEvent",
    "TidyCommentRequest",
    "parse_payload",
]
