"""Media type sniffing and decoding for base64 image uploads."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass

from models.errors import InvalidRequestError

DEFAULT_MEDIA_TYPE = "image/jpeg"
_DATA_URL_PATTERN = re.compile(r"^data:(image/\w+);base64,")
_SIGNATURES = (
    ("/9j/", "image/jpeg"),
    ("iVBOR", "image/png"),
    ("R0lGOD", "image/gif"),
    ("UklGR", "image/webp"),
)
_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


@dataclass(frozen=True)
class DecodedImage:
    media_type: str
    raw_base64: str
    data: bytes

    @property
    def extension(self) -> str:
        return extension_for(self.media_type)


def strip_data_url_prefix(value: str) -> str:
    """Return the raw base64 payload without any ``data:...,`` prefix."""

    return value.split(",", 1)[1] if "," in value else value


def sniff_media_type(value: str) -> str:
    """Determine the image MIME type from a declared prefix or magic bytes."""

    if value.startswith("data:"):
        match = _DATA_URL_PATTERN.match(value)
        if match:
            return match.group(1)
        value = strip_data_url_prefix(value)
    for signature, media_type in _SIGNATURES:
        if value.startswith(signature):
            return media_type
    return DEFAULT_MEDIA_TYPE


def extension_for(media_type: str) -> str:
    return _EXTENSIONS.get(media_type, "jpg")


def decode_image_payload(value: str) -> DecodedImage:
    """Sniff, strip and decode a base64 image upload."""

    media_type = sniff_media_type(value)
    raw = strip_data_url_prefix(value).strip()
    try:
        data = base64.b64decode(raw, validate=False)
    except (binascii.Error, ValueError) as exc:
        raise InvalidRequestError("imageBase64 is not valid base64") from exc
    if not data:
        raise InvalidRequestError("imageBase64 decoded to an empty image")
    return DecodedImage(media_type=media_type, raw_base64=raw, data=data)


__all__ = [
    "DEFAULT_MEDIA_TYPE",
    "DecodedImage",
    "decode_image_payload",
    "extension_for",
    "sniff_media_type",
    "strip_data_url_prefix",
]
