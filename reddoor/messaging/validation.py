"""Text and media validation for outgoing messages."""

from __future__ import annotations

import math
from typing import Any

from pydantic import ValidationError

from reddoor.messaging.config import MediaLimits
from reddoor.messaging.models import MediaAttachment

MEDIA_FAMILIES = {
    "image": "image/",
    "video": "video/",
    "audio": "audio/",
}


class InvalidMediaError(ValueError):
    """Raised when a media attachment fails validation."""


def sanitize_text(raw: Any, max_chars: int = 500) -> str:
    """Trim text and truncate it to max_chars. Non-strings become empty."""
    if not isinstance(raw, str):
        return ""
    text = raw.strip()
    if len(text) > max_chars:
        return text[:max_chars]
    return text


def validate_media(raw: Any, limits: MediaLimits | None = None) -> MediaAttachment:
    """
    Validate a media attachment payload.

    The MIME type is normalized to lowercase and must belong to the
    family implied by ``kind`` (``image/*`` for images and so on).

    Args:
        raw: MediaAttachment or mapping with kind/objectKey/mimeType/durationSeconds
        limits: Length and duration bounds

    Returns:
        Normalized MediaAttachment

    Raises:
        InvalidMediaError: On any violation
    """
    limits = limits or MediaLimits()

    if isinstance(raw, MediaAttachment):
        data: dict[str, Any] = raw.model_dump()
    elif isinstance(raw, dict):
        data = {
            "kind": raw.get("kind"),
            "object_key": raw.get("objectKey", raw.get("object_key")),
            "mime_type": raw.get("mimeType", raw.get("mime_type")),
            "duration_seconds": raw.get("durationSeconds", raw.get("duration_seconds")),
        }
    else:
        raise InvalidMediaError("media must be an object")

    kind = data.get("kind")
    if kind not in MEDIA_FAMILIES:
        raise InvalidMediaError(f"unsupported media kind: {kind!r}")

    object_key = data.get("object_key")
    mime_type = data.get("mime_type")
    if not isinstance(object_key, str) or not object_key.strip():
        raise InvalidMediaError("objectKey is required")
    if not isinstance(mime_type, str) or not mime_type.strip():
        raise InvalidMediaError("mimeType is required")

    object_key = object_key.strip()
    mime_type = mime_type.strip().lower()
    if not mime_type.startswith(MEDIA_FAMILIES[kind]):
        raise InvalidMediaError(f"mimeType {mime_type} does not match kind {kind}")
    if len(mime_type) > limits.max_mime_type_chars:
        raise InvalidMediaError("mimeType too long")
    if len(object_key) > limits.max_object_key_chars:
        raise InvalidMediaError("objectKey too long")

    duration = data.get("duration_seconds")
    if duration is not None:
        if isinstance(duration, bool) or not isinstance(duration, (int, float)):
            raise InvalidMediaError("durationSeconds must be a number")
        if not math.isfinite(duration) or duration < 0:
            raise InvalidMediaError("durationSeconds must be >= 0")
        if duration > limits.max_duration_seconds:
            raise InvalidMediaError("durationSeconds too long")

    try:
        return MediaAttachment(
            kind=kind,
            object_key=object_key,
            mime_type=mime_type,
            duration_seconds=duration,
        )
    except ValidationError as e:
        raise InvalidMediaError(str(e)) from e
