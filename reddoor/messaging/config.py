"""Configuration for the messaging engine.

Retention:
----------
- Cruise messages carry ``expires_at_ms = created_at_ms + retention`` and
  disappear from every read path once ``now >= expires_at_ms``.
- Date messages never expire.

Rate limiting:
--------------
Each sender ActorKey may send at most ``rate_limit_per_minute`` messages in
any trailing ``rate_window_ms`` window. The window slides continuously; it
is not a fixed bucket that resets on the minute.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

HOUR_MS = 60 * 60 * 1000


class MediaLimits(BaseModel):
    """Bounds applied to chat media attachments."""

    model_config = ConfigDict(frozen=True)

    max_object_key_chars: int = Field(
        default=300, ge=1, description="Maximum storage object key length"
    )
    max_mime_type_chars: int = Field(
        default=100, ge=1, description="Maximum MIME type length"
    )
    max_duration_seconds: float = Field(
        default=4 * 60 * 60, gt=0, description="Longest allowed audio/video clip"
    )


class MessagingConfig(BaseModel):
    """Main configuration for the messaging engine."""

    model_config = ConfigDict(frozen=True)

    cruise_retention_hours: float = Field(
        default=72, gt=0, description="Cruise message lifetime in hours"
    )
    rate_limit_per_minute: int = Field(
        default=20, ge=1, description="Sends allowed per sender per window"
    )
    rate_window_ms: int = Field(
        default=60_000, ge=1, description="Sliding rate window length"
    )
    max_text_chars: int = Field(
        default=500, ge=1, description="Text is truncated, not rejected, past this"
    )
    media: MediaLimits = Field(default_factory=MediaLimits)

    @classmethod
    def from_settings(cls, settings) -> MessagingConfig:
        """Create MessagingConfig from app settings."""
        return cls(
            cruise_retention_hours=settings.CRUISE_RETENTION_HOURS,
            rate_limit_per_minute=settings.RATE_LIMIT_PER_MINUTE,
        )

    @property
    def cruise_retention_ms(self) -> int:
        return int(self.cruise_retention_hours * HOUR_MS)

    def validate_config(self) -> None:
        """Ensure the rate window can hold at least one send.

        Raises ValueError if the configuration is inconsistent.
        """
        if self.cruise_retention_ms < self.rate_window_ms:
            raise ValueError(
                "cruise_retention_hours must cover at least one rate window"
            )
