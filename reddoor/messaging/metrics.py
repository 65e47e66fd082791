"""Metrics tracking for the messaging engine."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr

logger = logging.getLogger(__name__)


class MessagingMetrics(BaseModel):
    """Counters for sends, rejections and retention purges."""

    # Timing
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Send statistics
    total_sent: int = 0
    sent_by_kind: dict[str, int] = Field(default_factory=dict)
    media_messages: int = 0

    # Rejections keyed by error code
    rejections: dict[str, int] = Field(default_factory=dict)

    # Retention
    expired_purged: int = 0
    expiry_notices: int = 0

    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    def _touch(self) -> None:
        self.last_updated = datetime.now(timezone.utc)

    def record_sent(self, chat_kind: str, has_media: bool = False) -> None:
        with self._lock:
            self.total_sent += 1
            self.sent_by_kind[chat_kind] = self.sent_by_kind.get(chat_kind, 0) + 1
            if has_media:
                self.media_messages += 1
            self._touch()

    def record_rejection(self, code: str) -> None:
        with self._lock:
            self.rejections[code] = self.rejections.get(code, 0) + 1
            self._touch()

    def record_purged(self, count: int) -> None:
        if count <= 0:
            return
        with self._lock:
            self.expired_purged += count
            self._touch()

    def record_expiry_notice(self) -> None:
        with self._lock:
            self.expiry_notices += 1
            self._touch()

    def get_summary(self) -> dict[str, Any]:
        """
        Get metrics summary.

        Returns:
            Dictionary of all metrics
        """
        with self._lock:
            total_rejected = sum(self.rejections.values())
            attempts = self.total_sent + total_rejected
            return {
                "timing": {
                    "started_at": self.started_at.isoformat(),
                    "last_updated": self.last_updated.isoformat(),
                },
                "messages": {
                    "sent": self.total_sent,
                    "by_kind": dict(self.sent_by_kind),
                    "with_media": self.media_messages,
                    "rejected": total_rejected,
                    "rejection_rate": total_rejected / attempts if attempts else 0.0,
                },
                "rejections": dict(self.rejections),
                "retention": {
                    "purged": self.expired_purged,
                    "expiry_notices": self.expiry_notices,
                },
            }

    def reset(self) -> None:
        with self._lock:
            self.started_at = datetime.now(timezone.utc)
            self.last_updated = self.started_at
            self.total_sent = 0
            self.sent_by_kind = {}
            self.media_messages = 0
            self.rejections = {}
            self.expired_purged = 0
            self.expiry_notices = 0
        logger.info("Messaging metrics reset")
