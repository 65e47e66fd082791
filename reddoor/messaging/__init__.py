"""Messaging engine for Cruise and Date chat."""

from reddoor.messaging.config import MediaLimits, MessagingConfig
from reddoor.messaging.engine import MessagingEngine
from reddoor.messaging.metrics import MessagingMetrics
from reddoor.messaging.models import (
    ChatMessage,
    ChatStateSnapshot,
    ChatThread,
    MediaAttachment,
    ReadCursor,
    ReadReceipt,
    SendMessageInput,
    ThreadState,
    ThreadSummary,
)
from reddoor.messaging.policy import RegexContentPolicy, default_content_policy
from reddoor.messaging.rate_limit import SlidingWindowRateLimiter
from reddoor.messaging.threads import get_thread, read_cursor_key, thread_key

__all__ = [
    "ChatMessage",
    "ChatStateSnapshot",
    "ChatThread",
    "MediaAttachment",
    "MediaLimits",
    "MessagingConfig",
    "MessagingEngine",
    "MessagingMetrics",
    "ReadCursor",
    "ReadReceipt",
    "RegexContentPolicy",
    "SendMessageInput",
    "SlidingWindowRateLimiter",
    "ThreadState",
    "ThreadSummary",
    "default_content_policy",
    "get_thread",
    "read_cursor_key",
    "thread_key",
]
