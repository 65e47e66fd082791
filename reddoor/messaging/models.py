"""Data models for chat threads, messages and read cursors."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from reddoor.gate.models import ChatKind

MediaKind = Literal["image", "video", "audio"]

_wire_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class MediaAttachment(BaseModel):
    """Reference to an uploaded media object."""

    model_config = _wire_config

    kind: MediaKind
    object_key: str = Field(..., min_length=1)
    mime_type: str = Field(..., min_length=1)
    duration_seconds: Optional[float] = Field(default=None, ge=0)


class ChatMessage(BaseModel):
    """A single chat message.

    Messages are immutable once appended; read receipts are projected onto
    copies at read time from the counterpart's read cursor.
    """

    model_config = _wire_config

    message_id: str = Field(..., min_length=1)
    chat_id: str = Field(..., min_length=1)
    chat_kind: ChatKind
    from_key: str = Field(..., min_length=1)
    to_key: str = Field(..., min_length=1)
    text: str
    media: Optional[MediaAttachment] = None
    created_at_ms: int
    delivered_at_ms: Optional[int] = None
    read_at_ms: Optional[int] = None
    expires_at_ms: Optional[int] = None

    def is_expired(self, now_ms: int) -> bool:
        return self.expires_at_ms is not None and now_ms >= self.expires_at_ms


class ChatThread(BaseModel):
    """Canonical address of a conversation."""

    model_config = _wire_config

    chat_id: str
    chat_kind: ChatKind
    a_key: str
    b_key: str


class SendMessageInput(BaseModel):
    """Caller payload for send_message.

    Fields accept any value. The engine validates them and
    answers with a typed rejection instead of raising.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    chat_kind: Any = None
    to_key: Any = None
    text: Any = None
    media: Any = None


class ThreadSummary(BaseModel):
    """One row of list_threads."""

    model_config = _wire_config

    other_key: str
    last_message: ChatMessage


class ReadReceipt(BaseModel):
    model_config = _wire_config

    read_at_ms: int


class ThreadState(BaseModel):
    model_config = _wire_config

    thread_id: str
    messages: list[ChatMessage] = Field(default_factory=list)


class ReadCursor(BaseModel):
    model_config = _wire_config

    thread_user_key: str = Field(..., min_length=1)
    read_at_ms: int


class ChatStateSnapshot(BaseModel):
    """Serializable messaging state: threads with messages plus read cursors."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    threads: list[ThreadState] = Field(default_factory=list)
    read_cursors: list[ReadCursor] = Field(default_factory=list)
