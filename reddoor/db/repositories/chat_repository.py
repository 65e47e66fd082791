"""Chat message and read cursor repositories."""

from typing import Any

import structlog

from reddoor.db.models.chat import ChatMessageRow, ReadCursorRow
from reddoor.db.repository import BaseRepository
from reddoor.messaging.models import ChatMessage, ChatStateSnapshot
from reddoor.persistence.snapshot import parse_chat_state

logger = structlog.get_logger(__name__)


def message_to_row(thread_id: str, message: ChatMessage) -> ChatMessageRow:
    media = message.media
    return ChatMessageRow(
        message_id=message.message_id,
        thread_id=thread_id,
        chat_id=message.chat_id,
        chat_kind=message.chat_kind,
        from_key=message.from_key,
        to_key=message.to_key,
        text=message.text,
        media_kind=media.kind if media else None,
        media_object_key=media.object_key if media else None,
        media_mime_type=media.mime_type if media else None,
        media_duration_seconds=media.duration_seconds if media else None,
        created_at_ms=message.created_at_ms,
        delivered_at_ms=message.delivered_at_ms,
        read_at_ms=message.read_at_ms,
        expires_at_ms=message.expires_at_ms,
    )


def row_to_payload(row: ChatMessageRow) -> dict[str, Any]:
    """Raw message mapping; validation happens in parse_chat_state."""
    payload: dict[str, Any] = {
        "messageId": row.message_id,
        "chatId": row.chat_id,
        "chatKind": row.chat_kind,
        "fromKey": row.from_key,
        "toKey": row.to_key,
        "text": row.text,
        "createdAtMs": row.created_at_ms,
        "deliveredAtMs": row.delivered_at_ms,
        "readAtMs": row.read_at_ms,
        "expiresAtMs": row.expires_at_ms,
    }
    if row.media_kind is not None:
        payload["media"] = {
            "kind": row.media_kind,
            "objectKey": row.media_object_key,
            "mimeType": row.media_mime_type,
            "durationSeconds": row.media_duration_seconds,
        }
    return payload


class ChatMessageRepository(BaseRepository[ChatMessageRow]):
    """Repository for chat messages."""


class ReadCursorRepository(BaseRepository[ReadCursorRow]):
    """Repository for read cursors."""


class ChatStateRepository:
    """
    Loads and saves the whole messaging snapshot.

    Saves replace both tables inside the caller's transaction; loads are
    tolerant and skip rows that no longer validate.
    """

    def __init__(self, messages: ChatMessageRepository, cursors: ReadCursorRepository):
        self.messages = messages
        self.cursors = cursors

    async def load_state(self) -> ChatStateSnapshot:
        rows = await self.messages.get_all(order_by="created_at_ms")
        threads: dict[str, list[dict[str, Any]]] = {}
        for row in rows:
            threads.setdefault(row.thread_id, []).append(row_to_payload(row))

        cursor_rows = await self.cursors.get_all()
        payload = {
            "threads": [
                {"threadId": thread_id, "messages": messages}
                for thread_id, messages in threads.items()
            ],
            "readCursors": [
                {"threadUserKey": c.thread_user_key, "readAtMs": c.read_at_ms}
                for c in cursor_rows
            ],
        }
        return parse_chat_state(payload)

    async def save_state(self, snapshot: ChatStateSnapshot) -> dict[str, int]:
        await self.messages.delete_all()
        await self.cursors.delete_all()

        seen: set[str] = set()
        rows = []
        for thread in snapshot.threads:
            for message in thread.messages:
                if message.message_id in seen:
                    continue
                seen.add(message.message_id)
                rows.append(message_to_row(thread.thread_id, message))

        cursors = {c.thread_user_key: c.read_at_ms for c in snapshot.read_cursors}
        saved_messages = await self.messages.add_all(rows)
        saved_cursors = await self.cursors.add_all(
            ReadCursorRow(thread_user_key=key, read_at_ms=read_at)
            for key, read_at in cursors.items()
        )
        logger.debug(
            "chat_state.saved", messages=saved_messages, cursors=saved_cursors
        )
        return {"messages": saved_messages, "cursors": saved_cursors}
