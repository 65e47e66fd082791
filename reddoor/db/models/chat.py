"""Chat message and read cursor tables."""

from typing import Optional

from sqlalchemy import BigInteger, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from reddoor.db.base import Base


class ChatMessageRow(Base):
    """
    One persisted chat message.

    Media columns are all null for text-only messages. Rows are rewritten
    wholesale from the engine snapshot, so there are no foreign keys.
    """

    __tablename__ = "chat_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    message_id: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, comment="Engine-assigned message id"
    )
    thread_id: Mapped[str] = mapped_column(
        String(640), nullable=False, index=True, comment="Canonical thread id"
    )
    chat_id: Mapped[str] = mapped_column(String(640), nullable=False)
    chat_kind: Mapped[str] = mapped_column(
        String(16), nullable=False, comment="'cruise' or 'date'"
    )
    from_key: Mapped[str] = mapped_column(String(300), nullable=False)
    to_key: Mapped[str] = mapped_column(String(300), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Media
    media_kind: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    media_object_key: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    media_mime_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    media_duration_seconds: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Epoch milliseconds
    created_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    delivered_at_ms: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    read_at_ms: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    expires_at_ms: Mapped[Optional[int]] = mapped_column(
        BigInteger, nullable=True, index=True, comment="Null for Date messages"
    )

    __table_args__ = (Index("idx_chat_thread_created", "thread_id", "created_at_ms"),)

    def __repr__(self) -> str:
        return (
            f"<ChatMessageRow(id={self.id}, thread_id={self.thread_id}, "
            f"from_key={self.from_key}, created_at_ms={self.created_at_ms})>"
        )


class ReadCursorRow(Base):
    """Read watermark for one reader in one thread."""

    __tablename__ = "chat_read_cursors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    thread_user_key: Mapped[str] = mapped_column(
        String(1000), nullable=False, unique=True, comment="<threadId>::<readerKey>"
    )
    read_at_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return f"<ReadCursorRow(key={self.thread_user_key}, read_at_ms={self.read_at_ms})>"
