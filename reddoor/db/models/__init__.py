"""Database models for Red Door engine state."""

from .chat import ChatMessageRow, ReadCursorRow
from .matching import MatchRow, SwipeRow

__all__ = ["ChatMessageRow", "ReadCursorRow", "MatchRow", "SwipeRow"]
