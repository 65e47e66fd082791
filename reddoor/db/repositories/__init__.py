"""Repository exports."""

from .chat_repository import (
    ChatMessageRepository,
    ChatStateRepository,
    ReadCursorRepository,
)
from .matching_repository import (
    MatchingStateRepository,
    MatchRepository,
    SwipeRepository,
)

__all__ = [
    "ChatMessageRepository",
    "ChatStateRepository",
    "ReadCursorRepository",
    "MatchingStateRepository",
    "MatchRepository",
    "SwipeRepository",
]
