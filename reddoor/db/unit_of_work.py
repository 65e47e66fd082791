"""One transaction over the chat and matching repositories."""

from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from reddoor.db import base
from reddoor.db.models import ChatMessageRow, MatchRow, ReadCursorRow, SwipeRow
from reddoor.db.repositories import (
    ChatMessageRepository,
    ChatStateRepository,
    MatchingStateRepository,
    MatchRepository,
    ReadCursorRepository,
    SwipeRepository,
)


class UnitOfWork:
    """
    Async context manager that opens a session, exposes the repositories
    bound to it, and commits on a clean exit or rolls back on error.

    Usage:
        async with UnitOfWork(session_factory=factory) as uow:
            await uow.matching_state.save_state(engine.snapshot_state())

    When an existing session is passed in, the caller keeps ownership:
    nothing is committed or closed here, only rolled back on error.
    """

    chat_messages: ChatMessageRepository
    read_cursors: ReadCursorRepository
    swipes: SwipeRepository
    matches: MatchRepository
    chat_state: ChatStateRepository
    matching_state: MatchingStateRepository

    def __init__(
        self,
        session: Optional[AsyncSession] = None,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
    ):
        self.session = session
        self._owns_session = session is None
        # Resolved lazily so tests can swap base.AsyncSessionLocal.
        self._session_factory = session_factory

    def _bind(self, session: AsyncSession) -> None:
        self.chat_messages = ChatMessageRepository(ChatMessageRow, session)
        self.read_cursors = ReadCursorRepository(ReadCursorRow, session)
        self.swipes = SwipeRepository(SwipeRow, session)
        self.matches = MatchRepository(MatchRow, session)
        self.chat_state = ChatStateRepository(self.chat_messages, self.read_cursors)
        self.matching_state = MatchingStateRepository(self.swipes, self.matches)

    async def __aenter__(self) -> "UnitOfWork":
        if self.session is None:
            factory = self._session_factory or base.AsyncSessionLocal
            self.session = factory()
        self._bind(self.session)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        try:
            if exc_type is not None:
                await self.rollback()
            elif self._owns_session:
                await self.commit()
        finally:
            if self._owns_session and self.session is not None:
                await self.session.close()
                self.session = None

    async def commit(self) -> None:
        if self.session is not None:
            await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()

    async def flush(self) -> None:
        if self.session is not None:
            await self.session.flush()
