"""Service wiring: engines, collaborators and persistence."""

from __future__ import annotations

import logging
from typing import Optional

from reddoor.blocks.service import BlockService
from reddoor.core.config import Settings, get_settings
from reddoor.core.ports import Clock, SystemClock
from reddoor.favorites.service import FavoritesService
from reddoor.matching.engine import MatchingEngine
from reddoor.matching.models import MatchingStateSnapshot
from reddoor.messaging.config import MessagingConfig
from reddoor.messaging.engine import MessagingEngine
from reddoor.messaging.models import ChatStateSnapshot
from reddoor.persistence.retention import RetentionSweeper
from reddoor.persistence.stores import (
    DatabaseSnapshotStore,
    JsonSnapshotStore,
    SnapshotStore,
)
from reddoor.persistence.writer import CHAT, MATCHING, SnapshotWriter
from reddoor.sessions import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)


class Container:
    """Holds one instance of every service for the lifetime of the app."""

    def __init__(
        self,
        settings: Settings,
        clock: Clock,
        sessions: SessionStore,
        blocks: BlockService,
        favorites: FavoritesService,
        matching: MatchingEngine,
        messaging: MessagingEngine,
        sweeper: RetentionSweeper,
        store: Optional[SnapshotStore] = None,
        writer: Optional[SnapshotWriter] = None,
    ):
        self.settings = settings
        self.clock = clock
        self.sessions = sessions
        self.blocks = blocks
        self.favorites = favorites
        self.matching = matching
        self.messaging = messaging
        self.sweeper = sweeper
        self.store = store
        self.writer = writer

    async def start(self) -> None:
        if self.writer is not None:
            await self.writer.start()
        await self.sweeper.start()

    async def stop(self) -> None:
        await self.sweeper.stop()
        if self.writer is not None:
            await self.writer.stop()


def store_from_settings(settings: Settings) -> Optional[SnapshotStore]:
    """JSON file when CHAT_STATE_FILE is set, otherwise the database."""
    if not settings.PERSISTENCE_ENABLED:
        return None
    if settings.CHAT_STATE_FILE:
        return JsonSnapshotStore(settings.CHAT_STATE_FILE)
    return DatabaseSnapshotStore()


def build_container(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
    sessions: Optional[SessionStore] = None,
    store: Optional[SnapshotStore] = None,
    chat_state: Optional[ChatStateSnapshot] = None,
    matching_state: Optional[MatchingStateSnapshot] = None,
    messaging_config: Optional[MessagingConfig] = None,
) -> Container:
    """
    Wire all services together.

    Args:
        settings: App settings (defaults to get_settings())
        clock: Shared time source
        sessions: Session lookup for the HTTP layer
        store: Snapshot backend; None disables persistence
        chat_state: Messaging snapshot to hydrate from
        matching_state: Matching snapshot to hydrate from
        messaging_config: Overrides the config derived from settings

    Returns:
        Container with every service constructed
    """
    settings = settings or get_settings()
    clock = clock or SystemClock()
    writer = SnapshotWriter(store) if store is not None else None

    blocks = BlockService(clock=clock)
    matching = MatchingEngine(
        clock=clock,
        block_checker=blocks,
        initial_state=matching_state,
        on_state_changed=writer.submit_matching if writer else None,
    )
    messaging = MessagingEngine(
        config=messaging_config or MessagingConfig.from_settings(settings),
        clock=clock,
        block_checker=blocks,
        match_checker=matching,
        initial_state=chat_state,
        on_state_changed=writer.submit_chat if writer else None,
    )
    sweeper = RetentionSweeper(
        messaging, interval_seconds=settings.RETENTION_SWEEP_MINUTES * 60
    )

    return Container(
        settings=settings,
        clock=clock,
        sessions=sessions or InMemorySessionStore(),
        blocks=blocks,
        favorites=FavoritesService(),
        matching=matching,
        messaging=messaging,
        sweeper=sweeper,
        store=store,
        writer=writer,
    )


async def load_container(
    settings: Optional[Settings] = None,
    store: Optional[SnapshotStore] = None,
    **kwargs,
) -> Container:
    """
    Hydrate engine state from the store, then build the container.

    Each section loads on its own. A section that fails to load starts
    empty and its writes are disabled for this process, so the stored
    copy survives until a restart can read it again.
    """
    settings = settings or get_settings()
    if store is None:
        store = store_from_settings(settings)

    chat_state = None
    matching_state = None
    failed: list[str] = []
    if store is not None:
        if isinstance(store, DatabaseSnapshotStore):
            from reddoor.db.init import create_tables

            await create_tables()
        try:
            chat_state = await store.load_chat_state()
        except Exception as e:
            logger.error(f"[PERSIST] Failed to load chat state: {e}", exc_info=True)
            failed.append(CHAT)
        try:
            matching_state = await store.load_matching_state()
        except Exception as e:
            logger.error(f"[PERSIST] Failed to load matching state: {e}", exc_info=True)
            failed.append(MATCHING)

    container = build_container(
        settings=settings,
        store=store,
        chat_state=chat_state,
        matching_state=matching_state,
        **kwargs,
    )
    if container.writer is not None:
        for section in failed:
            container.writer.disable(section)
    return container
