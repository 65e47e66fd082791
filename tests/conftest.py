import os
from typing import Optional

import pytest
import pytest_asyncio

# Force a throwaway database URL before any reddoor imports read settings.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.pop("CHAT_STATE_FILE", None)

from reddoor.blocks.service import BlockService  # noqa: E402
from reddoor.db.base import make_engine, make_session_factory  # noqa: E402
from reddoor.db.init import create_tables  # noqa: E402
from reddoor.gate.models import Session  # noqa: E402
from reddoor.matching.engine import MatchingEngine  # noqa: E402
from reddoor.messaging.engine import MessagingEngine  # noqa: E402

T0 = 1_700_000_000_000
HOUR_MS = 60 * 60 * 1000


class FakeClock:
    """Manually advanced clock in epoch milliseconds."""

    def __init__(self, start: int = T0):
        self.now = start

    def now_ms(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


def make_session(
    token: str,
    user_type: str = "registered",
    mode: str = "hybrid",
    user_id: Optional[str] = None,
    age_verified: bool = True,
) -> Session:
    """Registered sessions default their user id to the token."""
    if user_id is None and user_type != "guest":
        user_id = token
    return Session(
        session_token=token,
        user_type=user_type,
        mode=mode,
        user_id=user_id,
        age_verified=age_verified,
    )


def guest(token: str, mode: str = "cruise") -> Session:
    return make_session(token, user_type="guest", mode=mode)


class Counter:
    """Deterministic id factory: id-1, id-2, ..."""

    def __init__(self, prefix: str = "id"):
        self.prefix = prefix
        self.n = 0

    def __call__(self) -> str:
        self.n += 1
        return f"{self.prefix}-{self.n}"


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def blocks(clock):
    return BlockService(clock=clock)


@pytest.fixture
def matching(clock, blocks):
    return MatchingEngine(clock=clock, block_checker=blocks, id_factory=Counter("match"))


@pytest.fixture
def messaging(clock, blocks, matching):
    return MessagingEngine(
        clock=clock,
        block_checker=blocks,
        match_checker=matching,
        id_factory=Counter("msg"),
    )


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory over a fresh SQLite file with all tables created."""
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables(engine)
    yield make_session_factory(engine)
    await engine.dispose()
