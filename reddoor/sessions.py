"""Session lookup for the HTTP layer.

Sessions are issued by the external auth service; this package only
resolves an ``x-session-token`` header to the session it was issued for.
"""

from __future__ import annotations

import threading
from typing import Optional, Protocol

from reddoor.gate.models import Session


class SessionStore(Protocol):
    def get(self, session_token: str) -> Optional[Session]:
        ...


class InMemorySessionStore:
    """Token -> Session map, populated by whoever issues sessions."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def put(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.session_token] = session

    def remove(self, session_token: str) -> None:
        with self._lock:
            self._sessions.pop(session_token, None)

    def get(self, session_token: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_token)
