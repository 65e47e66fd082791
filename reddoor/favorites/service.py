"""Favorites: a per-user toggle list of other users."""

from __future__ import annotations

import threading
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from reddoor.core.results import Err, ErrorCode, err, ok
from reddoor.gate.authorization import authorize, coerce_session


class FavoriteToggle(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    target_user_id: str
    is_favorite: bool
    favorites: list[str]


class FavoritesService:
    """Registered-only favorites, kept in insertion order."""

    def __init__(self) -> None:
        self._by_user: dict[str, dict[str, None]] = {}
        self._lock = threading.Lock()

    def list(self, session: Any):
        rejection = authorize(session, "favorite")
        if rejection is not None:
            return Err(error=rejection)
        user_id = coerce_session(session).user_id.strip()
        with self._lock:
            return ok(list(self._by_user.get(user_id, {})))

    def toggle(self, session: Any, target_user_id: Any):
        """
        Add or remove a favorite.

        Returns:
            Ok(FavoriteToggle) or Err(ServiceError)
        """
        rejection = authorize(session, "favorite")
        if rejection is not None:
            return Err(error=rejection)
        user_id = coerce_session(session).user_id.strip()

        if not isinstance(target_user_id, str) or not target_user_id.strip():
            return err(ErrorCode.INVALID_INPUT, "Invalid target user id.")
        target = target_user_id.strip()
        if target == user_id:
            return err(ErrorCode.INVALID_INPUT, "Cannot favorite yourself.")

        with self._lock:
            favorites = self._by_user.setdefault(user_id, {})
            if target in favorites:
                del favorites[target]
                is_favorite = False
            else:
                favorites[target] = None
                is_favorite = True
            current = list(favorites)

        return ok(
            FavoriteToggle(target_user_id=target, is_favorite=is_favorite, favorites=current)
        )
