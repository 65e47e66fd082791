"""Swipe and match repositories."""

import structlog

from reddoor.db.models.matching import MatchRow, SwipeRow
from reddoor.db.repository import BaseRepository
from reddoor.matching.models import MatchingStateSnapshot
from reddoor.persistence.snapshot import parse_matching_state

logger = structlog.get_logger(__name__)


class SwipeRepository(BaseRepository[SwipeRow]):
    """Repository for swipes."""


class MatchRepository(BaseRepository[MatchRow]):
    """Repository for matches."""


class MatchingStateRepository:
    """Loads and saves the whole matching snapshot."""

    def __init__(self, swipes: SwipeRepository, matches: MatchRepository):
        self.swipes = swipes
        self.matches = matches

    async def load_state(self) -> MatchingStateSnapshot:
        swipe_rows = await self.swipes.get_all(order_by="created_at_ms")
        match_rows = await self.matches.get_all(order_by="created_at_ms")
        return parse_matching_state(
            {
                "swipes": [
                    {
                        "fromUserId": r.from_user_id,
                        "toUserId": r.to_user_id,
                        "direction": r.direction,
                        "createdAtMs": r.created_at_ms,
                    }
                    for r in swipe_rows
                ],
                "matches": [
                    {
                        "matchId": r.match_id,
                        "userA": r.user_a,
                        "userB": r.user_b,
                        "createdAtMs": r.created_at_ms,
                    }
                    for r in match_rows
                ],
            }
        )

    async def save_state(self, snapshot: MatchingStateSnapshot) -> dict[str, int]:
        await self.swipes.delete_all()
        await self.matches.delete_all()

        swipes = {(s.from_user_id, s.to_user_id): s for s in snapshot.swipes}
        matches = {}
        seen_ids: set[str] = set()
        for m in snapshot.matches:
            if (m.user_a, m.user_b) in matches or m.match_id in seen_ids:
                continue
            seen_ids.add(m.match_id)
            matches[(m.user_a, m.user_b)] = m

        saved_swipes = await self.swipes.add_all(
            SwipeRow(
                from_user_id=s.from_user_id,
                to_user_id=s.to_user_id,
                direction=s.direction,
                created_at_ms=s.created_at_ms,
            )
            for s in swipes.values()
        )
        saved_matches = await self.matches.add_all(
            MatchRow(
                match_id=m.match_id,
                user_a=m.user_a,
                user_b=m.user_b,
                created_at_ms=m.created_at_ms,
            )
            for m in matches.values()
        )
        logger.debug("matching_state.saved", swipes=saved_swipes, matches=saved_matches)
        return {"swipes": saved_swipes, "matches": saved_matches}
