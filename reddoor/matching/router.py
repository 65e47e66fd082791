"""FastAPI router for swipes and matches."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from reddoor.core.http import current_session, get_container, to_json, unwrap
from reddoor.core.results import ErrorCode, err
from reddoor.gate.models import Session

router = APIRouter(prefix="/matching", tags=["matching"])


class SwipeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    to_user_id: Any = None
    direction: Any = None


@router.post("/swipe")
def swipe(
    body: SwipeRequest,
    session: Session = Depends(current_session),
    container: Any = Depends(get_container),
):
    """Record a like or pass; the response says whether a match was created."""
    result = container.matching.record_swipe(session, body.to_user_id, body.direction)
    return to_json(unwrap(result))


@router.get("/matches")
def list_matches(
    session: Session = Depends(current_session),
    container: Any = Depends(get_container),
):
    if not session.user_id or not session.user_id.strip():
        unwrap(err(ErrorCode.INVALID_SESSION, "Invalid session."))
    matches = unwrap(container.matching.list_matches(session.user_id))
    return {"matches": to_json(matches)}
