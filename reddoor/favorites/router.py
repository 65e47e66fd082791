"""FastAPI router for favorites."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from reddoor.core.http import current_session, get_container, to_json, unwrap
from reddoor.gate.models import Session

router = APIRouter(prefix="/favorites", tags=["favorites"])


class ToggleRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    target_user_id: Any = None


@router.get("")
def list_favorites(
    session: Session = Depends(current_session),
    container: Any = Depends(get_container),
):
    return {"favorites": unwrap(container.favorites.list(session))}


@router.post("/toggle")
def toggle_favorite(
    body: ToggleRequest,
    session: Session = Depends(current_session),
    container: Any = Depends(get_container),
):
    return to_json(unwrap(container.favorites.toggle(session, body.target_user_id)))
