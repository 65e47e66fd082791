"""FastAPI router for the block list."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from reddoor.core.http import current_session, get_container, to_json, unwrap
from reddoor.gate.models import Session, derive_actor_key

router = APIRouter(tags=["blocks"])


class BlockRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    target_key: Any = None


@router.post("/block")
def block(
    body: BlockRequest,
    session: Session = Depends(current_session),
    container: Any = Depends(get_container),
):
    record = unwrap(container.blocks.block(session, body.target_key))
    return {"block": to_json(record)}


@router.post("/unblock")
def unblock(
    body: BlockRequest,
    session: Session = Depends(current_session),
    container: Any = Depends(get_container),
):
    unwrap(container.blocks.unblock(session, body.target_key))
    return {"ok": True}


@router.get("/blocked")
def list_blocked(
    session: Session = Depends(current_session),
    container: Any = Depends(get_container),
):
    return {"blocked": container.blocks.list_blocked(derive_actor_key(session))}
