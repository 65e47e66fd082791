"""FastAPI router for chat."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from reddoor.core.http import current_session, get_container, to_json, unwrap
from reddoor.gate.models import Session
from reddoor.messaging.models import SendMessageInput

router = APIRouter(prefix="/chat", tags=["chat"])


class MarkReadRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    chat_kind: Any = None
    other_key: Any = None


@router.post("/send")
def send_message(
    body: SendMessageInput,
    session: Session = Depends(current_session),
    container: Any = Depends(get_container),
):
    message = unwrap(container.messaging.send_message(session, body))
    return {"message": to_json(message)}


@router.get("/messages")
def list_messages(
    chat_kind: Optional[str] = Query(default=None, alias="chatKind"),
    other_key: Optional[str] = Query(default=None, alias="otherKey"),
    session: Session = Depends(current_session),
    container: Any = Depends(get_container),
):
    """Thread history; 410 CHAT_EXPIRED once when Cruise history runs out."""
    messages = unwrap(container.messaging.list_messages(session, chat_kind, other_key))
    return {"messages": to_json(messages)}


@router.get("/threads")
def list_threads(
    chat_kind: Optional[str] = Query(default=None, alias="chatKind"),
    session: Session = Depends(current_session),
    container: Any = Depends(get_container),
):
    threads = unwrap(container.messaging.list_threads(session, chat_kind))
    return {"threads": to_json(threads)}


@router.post("/read")
def mark_read(
    body: MarkReadRequest,
    session: Session = Depends(current_session),
    container: Any = Depends(get_container),
):
    receipt = unwrap(container.messaging.mark_read(session, body.chat_kind, body.other_key))
    return to_json(receipt)


@router.get("/metrics")
def metrics(container: Any = Depends(get_container)):
    return container.messaging.metrics.get_summary()
