"""REST endpoints for the editing session."""

from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_session_store
from api.schemas.session import (
    AppendMessageRequest,
    ApplyCodeRequest,
    ApplyCodeResponse,
    NewSessionRequest,
    SessionStateResponse,
    SetCodeRequest,
    UpdateLastMessageRequest,
)
from core.session.store import SessionStore
from core.session.types import SessionState
from infrastructure.metrics import record_session_commit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/session", tags=["session"])

Store = Annotated[SessionStore, Depends(get_session_store)]


def _to_response(state: SessionState) -> SessionStateResponse:
    """Convert a SessionState snapshot to its response model."""
    return SessionStateResponse.model_validate(asdict(state))


@router.get("", response_model=SessionStateResponse)
def get_session(store: Store) -> SessionStateResponse:
    """Return the full session state."""
    return _to_response(store.state)


@router.post("/new", response_model=SessionStateResponse, status_code=201)
def new_session(body: NewSessionRequest, store: Store) -> SessionStateResponse:
    """Archive the current session (if it has chat) and start a fresh one."""
    session = store.start_new_session(body.initial_code)
    logger.info("Started session %s", session.session_id)
    return _to_response(store.state)


@router.post("/messages", response_model=SessionStateResponse, status_code=201)
def append_message(body: AppendMessageRequest, store: Store) -> SessionStateResponse:
    """Append a user or assistant message to the transcript."""
    if body.role == "user":
        store.append_user_message(body.content)
    else:
        store.append_assistant_message(body.content, code=body.code)
    return _to_response(store.state)


@router.patch("/messages/last", response_model=SessionStateResponse)
def update_last_message(body: UpdateLastMessageRequest, store: Store) -> SessionStateResponse:
    """Replace the trailing assistant message (streaming updates)."""
    if not store.update_last_assistant_message(body.content, code=body.code):
        raise HTTPException(status_code=409, detail="Last message is not from the assistant")
    return _to_response(store.state)


@router.put("/code", response_model=SessionStateResponse)
def set_code(body: SetCodeRequest, store: Store) -> SessionStateResponse:
    """Replace the current script without recording a version."""
    store.set_current_code(body.code)
    return _to_response(store.state)


@router.post("/code", response_model=ApplyCodeResponse)
def apply_code(body: ApplyCodeRequest, store: Store) -> ApplyCodeResponse:
    """Apply a script, snapshotting the outgoing one as a version if it changed."""
    recorded = store.apply_new_code(body.code, note=body.note)
    record_session_commit(version_recorded=recorded)
    return ApplyCodeResponse(version_recorded=recorded, state=_to_response(store.state))


@router.delete("/chat", response_model=SessionStateResponse)
def clear_chat(store: Store) -> SessionStateResponse:
    """Empty the transcript, keeping the current script and versions."""
    store.clear_chat()
    return _to_response(store.state)
