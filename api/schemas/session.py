"""
Pydantic schemas for the ``/session`` endpoints.

Response models mirror ``core.session.types`` field-for-field, so a state
snapshot validates directly from ``dataclasses.asdict``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator


class SongVersionResponse(BaseModel):
    id: str
    created_at: int
    code: str
    note: str | None = None


class ChatMessageResponse(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    created_at: int
    code: str | None = None


class SongSessionResponse(BaseModel):
    session_id: str
    created_at: int
    updated_at: int
    current_code: str
    versions: list[SongVersionResponse] = Field(default_factory=list)
    chat: list[ChatMessageResponse] = Field(default_factory=list)


class SessionStateResponse(BaseModel):
    """Full session state snapshot."""

    current_session: SongSessionResponse | None = None
    mode: Literal["new", "edit"] = "edit"
    previous_sessions: list[SongSessionResponse] = Field(default_factory=list)


class NewSessionRequest(BaseModel):
    """Request body for ``POST /session/new``."""

    initial_code: str | None = Field(
        default=None, description="Starting script; the default template when omitted."
    )


class AppendMessageRequest(BaseModel):
    """Request body for ``POST /session/messages``."""

    role: Literal["user", "assistant"]
    content: str = Field(..., max_length=100_000)
    code: str | None = Field(default=None, description="Script attached to an assistant reply.")

    @field_validator("content")
    @classmethod
    def content_must_not_be_empty(cls, v: str) -> str:
        """Validate that content is not empty or whitespace-only."""
        if not v.strip():
            raise ValueError("content must be a non-empty string")
        return v


class UpdateLastMessageRequest(BaseModel):
    """Request body for ``PATCH /session/messages/last``."""

    content: str = Field(..., max_length=100_000)
    code: str | None = None


class SetCodeRequest(BaseModel):
    """Request body for ``PUT /session/code``."""

    code: str = Field(..., max_length=100_000)


class ApplyCodeRequest(BaseModel):
    """Request body for ``POST /session/code``."""

    code: str = Field(..., max_length=100_000)
    note: str | None = Field(default=None, max_length=200)


class ApplyCodeResponse(BaseModel):
    """Response body for ``POST /session/code``."""

    version_recorded: bool
    state: SessionStateResponse
