"""Editing session types — pure value objects.

These are the core data contracts for the session store.
No I/O, no clock reads, no imports from ingestion/ or api/.
Timestamps are integer milliseconds since the Unix epoch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

GenerationMode = Literal["new", "edit"]
ChatRole = Literal["user", "assistant"]

_MODES: frozenset[str] = frozenset({"new", "edit"})
_ROLES: frozenset[str] = frozenset({"user", "assistant"})


@dataclass(frozen=True)
class SongVersion:
    """A snapshot of code that was replaced by a later accepted script.

    Attributes:
        id: ``version_<ms>_<suffix>`` identifier.
        created_at: When the snapshot was taken (ms).
        code: The replaced script.
        note: Free-text label, defaults to ``"version N"``.
    """

    id: str
    created_at: int
    code: str
    note: str | None = None


@dataclass(frozen=True)
class ChatMessage:
    """One transcript message.

    Attributes:
        role: ``"user"`` or ``"assistant"``.
        content: Message text.
        created_at: When the message was appended (ms).
        code: Script attached to an assistant reply, if any.
    """

    role: ChatRole
    content: str
    created_at: int
    code: str | None = None

    def __post_init__(self) -> None:
        if self.role not in _ROLES:
            raise ValueError(f"role must be one of {sorted(_ROLES)}, got {self.role!r}")


@dataclass(frozen=True)
class SongSession:
    """The durable per-user working state.

    Attributes:
        session_id: ``session_<ms>_<suffix>`` identifier.
        created_at: Creation time (ms).
        updated_at: Time of the last mutation (ms).
        current_code: Latest applied script.
        versions: Prior scripts, oldest first; never includes ``current_code``.
        chat: Transcript, oldest first.
    """

    session_id: str
    created_at: int
    updated_at: int
    current_code: str
    versions: tuple[SongVersion, ...] = ()
    chat: tuple[ChatMessage, ...] = ()


@dataclass(frozen=True)
class SessionState:
    """Process-wide session aggregate.

    Attributes:
        current_session: Active session, ``None`` before first use.
        mode: ``"new"`` right after starting a session, ``"edit"`` otherwise.
        previous_sessions: Archived sessions, newest first, bounded.
    """

    current_session: SongSession | None = None
    mode: GenerationMode = "edit"
    previous_sessions: tuple[SongSession, ...] = ()

    def __post_init__(self) -> None:
        if self.mode not in _MODES:
            raise ValueError(f"mode must be one of {sorted(_MODES)}, got {self.mode!r}")


# ---------------------------------------------------------------------------
# JSON-compatible encoding (camelCase keys, matching the persisted blob)
# ---------------------------------------------------------------------------


def _version_to_dict(version: SongVersion) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": version.id,
        "createdAt": version.created_at,
        "code": version.code,
    }
    if version.note is not None:
        data["note"] = version.note
    return data


def _message_to_dict(message: ChatMessage) -> dict[str, Any]:
    data: dict[str, Any] = {
        "role": message.role,
        "content": message.content,
        "createdAt": message.created_at,
    }
    if message.code is not None:
        data["code"] = message.code
    return data


def session_to_dict(session: SongSession) -> dict[str, Any]:
    """Encode a session as a JSON-compatible dict."""
    return {
        "sessionId": session.session_id,
        "createdAt": session.created_at,
        "updatedAt": session.updated_at,
        "currentCode": session.current_code,
        "versions": [_version_to_dict(v) for v in session.versions],
        "chat": [_message_to_dict(m) for m in session.chat],
    }


def state_to_dict(state: SessionState) -> dict[str, Any]:
    """Encode the full state as a JSON-compatible dict."""
    return {
        "currentSession": (
            session_to_dict(state.current_session) if state.current_session else None
        ),
        "mode": state.mode,
        "previousSessions": [session_to_dict(s) for s in state.previous_sessions],
    }


def session_from_dict(data: dict[str, Any]) -> SongSession:
    """Decode a session dict.

    Raises:
        KeyError / TypeError / ValueError: On a malformed payload.
    """
    return SongSession(
        session_id=str(data["sessionId"]),
        created_at=int(data["createdAt"]),
        updated_at=int(data["updatedAt"]),
        current_code=str(data.get("currentCode") or ""),
        versions=tuple(
            SongVersion(
                id=str(v["id"]),
                created_at=int(v["createdAt"]),
                code=str(v["code"]),
                note=v.get("note"),
            )
            for v in data.get("versions") or []
        ),
        chat=tuple(
            ChatMessage(
                role=m["role"],
                content=str(m["content"]),
                created_at=int(m["createdAt"]),
                code=m.get("code"),
            )
            for m in data.get("chat") or []
        ),
    )


def state_from_dict(data: dict[str, Any]) -> SessionState:
    """Decode the full state dict.

    Raises:
        KeyError / TypeError / ValueError: On a malformed payload.
    """
    current = data.get("currentSession")
    mode = data.get("mode")
    if mode not in _MODES:
        # Unknown stored modes resume editing
        mode = "edit"
    return SessionState(
        current_session=session_from_dict(current) if current else None,
        mode=mode,
        previous_sessions=tuple(session_from_dict(s) for s in data.get("previousSessions") or []),
    )
