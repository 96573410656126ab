"""Session store — the single mutable aggregate behind the editor.

Every mutating call follows the same protocol, under one lock:

    1. build the next immutable ``SessionState``
    2. persist it through the injected ``SessionBackend``
    3. notify subscribers

Persistence failures are logged and never abort the in-memory mutation.
``commit_code`` (and ``apply_new_code``, its boolean form) is the only entry
point that grows ``versions``, and it never changes ``mode``; mode changes only through ``start_new_session``.
"""

from __future__ import annotations

import logging
import random
import string
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Protocol, runtime_checkable

from core.session.types import (
    ChatMessage,
    ChatRole,
    SessionState,
    SongSession,
    SongVersion,
)
from core.text import is_code_unchanged

logger = logging.getLogger(__name__)

MAX_PREVIOUS_SESSIONS = 10

DEFAULT_CODE = """setcpm(75)

// pad
$: note("<[g3,bb3,d4] [f3,a3,c4] [eb3,g3,bb3] [f3,a3,c4]>")
  .s("sawtooth")
  .lpf(800)
  .gain(0.3)
  .slow(2)
  .room(0.4)

// bass
$: note("g2 ~ f2 ~ eb2 ~ f2 ~").s("sine").lpf(300).gain(0.4).slow(2)

// drums
$: s("bd ~ ~ ~ bd ~ ~ ~").gain(0.25).lpf(200)

// shimmer
$: note("g5 ~ ~ bb5 ~ ~ d6 ~").s("sine").gain(0.2).delay(0.3)
"""

Listener = Callable[[SessionState], None]

_ID_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class CodeCommit:
    """Result of ``SessionStore.commit_code``.

    Attributes:
        version_recorded: True if the outgoing script was snapshotted.
        unchanged: True if the new script equals the outgoing one, whitespace aside.
        version_count: Versions in the session after the commit.
    """

    version_recorded: bool
    unchanged: bool
    version_count: int


@runtime_checkable
class SessionBackend(Protocol):
    """Persistence strategy for the whole ``SessionState``.

    Implementations must not raise: a failed load returns ``None`` and a
    failed save is logged and skipped.
    """

    def load(self) -> SessionState | None:
        """Return the stored state, or ``None`` if absent or unreadable."""
        ...

    def save(self, state: SessionState) -> None:
        """Persist *state*, replacing any previous value."""
        ...


def _now_ms() -> int:
    return int(time.time() * 1000)


def _make_id(prefix: str, now: int) -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"{prefix}_{now}_{suffix}"


class SessionStore:
    """Versioned editing session with persistence and change notification.

    Thread-safety: every public mutator runs under a re-entrant lock, so
    the compare-and-append in ``commit_code`` is atomic with respect to
    concurrent readers of ``current_code``.

    Args:
        backend: Persistence strategy. State is loaded from it once, here.
        clock: Millisecond clock; injectable for deterministic tests.
        max_previous_sessions: Archive cap; oldest sessions are evicted.
    """

    def __init__(
        self,
        backend: SessionBackend,
        clock: Callable[[], int] = _now_ms,
        max_previous_sessions: int = MAX_PREVIOUS_SESSIONS,
    ) -> None:
        if max_previous_sessions < 0:
            raise ValueError(
                f"max_previous_sessions must be non-negative, got {max_previous_sessions}"
            )
        self._backend = backend
        self._clock = clock
        self._max_previous = max_previous_sessions
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._state = self._load_initial_state()

    def _load_initial_state(self) -> SessionState:
        try:
            loaded = self._backend.load()
        except Exception as exc:  # noqa: BLE001
            logger.warning("SessionStore: failed to load state (%s) — starting fresh", exc)
            loaded = None
        if loaded is None:
            return SessionState()
        # A reload always resumes editing; "new" never survives a restart
        return replace(loaded, mode="edit")

    # ------------------------------------------------------------------ #
    # Observation                                                          #
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> SessionState:
        """Current immutable state snapshot."""
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, state: SessionState) -> None:
        """Apply *state*, persist it, then notify subscribers."""
        self._state = state
        try:
            self._backend.save(state)
        except Exception as exc:  # noqa: BLE001
            logger.warning("SessionStore: persist failed (%s) — write skipped", exc)
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:  # noqa: BLE001
                logger.exception("SessionStore: subscriber raised")

    def _commit_session(self, session: SongSession) -> None:
        self._commit(replace(self._state, current_session=session))

    # ------------------------------------------------------------------ #
    # Mutations                                                            #
    # ------------------------------------------------------------------ #

    def start_new_session(self, initial_code: str | None = None) -> SongSession:
        """Start a fresh session in ``"new"`` mode.

        The outgoing session is archived (newest first, capped) only if it
        has at least one chat message.

        Args:
            initial_code: Starting script; ``DEFAULT_CODE`` when omitted or empty.

        Returns:
            The new session.
        """
        with self._lock:
            now = self._clock()
            previous = self._state.previous_sessions
            outgoing = self._state.current_session
            if outgoing is not None and outgoing.chat:
                previous = ((outgoing,) + previous)[: self._max_previous]

            session = SongSession(
                session_id=_make_id("session", now),
                created_at=now,
                updated_at=now,
                current_code=initial_code or DEFAULT_CODE,
            )
            self._commit(
                SessionState(current_session=session, mode="new", previous_sessions=previous)
            )
            return session

    def ensure_session(self) -> SongSession:
        """Return the current session, starting one if there is none."""
        with self._lock:
            if self._state.current_session is None:
                return self.start_new_session()
            return self._state.current_session

    def _append_message(self, role: ChatRole, text: str, code: str | None) -> ChatMessage:
        with self._lock:
            session = self.ensure_session()
            now = self._clock()
            message = ChatMessage(role=role, content=text, created_at=now, code=code)
            self._commit_session(replace(session, chat=session.chat + (message,), updated_at=now))
            return message

    def append_user_message(self, text: str) -> ChatMessage:
        """Append a user message to the transcript."""
        return self._append_message("user", text, None)

    def append_assistant_message(self, text: str, code: str | None = None) -> ChatMessage:
        """Append an assistant reply, optionally carrying its script."""
        return self._append_message("assistant", text, code)

    def update_last_assistant_message(self, text: str, code: str | None = None) -> bool:
        """Replace the content (and code) of the trailing assistant message.

        Used while streaming a reply. No-op when there is no session or the
        last message is not from the assistant.

        Returns:
            True if a message was updated.
        """
        with self._lock:
            session = self._state.current_session
            if session is None or not session.chat or session.chat[-1].role != "assistant":
                return False
            now = self._clock()
            last = replace(session.chat[-1], content=text, code=code)
            self._commit_session(
                replace(session, chat=session.chat[:-1] + (last,), updated_at=now)
            )
            return True

    def apply_new_code(self, code: str, note: str | None = None) -> bool:
        """Make *code* current; True if a version was appended.

        See ``commit_code``.
        """
        return self.commit_code(code, note).version_recorded

    def commit_code(self, code: str, note: str | None = None) -> CodeCommit:
        """Make *code* current, snapshotting the outgoing script.

        A version is appended only when the outgoing ``current_code`` is
        non-empty and differs from *code* beyond whitespace. ``mode`` is
        left untouched.

        Args:
            code: Accepted script.
            note: Version label; defaults to ``"version N"``.

        Returns:
            ``CodeCommit`` describing the change, read under the store lock.
        """
        with self._lock:
            session = self.ensure_session()
            now = self._clock()
            versions = session.versions
            unchanged = is_code_unchanged(session.current_code, code)
            appended = bool(session.current_code.strip()) and not unchanged
            if appended:
                versions = versions + (
                    SongVersion(
                        id=_make_id("version", now),
                        created_at=now,
                        code=session.current_code,
                        note=note or f"version {len(versions) + 1}",
                    ),
                )
            self._commit_session(
                replace(session, current_code=code, versions=versions, updated_at=now)
            )
            return CodeCommit(
                version_recorded=appended, unchanged=unchanged, version_count=len(versions)
            )

    def set_current_code(self, code: str) -> None:
        """Replace the current script without recording a version."""
        with self._lock:
            session = self.ensure_session()
            self._commit_session(replace(session, current_code=code, updated_at=self._clock()))

    def clear_chat(self) -> None:
        """Empty the transcript of the current session, keeping its code."""
        with self._lock:
            session = self._state.current_session
            if session is None:
                return
            self._commit_session(replace(session, chat=(), updated_at=self._clock()))
