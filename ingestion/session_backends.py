"""Session persistence backends for ``core.session.store.SessionStore``.

Every backend stores the whole ``SessionState`` as one JSON blob under a
fixed key and honours the same contract:

    load()  -> SessionState | None   (None when absent or unreadable)
    save(state) -> None              (failure logged, write skipped)

Neither method raises. Malformed blobs are treated as absent.

Backends:
    InMemorySessionBackend   process-local, for tests and ephemeral servers
    JsonFileSessionBackend   single JSON file on disk (default)
    SQLiteSessionBackend     key/value row in a local SQLite database
    RedisSessionBackend      Redis string key, shared across workers
"""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from pathlib import Path
from typing import Any

import redis

from core.session.types import SessionState, state_from_dict, state_to_dict

logger = logging.getLogger(__name__)

STATE_KEY = "pattern-assistant-session"
DEFAULT_JSON_PATH = Path("data/session_state.json")
DEFAULT_DB_PATH = Path("data/session_state.db")
_REDIS_NS = "pa:session:"

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS session_state (
    state_key   TEXT PRIMARY KEY,
    payload     TEXT NOT NULL
);
"""

_DECODE_ERRORS = (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError)


def encode_state(state: SessionState) -> str:
    """Serialize *state* to the persisted JSON blob."""
    return json.dumps(state_to_dict(state))


def decode_state(blob: str | bytes | None) -> SessionState | None:
    """Parse a persisted blob; ``None`` if absent or malformed."""
    if not blob:
        return None
    try:
        data: Any = json.loads(blob)
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return state_from_dict(data)
    except _DECODE_ERRORS as exc:
        logger.warning("Session blob unparsable (%s) — treating as absent", exc)
        return None


class InMemorySessionBackend:
    """Keeps the encoded blob in memory.

    Stores the serialized form rather than the object so tests exercise
    the same encode/decode path as the durable backends.
    """

    def __init__(self, blob: str | None = None) -> None:
        self.blob = blob
        self.saves = 0

    def load(self) -> SessionState | None:
        return decode_state(self.blob)

    def save(self, state: SessionState) -> None:
        self.blob = encode_state(state)
        self.saves += 1


class JsonFileSessionBackend:
    """Persists the state as a JSON file.

    Writes go to a sibling temp file first and are moved into place, so a
    crash mid-write never leaves a truncated blob.

    Args:
        path: JSON file path. Parent directories are created on save.
    """

    def __init__(self, path: Path = DEFAULT_JSON_PATH) -> None:
        self.path = Path(path)

    def load(self) -> SessionState | None:
        if not self.path.exists():
            return None
        try:
            blob = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("JsonFileSessionBackend: read failed (%s) — treating as absent", exc)
            return None
        return decode_state(blob)

    def save(self, state: SessionState) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(encode_state(state), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            logger.warning("JsonFileSessionBackend: write failed (%s) — write skipped", exc)


class SQLiteSessionBackend:
    """Persists the state as one row of a local SQLite table.

    Schema (auto-created on first use)::

        session_state(state_key TEXT PK, payload TEXT)

    Args:
        db_path: SQLite database file. Created on first use.
        key: Row key; lets several stores share one database.
    """

    def __init__(self, db_path: Path = DEFAULT_DB_PATH, key: str = STATE_KEY) -> None:
        self._db_path = Path(db_path)
        self._key = key
        try:
            self._ensure_schema()
        except (OSError, sqlite3.Error) as exc:
            logger.warning("SQLiteSessionBackend: schema setup failed (%s)", exc)

    def _connect(self) -> sqlite3.Connection:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._connect()
        try:
            with conn:
                conn.execute(_CREATE_TABLE_SQL)
        finally:
            conn.close()

    def load(self) -> SessionState | None:
        try:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT payload FROM session_state WHERE state_key = ?", (self._key,)
                ).fetchone()
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as exc:
            logger.warning("SQLiteSessionBackend: read failed (%s) — treating as absent", exc)
            return None
        return decode_state(row[0]) if row else None

    def save(self, state: SessionState) -> None:
        try:
            conn = self._connect()
            try:
                with conn:
                    conn.execute(
                        "INSERT OR REPLACE INTO session_state (state_key, payload) VALUES (?, ?)",
                        (self._key, encode_state(state)),
                    )
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as exc:
            logger.warning("SQLiteSessionBackend: write failed (%s) — write skipped", exc)


class RedisSessionBackend:
    """Persists the state under a Redis string key.

    Falls back gracefully if Redis is unavailable: loads return ``None``
    and saves are skipped, so the in-memory session keeps working.

    Args:
        redis_url: Connection URL (default: ``REDIS_URL`` env var or
            ``redis://localhost:6379/0``).
        key: Key suffix under the ``pa:session:`` namespace.
        client: Pre-built client; skips connecting (used by tests).
    """

    def __init__(
        self,
        redis_url: str | None = None,
        key: str = STATE_KEY,
        client: Any = None,
    ) -> None:
        self._key = f"{_REDIS_NS}{key}"
        self._client: Any = client
        if client is not None:
            return
        url = redis_url or os.environ.get("REDIS_URL", "redis://localhost:6379/0")
        try:
            self._client = redis.from_url(url, decode_responses=True, socket_timeout=0.5)
            self._client.ping()
            logger.info("RedisSessionBackend: connected to Redis at %s", url)
        except (redis.RedisError, ValueError) as exc:
            logger.warning("RedisSessionBackend: Redis unavailable (%s) — persistence disabled", exc)
            self._client = None

    @property
    def available(self) -> bool:
        """True if a Redis client is connected."""
        return self._client is not None

    def load(self) -> SessionState | None:
        if self._client is None:
            return None
        try:
            blob = self._client.get(self._key)
        except redis.RedisError as exc:
            logger.warning("RedisSessionBackend: read failed (%s) — treating as absent", exc)
            return None
        return decode_state(blob)

    def save(self, state: SessionState) -> None:
        if self._client is None:
            return
        try:
            self._client.set(self._key, encode_state(state))
        except redis.RedisError as exc:
            logger.warning("RedisSessionBackend: write failed (%s) — write skipped", exc)
