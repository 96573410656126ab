"""
FastAPI dependency providers.

Builds the process-wide singletons once, from environment settings
(``.env`` supported via python-dotenv), and reuses them across requests:
the corpus loader, the snippet roots and the session store.

Environment:
    CORPUS_INDEX_PATH    explicit index path, searched before the defaults
    STYLE_PRIORS_PATH    explicit style-priors path
    SNIPPET_ROOT         directory holding the corpus source scripts
    SESSION_BACKEND      json (default) | sqlite | redis | memory
    SESSION_STORE_PATH   file for the json / sqlite backends
    REDIS_URL            connection URL for the redis backend
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from core.corpus.types import CorpusIndex, StylePriors
from core.session.store import SessionBackend, SessionStore
from ingestion.corpus_loader import CorpusLoader
from ingestion.session_backends import (
    DEFAULT_DB_PATH,
    DEFAULT_JSON_PATH,
    InMemorySessionBackend,
    JsonFileSessionBackend,
    RedisSessionBackend,
    SQLiteSessionBackend,
)
from ingestion.snippets import DEFAULT_SNIPPET_ROOTS

logger = logging.getLogger(__name__)

_corpus_loader: CorpusLoader | None = None


def get_corpus_loader() -> CorpusLoader:
    """
    Return a cached ``CorpusLoader`` singleton.

    Reads ``CORPUS_INDEX_PATH`` / ``STYLE_PRIORS_PATH`` on first call.
    The documents themselves are read lazily, once, by the loader.
    """
    global _corpus_loader  # noqa: PLW0603
    if _corpus_loader is None:
        load_dotenv()
        _corpus_loader = CorpusLoader.with_overrides(
            index_path=os.environ.get("CORPUS_INDEX_PATH"),
            priors_path=os.environ.get("STYLE_PRIORS_PATH"),
        )
    return _corpus_loader


def get_corpus_index() -> CorpusIndex | None:
    """Return the loaded corpus index, or ``None`` if unavailable."""
    return get_corpus_loader().load_index()


def get_style_priors() -> StylePriors | None:
    """Return the loaded style priors, or ``None`` if unavailable."""
    return get_corpus_loader().load_priors()


def get_snippet_roots() -> tuple[Path, ...]:
    """Return snippet search roots, ``SNIPPET_ROOT`` first when set."""
    load_dotenv()
    root = os.environ.get("SNIPPET_ROOT")
    if root:
        return (Path(root),) + DEFAULT_SNIPPET_ROOTS
    return DEFAULT_SNIPPET_ROOTS


def create_session_backend() -> SessionBackend:
    """Build the persistence backend named by ``SESSION_BACKEND``.

    Unknown names fall back to the JSON file backend with a warning.
    """
    load_dotenv()
    kind = os.environ.get("SESSION_BACKEND", "json").strip().lower()
    path = os.environ.get("SESSION_STORE_PATH")

    if kind == "memory":
        return InMemorySessionBackend()
    if kind == "sqlite":
        return SQLiteSessionBackend(Path(path) if path else DEFAULT_DB_PATH)
    if kind == "redis":
        return RedisSessionBackend(os.environ.get("REDIS_URL"))
    if kind != "json":
        logger.warning("Unknown SESSION_BACKEND %r — using json", kind)
    return JsonFileSessionBackend(Path(path) if path else DEFAULT_JSON_PATH)


_session_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    """Return a cached ``SessionStore`` singleton.

    Created on first call; persisted state is loaded from the backend then.
    """
    global _session_store  # noqa: PLW0603
    if _session_store is None:
        backend = create_session_backend()
        _session_store = SessionStore(backend)
        logger.info("SessionStore ready (backend=%s)", type(backend).__name__)
    return _session_store
