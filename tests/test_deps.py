"""Tests for api/deps.py — environment-driven singletons."""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
import redis

from api import deps
from ingestion.session_backends import (
    InMemorySessionBackend,
    JsonFileSessionBackend,
    RedisSessionBackend,
    SQLiteSessionBackend,
)
from ingestion.snippets import DEFAULT_SNIPPET_ROOTS


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CORPUS_INDEX_PATH",
        "STYLE_PRIORS_PATH",
        "SNIPPET_ROOT",
        "SESSION_BACKEND",
        "SESSION_STORE_PATH",
        "REDIS_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(deps, "load_dotenv", lambda: None)
    monkeypatch.setattr(deps, "_corpus_loader", None)
    monkeypatch.setattr(deps, "_session_store", None)


class TestCreateSessionBackend:
    def test_default_is_json(self) -> None:
        backend = deps.create_session_backend()
        assert isinstance(backend, JsonFileSessionBackend)
        assert backend.path == Path("data/session_state.json")

    def test_json_with_path(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("SESSION_STORE_PATH", str(tmp_path / "s.json"))
        assert deps.create_session_backend().path == tmp_path / "s.json"

    def test_memory(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SESSION_BACKEND", "Memory")
        assert isinstance(deps.create_session_backend(), InMemorySessionBackend)

    def test_sqlite(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("SESSION_BACKEND", "sqlite")
        monkeypatch.setenv("SESSION_STORE_PATH", str(tmp_path / "s.db"))
        assert isinstance(deps.create_session_backend(), SQLiteSessionBackend)
        assert (tmp_path / "s.db").exists()

    def test_redis_unreachable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SESSION_BACKEND", "redis")
        monkeypatch.setenv("REDIS_URL", "redis://nowhere:6379/0")
        with patch("redis.from_url", side_effect=redis.ConnectionError("refused")):
            backend = deps.create_session_backend()
        assert isinstance(backend, RedisSessionBackend)
        assert not backend.available

    def test_unknown_falls_back_to_json(
        self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        monkeypatch.setenv("SESSION_BACKEND", "mongo")
        with caplog.at_level(logging.WARNING):
            backend = deps.create_session_backend()
        assert isinstance(backend, JsonFileSessionBackend)
        assert "Unknown SESSION_BACKEND" in caplog.text


class TestSingletons:
    def test_session_store_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SESSION_BACKEND", "memory")
        assert deps.get_session_store() is deps.get_session_store()

    def test_corpus_from_env_path(self, monkeypatch: pytest.MonkeyPatch, index_file: Path) -> None:
        monkeypatch.setenv("CORPUS_INDEX_PATH", str(index_file))
        index = deps.get_corpus_index()
        assert index is not None
        assert len(index) == 5
        assert deps.get_corpus_loader() is deps.get_corpus_loader()

    def test_snippet_roots_default(self) -> None:
        assert deps.get_snippet_roots() == DEFAULT_SNIPPET_ROOTS

    def test_snippet_root_first(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("SNIPPET_ROOT", str(tmp_path))
        assert deps.get_snippet_roots() == (tmp_path,) + DEFAULT_SNIPPET_ROOTS
