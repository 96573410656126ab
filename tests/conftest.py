"""
Shared fixtures for the test suite.

Centralizes reusable test infrastructure so individual test files
don't need to repeat corpus/session/override boilerplate.
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from core.corpus.types import CorpusIndex, index_from_dict
from core.session.store import SessionStore
from ingestion.session_backends import InMemorySessionBackend

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VALID_CODE = """setcpm(120)
$: note("c4 e4 g4").s("piano")
$: s("bd ~ sd ~").gain(0.8)
$: note("<c2 g2>").s("sawtooth").lpf(400)
$: s("hh*8").gain(0.4)"""
"""Five-line, four-voice script that passes every default check."""

START_MS = 1_700_000_000_000
"""Epoch-ms start of the deterministic test clock."""


def make_song(song_id: str, **overrides: Any) -> dict[str, Any]:
    """Build one ``songs[]`` element of the index JSON.

    Default attributes can be overridden via keyword arguments.
    """
    slug = song_id.replace("-", "")
    defaults: dict[str, Any] = {
        "id": song_id,
        "slug": slug,
        "title": song_id.replace("-", " ").title(),
        "prompt_seeds": [f"{song_id.replace('-', ' ')} pattern"],
        "snippet": f'setcpm(100)\n$: s("bd") // {song_id}',
        "aliases": [slug],
        "title_tokens": song_id.split("-"),
        "path_tokens": song_id.split("-"),
        "bpm": None,
        "genres": [],
        "moods": [],
        "techniques": [],
        "instruments": [],
        "source_path": f"{song_id}.js",
        "source_url": f"https://example.invalid/{song_id}",
    }
    defaults.update(overrides)
    return defaults


CORPUS_SONGS: list[dict[str, Any]] = [
    make_song(
        "stranger-things",
        aliases=["stranger things", "strangerthings"],
        bpm=118,
        genres=["synthwave"],
        moods=["dark", "nostalgic"],
        techniques=["arpeggio"],
        instruments=["synth"],
        prompt_seeds=["dark synthwave arpeggio", "80s retro theme"],
    ),
    make_song(
        "acid-rain",
        bpm=132,
        genres=["acid", "techno"],
        moods=["gritty"],
        techniques=["filter"],
        instruments=["bass"],
        prompt_seeds=["squelchy acid bassline"],
    ),
    make_song(
        "ocean-drift",
        bpm=70,
        genres=["ambient"],
        moods=["calm", "spacious"],
        techniques=["pad"],
        instruments=["pad"],
        prompt_seeds=["calm ambient pad"],
    ),
    make_song(
        "night-drive",
        bpm=100,
        genres=["synthwave"],
        moods=["nostalgic"],
        techniques=["arpeggio"],
        instruments=["synth"],
        prompt_seeds=["retro night drive"],
    ),
    make_song(
        "jungle-run",
        bpm=174,
        genres=["dnb"],
        moods=["intense"],
        techniques=["breakbeat"],
        instruments=["drums"],
        prompt_seeds=["fast jungle breaks"],
    ),
]


# ---------------------------------------------------------------------------
# Corpus fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def corpus_dict() -> dict[str, Any]:
    """Raw index document for the synthetic five-song corpus."""
    return {
        "generated_at": "2026-01-01T00:00:00Z",
        "version": "1",
        "songs": [dict(s) for s in CORPUS_SONGS],
    }


@pytest.fixture()
def corpus_index(corpus_dict: dict[str, Any]) -> CorpusIndex:
    return index_from_dict(corpus_dict)


@pytest.fixture()
def index_file(tmp_path: Path, corpus_dict: dict[str, Any]) -> Path:
    """Synthetic index written to ``tmp_path/index.json``."""
    path = tmp_path / "index.json"
    path.write_text(json.dumps(corpus_dict), encoding="utf-8")
    return path


@pytest.fixture()
def priors_dict() -> dict[str, Any]:
    return {
        "summary_bullets": ["Most songs use 3-5 voices", "Filters move slowly"],
        "common_moves": ["lpf sweeps"],
        "do_more_of": ["layer a pad under the lead"],
        "avoid": ["more than 6 voices"],
        "tempo_distribution": [{"range": "90-120", "count": 12}],
        "typical_voice_count": {"min": 2, "max": 6, "common": 4},
        "most_common_instruments": [{"name": "synth", "count": 20}],
        "most_common_techniques": [
            {"name": "arpeggio", "count": 15},
            {"name": "filter", "count": 9},
        ],
    }


# ---------------------------------------------------------------------------
# Session fixtures
# ---------------------------------------------------------------------------


def make_clock(start: int = START_MS, step: int = 1000) -> Callable[[], int]:
    """Deterministic millisecond clock advancing by *step* per call."""
    ticks = {"now": start - step}

    def clock() -> int:
        ticks["now"] += step
        return ticks["now"]

    return clock


@pytest.fixture()
def valid_code() -> str:
    return VALID_CODE


@pytest.fixture()
def clock() -> Callable[[], int]:
    return make_clock()


@pytest.fixture()
def memory_backend() -> InMemorySessionBackend:
    return InMemorySessionBackend()


@pytest.fixture()
def session_store(
    memory_backend: InMemorySessionBackend, clock: Callable[[], int]
) -> SessionStore:
    """Session store over an in-memory backend with a deterministic clock."""
    return SessionStore(memory_backend, clock=clock)
