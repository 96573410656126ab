"""Exemplar corpus types — pure value objects.

These are the data contracts for the indexed song corpus and the
style-priors summary produced by the offline indexer.
No I/O, no imports from ingestion/ or api/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CorpusEntry:
    """One indexed reference composition.

    Attributes:
        id: Stable unique identifier (slug from filename/path).
        slug: Normalized match key (e.g. ``"strangerthings"``).
        title: Best-effort title.
        prompt_seeds: Example natural-language prompts this entry should match.
        snippet: Bounded preview text of the pattern script.
        aliases: Alternate match strings derived from filename tokens.
        title_tokens: Tokenized title for word matching.
        path_tokens: Tokenized source path for word matching.
        bpm: Tempo parsed from the script, if present.
        genres: Controlled-vocabulary genre tags.
        moods: Controlled-vocabulary mood tags.
        techniques: Controlled-vocabulary technique tags.
        instruments: Synth / sample names used by the script.
        source_path: Relative path of the source file inside the dataset.
        source_url: Link to the source, if known.
        author: Author, if detectable.
        key: Musical key / scale, if detectable.
    """

    id: str
    slug: str
    title: str
    prompt_seeds: tuple[str, ...]
    snippet: str = ""
    aliases: tuple[str, ...] = ()
    title_tokens: tuple[str, ...] = ()
    path_tokens: tuple[str, ...] = ()
    bpm: float | None = None
    genres: tuple[str, ...] = ()
    moods: tuple[str, ...] = ()
    techniques: tuple[str, ...] = ()
    instruments: tuple[str, ...] = ()
    source_path: str = ""
    source_url: str = ""
    author: str | None = None
    key: str | None = None

    def __post_init__(self) -> None:
        if not self.id.strip():
            raise ValueError("id must not be empty")


@dataclass(frozen=True)
class CorpusIndex:
    """The full read-only corpus snapshot.

    Attributes:
        songs: Entries in corpus order (order is the retrieval tie-breaker).
        generated_at: ISO-8601 timestamp written by the indexer.
        version: Index format version.
    """

    songs: tuple[CorpusEntry, ...]
    generated_at: str = ""
    version: str = ""

    def get(self, entry_id: str) -> CorpusEntry | None:
        """Return the entry with *entry_id*, or ``None``."""
        for song in self.songs:
            if song.id == entry_id:
                return song
        return None

    def __len__(self) -> int:
        return len(self.songs)


@dataclass(frozen=True)
class StylePriors:
    """Corpus-wide "what good looks like" summary.

    Consumed as optional prompt hints; never required for correctness.
    """

    summary_bullets: tuple[str, ...] = ()
    common_moves: tuple[str, ...] = ()
    do_more_of: tuple[str, ...] = ()
    avoid: tuple[str, ...] = ()
    tempo_distribution: tuple[tuple[str, int], ...] = ()
    typical_voice_count: dict[str, int] = field(default_factory=dict)
    most_common_instruments: tuple[tuple[str, int], ...] = ()
    most_common_techniques: tuple[tuple[str, int], ...] = ()


# ---------------------------------------------------------------------------
# Dict decoding
# ---------------------------------------------------------------------------


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not value:
        return ()
    return tuple(str(v) for v in value)


def _optional_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    return float(value)


def entry_from_dict(data: dict[str, Any]) -> CorpusEntry:
    """Build a ``CorpusEntry`` from one ``songs[]`` element of the index JSON.

    Raises:
        KeyError: If ``id`` is missing.
        ValueError: If ``id`` is empty or ``bpm`` is not numeric.
    """
    entry_id = str(data["id"])
    return CorpusEntry(
        id=entry_id,
        slug=str(data.get("slug") or ""),
        title=str(data.get("title") or entry_id),
        prompt_seeds=_str_tuple(data.get("prompt_seeds")),
        snippet=str(data.get("snippet") or ""),
        aliases=_str_tuple(data.get("aliases")),
        title_tokens=_str_tuple(data.get("title_tokens")),
        path_tokens=_str_tuple(data.get("path_tokens")),
        bpm=_optional_float(data.get("bpm")),
        genres=_str_tuple(data.get("genres")),
        moods=_str_tuple(data.get("moods")),
        techniques=_str_tuple(data.get("techniques")),
        instruments=_str_tuple(data.get("instruments")),
        source_path=str(data.get("source_path") or ""),
        source_url=str(data.get("source_url") or ""),
        author=data.get("author"),
        key=data.get("key"),
    )


def index_from_dict(data: dict[str, Any]) -> CorpusIndex:
    """Build a ``CorpusIndex`` from the parsed index document.

    Raises:
        KeyError / ValueError / TypeError: On a malformed document.
    """
    songs = data["songs"]
    if not isinstance(songs, list):
        raise TypeError(f"'songs' must be a list, got {type(songs).__name__}")
    return CorpusIndex(
        songs=tuple(entry_from_dict(s) for s in songs),
        generated_at=str(data.get("generated_at") or ""),
        version=str(data.get("version") or ""),
    )


def _counted(items: Any, label: str) -> tuple[tuple[str, int], ...]:
    return tuple((str(item[label]), int(item["count"])) for item in items or [])


def priors_from_dict(data: dict[str, Any]) -> StylePriors:
    """Build ``StylePriors`` from the parsed priors document."""
    voice_count = data.get("typical_voice_count")
    if not isinstance(voice_count, dict):
        voice_count = {}
    return StylePriors(
        summary_bullets=_str_tuple(data.get("summary_bullets")),
        common_moves=_str_tuple(data.get("common_moves")),
        do_more_of=_str_tuple(data.get("do_more_of")),
        avoid=_str_tuple(data.get("avoid")),
        tempo_distribution=_counted(data.get("tempo_distribution"), "range"),
        typical_voice_count={k: int(v) for k, v in voice_count.items()},
        most_common_instruments=_counted(data.get("most_common_instruments"), "name"),
        most_common_techniques=_counted(data.get("most_common_techniques"), "name"),
    )


# ---------------------------------------------------------------------------
# Integrity checks
# ---------------------------------------------------------------------------


def validate_corpus(index: CorpusIndex) -> tuple[list[str], list[str]]:
    """Check the corpus invariants.

    Duplicate ids and empty ``prompt_seeds`` are errors; an empty corpus
    is a warning.

    Returns:
        ``(errors, warnings)`` — both empty for a healthy index.
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not index.songs:
        warnings.append("index contains no songs")

    seen: set[str] = set()
    for song in index.songs:
        if song.id in seen:
            errors.append(f"duplicate id: {song.id}")
        seen.add(song.id)
        if not song.prompt_seeds:
            errors.append(f"song {song.id} has no prompt_seeds")

    return errors, warnings
