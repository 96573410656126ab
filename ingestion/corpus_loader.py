"""Corpus loader — one-time, memoized read of the index and style priors.

The loader is constructed once at startup (see ``api/deps.py``) and its
``CorpusIndex`` handed to ``core.retrieval.retrieve`` by reference.

Loading contract:
    - Candidate paths are searched in order; the first existing file wins.
    - Any read or parse failure degrades to ``None`` ("unavailable") and is
      logged at warning level. Nothing is raised to callers.
    - Each document is read at most once per loader, even when the first
      attempt failed. Concurrent first callers block on a lock rather than
      issuing a second read.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, TypeVar

from core.corpus.types import (
    CorpusIndex,
    StylePriors,
    index_from_dict,
    priors_from_dict,
    validate_corpus,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_INDEX_CANDIDATES: tuple[Path, ...] = (
    Path("data/dataset/index.json"),
    Path("public/assets/dataset/index.json"),
)

DEFAULT_PRIORS_CANDIDATES: tuple[Path, ...] = (
    Path("data/dataset/style_priors.json"),
    Path("public/assets/dataset/style_priors.json"),
)

_UNSET: Any = object()


def _find_first(candidates: Sequence[Path]) -> Path | None:
    for path in candidates:
        if Path(path).is_file():
            return Path(path)
    return None


def _read_document(
    label: str,
    candidates: Sequence[Path],
    decode: Callable[[dict[str, Any]], T],
) -> tuple[T | None, Path | None]:
    path = _find_first(candidates)
    if path is None:
        logger.warning(
            "CorpusLoader: %s not found in %s — continuing without it",
            label,
            [str(c) for c in candidates],
        )
        return None, None
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        return decode(data), path
    except (
        OSError,
        json.JSONDecodeError,
        AttributeError,
        KeyError,
        TypeError,
        ValueError,
    ) as exc:
        logger.warning("CorpusLoader: failed to load %s from %s (%s)", label, path, exc)
        return None, path


class CorpusLoader:
    """Memoized, lock-guarded loader for the corpus index and style priors.

    Args:
        index_candidates: Candidate paths for the index document.
        priors_candidates: Candidate paths for the style-priors document.
    """

    def __init__(
        self,
        index_candidates: Sequence[Path] = DEFAULT_INDEX_CANDIDATES,
        priors_candidates: Sequence[Path] = DEFAULT_PRIORS_CANDIDATES,
    ) -> None:
        self._index_candidates = tuple(Path(p) for p in index_candidates)
        self._priors_candidates = tuple(Path(p) for p in priors_candidates)
        self._lock = threading.Lock()
        self._index: CorpusIndex | None = _UNSET
        self._priors: StylePriors | None = _UNSET
        self.index_path: Path | None = None
        self.priors_path: Path | None = None

    @classmethod
    def with_overrides(
        cls,
        index_path: str | Path | None = None,
        priors_path: str | Path | None = None,
    ) -> CorpusLoader:
        """Build a loader with explicit paths searched before the defaults."""
        index_candidates = DEFAULT_INDEX_CANDIDATES
        priors_candidates = DEFAULT_PRIORS_CANDIDATES
        if index_path:
            index_candidates = (Path(index_path),) + index_candidates
        if priors_path:
            priors_candidates = (Path(priors_path),) + priors_candidates
        return cls(index_candidates, priors_candidates)

    def load_index(self) -> CorpusIndex | None:
        """Return the corpus index, reading it on first call only.

        Returns:
            The ``CorpusIndex``, or ``None`` if unavailable.
        """
        if self._index is not _UNSET:
            return self._index
        with self._lock:
            if self._index is _UNSET:
                index, self.index_path = _read_document(
                    "corpus index", self._index_candidates, index_from_dict
                )
                if index is not None:
                    errors, warnings = validate_corpus(index)
                    for problem in errors + warnings:
                        logger.warning("CorpusLoader: %s", problem)
                    logger.info(
                        "CorpusLoader: loaded %d songs from %s", len(index), self.index_path
                    )
                self._index = index
        return self._index

    def load_priors(self) -> StylePriors | None:
        """Return the style priors, reading them on first call only."""
        if self._priors is not _UNSET:
            return self._priors
        with self._lock:
            if self._priors is _UNSET:
                priors, self.priors_path = _read_document(
                    "style priors", self._priors_candidates, priors_from_dict
                )
                if priors is not None:
                    logger.info("CorpusLoader: loaded style priors from %s", self.priors_path)
                self._priors = priors
        return self._priors

    @property
    def available(self) -> bool:
        """True if a non-empty corpus index could be loaded."""
        index = self.load_index()
        return index is not None and len(index) > 0
