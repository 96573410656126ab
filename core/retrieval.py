"""
Fuzzy exemplar retrieval over the song corpus.

Scores every corpus entry against a free-text prompt with additive,
capped-per-category weights, then returns the best matches plus one
"diverse" exemplar that broadens genre/mood coverage.

Design:
    - Pure: the ``CorpusIndex`` is passed in by the caller (constructed once
      at startup), so the ranker is trivially testable with synthetic corpora.
    - Deterministic: ties keep corpus order (stable sort).
    - Best effort: a non-empty prompt over a non-empty corpus always returns
      something, even if every score is zero.

Score table (each category awards at most once per entry):

    ===============================================  ======
    exact normalized slug/title match                  +10
    partial slug containment (if no exact match)        +8
    prompt bigram inside slug/title/aliases             +6
    prompt word matches title/path token or alias       +5
    genre tag in prompt words or expanded terms         +4
    mood tag                                            +3
    technique tag                                       +2
    instrument tag                                      +2
    tempo word, or a number within ±10 of the BPM       +1
    ≥2 words shared with one of the prompt seeds        +2
    ===============================================  ======
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from core.corpus.types import CorpusEntry, CorpusIndex
from core.synonyms import expand_prompt
from core.text import normalize_slug, tokenize_words

logger = logging.getLogger(__name__)

EXACT_MATCH_SCORE = 10
PARTIAL_MATCH_SCORE = 8
BIGRAM_SCORE = 6
WORD_SCORE = 5
GENRE_SCORE = 4
MOOD_SCORE = 3
TECHNIQUE_SCORE = 2
INSTRUMENT_SCORE = 2
TEMPO_SCORE = 1
SEED_SCORE = 2

BPM_TOLERANCE = 10
MIN_SEED_OVERLAP = 2
EMPTY_PROMPT_POOL = 10

TEMPO_WORDS: frozenset[str] = frozenset({"slow", "fast", "bpm", "tempo"})

_LEADING_INT_RE = re.compile(r"^\d+")


@dataclass(frozen=True)
class RetrievalResult:
    """A corpus entry selected for a prompt.

    Attributes:
        entry: The matched corpus entry.
        score: Additive match score (0 when selected as best effort).
        reasons: Human-readable explanation of each awarded category.
    """

    entry: CorpusEntry
    score: float
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class PromptTokens:
    """Lower-cased prompt words (length > 1) and adjacent-word bigrams."""

    words: tuple[str, ...]
    bigrams: tuple[str, ...]


# ---------------------------------------------------------------------------
# Tokenization
# ---------------------------------------------------------------------------


def tokenize_prompt(prompt: str) -> PromptTokens:
    """Split a prompt into words and bigrams.

    Example:
        >>> tokenize_prompt("Dark techno, please").bigrams
        ('dark techno', 'techno please')
    """
    words = tokenize_words(prompt)
    bigrams = tuple(f"{a} {b}" for a, b in zip(words, words[1:]))
    return PromptTokens(words=tuple(words), bigrams=bigrams)


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def _contains_either_way(a: str, b: str) -> bool:
    return bool(a) and bool(b) and (a in b or b in a)


def _bigram_hit(bigram: str, slug: str, title: str, aliases: tuple[str, ...]) -> bool:
    norm = normalize_slug(bigram)
    if not norm:
        return False
    if norm in slug or norm in title:
        return True
    if bigram in (alias.lower() for alias in aliases):
        return True
    return any(_contains_either_way(norm, normalize_slug(alias)) for alias in aliases)


def _word_hit(word: str, entry: CorpusEntry) -> bool:
    norm = normalize_slug(word)
    if not norm:
        return False
    if any(normalize_slug(t) == norm for t in entry.title_tokens):
        return True
    if any(normalize_slug(t) == norm for t in entry.path_tokens):
        return True
    return any(norm in normalize_slug(alias) for alias in entry.aliases)


def _first_tag_hit(tags: tuple[str, ...], vocabulary: set[str]) -> str | None:
    for tag in tags:
        if tag.lower() in vocabulary:
            return tag
    return None


def _tempo_hit(words: tuple[str, ...], bpm: float) -> bool:
    if any(w in TEMPO_WORDS for w in words):
        return True
    for w in words:
        match = _LEADING_INT_RE.match(w)
        if match and abs(int(match.group()) - bpm) <= BPM_TOLERANCE:
            return True
    return False


def _seed_hit(words: tuple[str, ...], seeds: tuple[str, ...]) -> bool:
    prompt_words = set(words)
    for seed in seeds:
        overlap = [w for w in tokenize_words(seed) if w in prompt_words]
        if len(overlap) >= MIN_SEED_OVERLAP:
            return True
    return False


def score_entry(
    entry: CorpusEntry,
    tokens: PromptTokens,
    expanded_terms: set[str],
) -> RetrievalResult:
    """Score one corpus entry against a tokenized prompt.

    Args:
        entry: Corpus entry to score.
        tokens: Output of ``tokenize_prompt``.
        expanded_terms: Lower-cased output of ``expand_prompt``.

    Returns:
        ``RetrievalResult`` with the total score and one reason per
        awarded category.
    """
    score = 0
    reasons: list[str] = []

    slug = entry.slug or normalize_slug(entry.id)
    title = normalize_slug(entry.title)
    normalized_prompt = normalize_slug(" ".join(tokens.words))

    # A) exact / partial title match
    if normalized_prompt and normalized_prompt in (slug, title):
        score += EXACT_MATCH_SCORE
        reasons.append("exact title match")
    elif _contains_either_way(normalized_prompt, slug):
        score += PARTIAL_MATCH_SCORE
        reasons.append("partial title match")

    # B) bigram overlap with slug / title / aliases
    for bigram in tokens.bigrams:
        if _bigram_hit(bigram, slug, title, entry.aliases):
            score += BIGRAM_SCORE
            reasons.append(f"bigram match: {bigram}")
            break

    # C) single-word overlap with title tokens / path tokens / aliases
    for word in tokens.words:
        if _word_hit(word, entry):
            score += WORD_SCORE
            reasons.append(f"title token match: {word}")
            break

    # D) controlled-vocabulary tags
    vocabulary = set(tokens.words) | expanded_terms
    for tags, points, label in (
        (entry.genres, GENRE_SCORE, "genre"),
        (entry.moods, MOOD_SCORE, "mood"),
        (entry.techniques, TECHNIQUE_SCORE, "technique"),
        (entry.instruments, INSTRUMENT_SCORE, "instrument"),
    ):
        hit = _first_tag_hit(tags, vocabulary)
        if hit is not None:
            score += points
            reasons.append(f"{label}: {hit}")

    # E) tempo
    if entry.bpm and _tempo_hit(tokens.words, entry.bpm):
        score += TEMPO_SCORE
        reasons.append(f"tempo match: {entry.bpm:g} bpm")

    # F) stored example prompts
    if _seed_hit(tokens.words, entry.prompt_seeds):
        score += SEED_SCORE
        reasons.append("prompt seed match")

    return RetrievalResult(entry=entry, score=score, reasons=tuple(reasons))


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


def select_diverse_exemplar(
    top: list[RetrievalResult],
    candidates: list[RetrievalResult],
) -> RetrievalResult | None:
    """Pick the best candidate that widens genre/mood coverage.

    A candidate qualifies when it is not already in *top* and its genres or
    its moods are not a subset of those already covered by *top*.

    Args:
        top: Already-selected results.
        candidates: All scored results, sorted by score descending.

    Returns:
        The first qualifying candidate (highest score, corpus order on
        ties), or ``None``.
    """
    covered_genres = {g for r in top for g in r.entry.genres}
    covered_moods = {m for r in top for m in r.entry.moods}
    selected_ids = {r.entry.id for r in top}

    for item in candidates:
        if item.entry.id in selected_ids:
            continue
        new_genre = not set(item.entry.genres) <= covered_genres
        new_mood = not set(item.entry.moods) <= covered_moods
        if new_genre or new_mood:
            return item
    return None


def retrieve(
    prompt: str,
    index: CorpusIndex | None,
    top_k: int = 3,
    max_total: int = 4,
) -> list[RetrievalResult]:
    """Return ranked, diversified exemplars for *prompt*.

    Args:
        prompt: Free-text user prompt.
        index: Corpus snapshot, or ``None`` when the corpus is unavailable.
        top_k: Best-scoring entries always included (minimum 1).
        max_total: Cap on the returned list.

    Returns:
        Results sorted by non-increasing score. Empty iff the corpus is
        missing/empty (or, best effort, for a blank prompt over an untagged
        corpus).
    """
    if index is None or not index.songs:
        return []

    songs = list(index.songs)

    if not prompt.strip():
        # No signal to rank on: offer one diverse exemplar from the head of the corpus
        pool = [
            RetrievalResult(entry=s, score=1, reasons=("best effort",))
            for s in songs[:EMPTY_PROMPT_POOL]
        ]
        diverse = select_diverse_exemplar([], pool)
        return [diverse] if diverse is not None else []

    tokens = tokenize_prompt(prompt)
    expanded_terms = {term.lower() for term in expand_prompt(prompt)}

    scored = [score_entry(song, tokens, expanded_terms) for song in songs]
    scored.sort(key=lambda r: r.score, reverse=True)

    results = scored[: max(top_k, 1)]

    diverse = select_diverse_exemplar(results, scored)
    if diverse is not None:
        results.append(diverse)

    if len(results) < 2 and len(scored) >= 2:
        selected_ids = {r.entry.id for r in results}
        for item in scored:
            if item.entry.id not in selected_ids:
                results.append(item)
                break

    results = results[:max_total]
    logger.debug(
        "retrieve: prompt=%r words=%d results=%s",
        prompt[:60],
        len(tokens.words),
        [(r.entry.id, r.score) for r in results],
    )
    return results
