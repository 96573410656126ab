"""
Context assembly — format retrieved exemplars for the generation model.

Pure functions that transform retrieval results and style priors into
structured text blocks the model can imitate. No I/O, no side effects.

The numbered format ``[1]``, ``[2]`` keeps exemplars distinct so the model
borrows techniques from each rather than blending them into one copy.
"""

from core.corpus.types import StylePriors
from core.retrieval import RetrievalResult

MAX_LIST_ITEMS = 5


def format_exemplar_block(results: list[RetrievalResult]) -> str:
    """Format retrieved exemplars as a numbered reference block.

    Each exemplar is rendered as::

        [1] Stranger Things (synthwave, dark, 118 bpm, score: 14)
        <snippet>

    Args:
        results: Ordered retrieval results (highest relevance first).
            Must not be empty.

    Returns:
        A single string with every exemplar formatted and numbered,
        separated by blank lines.

    Raises:
        ValueError: If results is empty.
    """
    if not results:
        raise ValueError("results must not be empty")

    blocks: list[str] = []
    for i, result in enumerate(results, start=1):
        header = _format_exemplar_header(i, result)
        snippet = result.entry.snippet.strip() or "(no preview available)"
        blocks.append(f"{header}\n{snippet}")

    return "\n\n".join(blocks)


def format_style_hints(priors: StylePriors | None) -> str | None:
    """Summarize corpus style priors as short bullet hints.

    Returns ``None`` when no priors are available or they carry nothing
    worth saying.
    """
    if priors is None:
        return None

    lines: list[str] = [f"- {b}" for b in priors.summary_bullets[:MAX_LIST_ITEMS]]

    voices = priors.typical_voice_count
    if voices:
        lines.append(
            f"- typical voice count: {voices.get('min', '?')}-{voices.get('max', '?')}"
            f" (most common {voices.get('common', '?')})"
        )
    if priors.most_common_techniques:
        names = ", ".join(name for name, _ in priors.most_common_techniques[:MAX_LIST_ITEMS])
        lines.append(f"- common techniques: {names}")
    if priors.do_more_of:
        lines.append(f"- do more of: {'; '.join(priors.do_more_of[:MAX_LIST_ITEMS])}")
    if priors.avoid:
        lines.append(f"- avoid: {'; '.join(priors.avoid[:MAX_LIST_ITEMS])}")

    return "\n".join(lines) if lines else None


def _format_exemplar_header(index: int, result: RetrievalResult) -> str:
    """Build the header line for a single exemplar.

    Format: ``[1] Title (genre, mood, 120 bpm, score: 9)``.
    Missing tags and tempo are omitted.
    """
    entry = result.entry
    parts: list[str] = []
    if entry.genres:
        parts.append("/".join(entry.genres[:2]))
    if entry.moods:
        parts.append("/".join(entry.moods[:2]))
    if entry.bpm:
        parts.append(f"{entry.bpm:g} bpm")
    parts.append(f"score: {result.score:g}")
    return f"[{index}] {entry.title} ({', '.join(parts)})"
