"""Snippet reader — preview text for retrieved exemplars.

Reads a corpus entry's source script from disk so exemplar blocks show the
real file head rather than the short snippet stored in the index.

Side effects: reads files under the configured snippet roots. Never raises;
any read failure falls back to ``entry.snippet``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from core.corpus.types import CorpusEntry
from core.text import strip_code_fences

logger = logging.getLogger(__name__)

MAX_SNIPPET_LINES = 80
MAX_SNIPPET_CHARS = 1200
# Cut back to a line break only if it keeps most of the budget
_LINE_BREAK_CUTOFF = 0.8

DEFAULT_SNIPPET_ROOTS: tuple[Path, ...] = (
    Path("data/dataset/songs"),
    Path("public/assets/dataset/strudel-songs-collection"),
)


def extract_snippet(
    content: str,
    max_lines: int = MAX_SNIPPET_LINES,
    max_chars: int = MAX_SNIPPET_CHARS,
) -> str:
    """Trim a source script to a preview.

    Strips markdown fences, keeps the first *max_lines* lines, then caps the
    result at *max_chars*, preferring to end on a line break when one lies
    beyond 80% of the cap.

    Example:
        >>> extract_snippet("```js\\nsetcpm(90)\\n$: s(\\"bd\\")\\n```")
        'setcpm(90)\\n$: s("bd")'
    """
    lines = strip_code_fences(content).split("\n")
    snippet = "\n".join(lines[:max_lines])

    if len(snippet) > max_chars:
        snippet = snippet[:max_chars]
        last_newline = snippet.rfind("\n")
        if last_newline > max_chars * _LINE_BREAK_CUTOFF:
            snippet = snippet[:last_newline]

    return snippet.strip()


def read_snippet(entry: CorpusEntry, roots: Sequence[Path] = DEFAULT_SNIPPET_ROOTS) -> str:
    """Return a preview of *entry*'s source file, or its stored snippet.

    Args:
        entry: Corpus entry; ``source_path`` is resolved against each root.
        roots: Candidate directories, searched in order.

    Returns:
        Extracted snippet from the first readable file, else ``entry.snippet``.
    """
    if not entry.source_path:
        return entry.snippet

    for root in roots:
        path = Path(root) / entry.source_path
        if not path.is_file():
            continue
        try:
            return extract_snippet(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("read_snippet: cannot read %s (%s) — trying next root", path, exc)

    return entry.snippet
