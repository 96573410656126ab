"""
Pure text utilities shared by the parser, validator, ranker and session store.

String-to-string (or string-to-simple-structure) transformations with no
side effects. The ingestion/ layer handles I/O (reading files), then
delegates text processing here.

All functions are pure: same input always produces same output, no external state.
"""

import re

_FENCE_LINE_RE = re.compile(r"^```(?:javascript|js|strudel)?\n?", re.MULTILINE)
_FENCE_CLOSE_RE = re.compile(r"```$", re.MULTILINE)
_NON_ALNUM_RE = re.compile(r"[\W_]+")
_PUNCT_RE = re.compile(r"[^\w\s]")
_ESCAPED_QUOTE_RE = re.compile(r"\\([\"'`])")

_QUOTES = "\"'`"


def normalize_code(code: str) -> str:
    """
    Canonical form of a pattern script for change detection.

    - Strips leading/trailing whitespace from every line
    - Drops lines that are blank after stripping
    - Joins with ``\\n``

    Args:
        code: Pattern script text.

    Returns:
        Whitespace-insensitive canonical text.

    Example:
        >>> normalize_code("setcpm(120)\\n\\n  $: s(\\"bd\\")  ")
        'setcpm(120)\\n$: s("bd")'
    """
    lines = (line.strip() for line in code.replace("\r\n", "\n").split("\n"))
    return "\n".join(line for line in lines if line)


def is_code_unchanged(old: str, new: str) -> bool:
    """
    Return True if *old* and *new* differ only in whitespace.

    Reflexive and symmetric. Indentation, trailing spaces and blank lines
    are ignored; any token change is significant.
    """
    return normalize_code(old) == normalize_code(new)


def normalize_slug(text: str) -> str:
    """
    Lower-case *text* and strip every non-alphanumeric character.

    Example:
        >>> normalize_slug("Stranger Things (Theme)")
        'strangerthingstheme'
    """
    return _NON_ALNUM_RE.sub("", text.lower())


def tokenize_words(text: str) -> list[str]:
    """
    Split *text* into lower-cased, punctuation-free words longer than one char.

    Example:
        >>> tokenize_words("Dark, moody techno!")
        ['dark', 'moody', 'techno']
    """
    normalized = _PUNCT_RE.sub(" ", text.lower())
    return [w for w in normalized.split() if len(w) > 1]


def unescape_model_quotes(code: str) -> str:
    """
    Remove backslash escapes in front of quote characters.

    Models that quote their own output sometimes emit ``note(\\"c4\\")``;
    the pattern grammar never needs an escaped quote at top level.
    """
    return _ESCAPED_QUOTE_RE.sub(r"\1", code)


def strip_code_fences(content: str) -> str:
    """
    Remove markdown fence lines (```` ``` ````, ```` ```js ```` ...) from content.

    Example:
        >>> strip_code_fences("```js\\nsetcpm(90)\\n```")
        'setcpm(90)\\n'
    """
    cleaned = _FENCE_LINE_RE.sub("", content)
    return _FENCE_CLOSE_RE.sub("", cleaned)


def code_lines(code: str) -> list[str]:
    """
    Return the stripped, non-blank, non-comment (``//``) lines of *code*.
    """
    stripped = (line.strip() for line in code.split("\n"))
    return [line for line in stripped if line and not line.startswith("//")]


def string_literals(code: str) -> list[str]:
    """
    Return the contents of every quoted string literal in *code*.

    A small scanner: ``"``, ``'`` and backtick open a literal that is closed
    by the same quote character; a backslash escapes the next character.
    ``//`` line comments outside literals are skipped. An unterminated
    literal runs to the end of its line.

    Example:
        >>> string_literals('note("<c4 e4>").s(\\'sine\\') // "x"')
        ['<c4 e4>', 'sine']
    """
    literals: list[str] = []
    i = 0
    n = len(code)
    while i < n:
        ch = code[i]
        if ch == "/" and code.startswith("//", i):
            newline = code.find("\n", i)
            i = n if newline == -1 else newline + 1
            continue
        if ch in _QUOTES:
            quote = ch
            i += 1
            buf: list[str] = []
            while i < n and code[i] != quote:
                if code[i] == "\\" and i + 1 < n:
                    buf.append(code[i + 1])
                    i += 2
                    continue
                if code[i] == "\n" and quote != "`":
                    break
                buf.append(code[i])
                i += 1
            literals.append("".join(buf))
            i += 1
            continue
        i += 1
    return literals
