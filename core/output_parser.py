"""
Model output parsing — extract one pattern script from raw completion text.

Pure functions: raw text in, ``ParsedOutput`` out. Failures are expected,
frequent outcomes (models wrap code in prose, emit several blocks, forget
the tempo line) so they are returned as data, never raised.

Acceptance rules, first failure wins:
    1. non-empty response
    2. at most one fenced block
    3. candidate = fenced block body, else the whole trimmed response
    4. candidate non-empty
    5. backslash-escaped quotes removed
    6. an unfenced response must look like code
    7. first statement is ``setcpm(...)``
    8. at least one ``$:`` voice binding
    9. balanced ``()`` and ``[]``
"""

import re
from dataclasses import dataclass

from core.text import code_lines, is_code_unchanged, unescape_model_quotes

__all__ = ["ParsedOutput", "is_code_unchanged", "parse_model_output"]

# A language tag only counts when the rest of the fence line is empty
_FENCED_BLOCK_RE = re.compile(r"```(?:[\w+-]*[^\S\n]*\n)?(.*?)```", re.DOTALL)
_CODE_MARKER_RE = re.compile(
    r"setcp[ms]\s*\(|\$:|\b(?:note|n|s|sound|stack|samples|cat|seq)\s*\("
)
_SETCPM_RE = re.compile(r"^setcpm\s*\(")
VOICE_MARKER = "$:"


@dataclass(frozen=True)
class ParsedOutput:
    """Result of parsing one model response.

    Attributes:
        success: True when a single acceptable script was extracted.
        code: The cleaned script (empty on failure).
        error: Human-readable rejection reason (``None`` on success).
    """

    success: bool
    code: str = ""
    error: str | None = None

    @classmethod
    def ok(cls, code: str) -> "ParsedOutput":
        return cls(success=True, code=code)

    @classmethod
    def fail(cls, error: str) -> "ParsedOutput":
        return cls(success=False, error=error)


def _first_statement(code: str) -> str:
    lines = code_lines(code)
    return lines[0] if lines else ""


def parse_model_output(raw: str) -> ParsedOutput:
    """Extract and sanity-check a pattern script from raw model output.

    Args:
        raw: Raw completion text, fenced or unfenced.

    Returns:
        ``ParsedOutput.ok(code)`` or ``ParsedOutput.fail(reason)``.

    Example:
        >>> parse_model_output('```js\\nsetcpm(90)\\n$: s("bd")\\n```').code
        'setcpm(90)\\n$: s("bd")'
    """
    text = raw.strip()
    if not text:
        return ParsedOutput.fail("empty response")

    blocks = _FENCED_BLOCK_RE.findall(text)
    if len(blocks) > 1:
        return ParsedOutput.fail(f"found {len(blocks)} code blocks, expected exactly one")

    fenced = len(blocks) == 1
    candidate = blocks[0].strip() if fenced else text
    if not candidate:
        return ParsedOutput.fail("code block is empty")

    code = unescape_model_quotes(candidate)

    if not fenced and not _CODE_MARKER_RE.search(code):
        return ParsedOutput.fail("no code block found in response")

    if not _SETCPM_RE.match(_first_statement(code)):
        return ParsedOutput.fail("code must start with setcpm(N)")

    if VOICE_MARKER not in code:
        return ParsedOutput.fail("code must contain at least one voice assignment ($:)")

    opening, closing = code.count("("), code.count(")")
    if opening != closing:
        return ParsedOutput.fail(
            f"unbalanced parentheses: {opening} opening '(' vs {closing} closing ')'"
        )

    opening, closing = code.count("["), code.count("]")
    if opening != closing:
        return ParsedOutput.fail(
            f"unbalanced brackets: {opening} opening '[' vs {closing} closing ']'"
        )

    return ParsedOutput.ok(code)
