"""
Tempo extraction from pattern scripts.

Scripts frequently express tempo as arithmetic, e.g. ``setcpm(140/4)`` or
``setcps(98/60/4)``. The argument is evaluated with a tiny recursive-descent
parser restricted to numbers, ``+ - * /`` and parentheses. Anything else
(names, calls, attribute access) yields ``None``.

Grammar::

    expr   := term (('+' | '-') term)*
    term   := factor (('*' | '/') factor)*
    factor := ('+' | '-') factor | NUMBER | '(' expr ')'
"""

import math
import re

_TOKEN_RE = re.compile(r"\s*(?:(\d+\.\d*|\.\d+|\d+)|(.))")

_TEMPO_CALL_RES: tuple[re.Pattern[str], ...] = (
    re.compile(r"setcpm\s*\(", re.IGNORECASE),
    re.compile(r"\.cpm\s*\(", re.IGNORECASE),
    re.compile(r"setcps\s*\(", re.IGNORECASE),
)

_LEADING_NUMBER_RE = re.compile(r"\s*(\d+(?:\.\d+)?)")

_MAX_EXPRESSION_CHARS = 100


class _ArithmeticParser:
    """Single-use parser over a pre-tokenized expression."""

    def __init__(self, tokens: list[tuple[str, str]]) -> None:
        self._tokens = tokens
        self._pos = 0

    def _peek(self) -> tuple[str, str] | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _take(self) -> tuple[str, str]:
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def parse(self) -> float:
        value = self._expr()
        if self._peek() is not None:
            raise ValueError("unexpected trailing input")
        return value

    def _expr(self) -> float:
        value = self._term()
        while self._peek() in (("op", "+"), ("op", "-")):
            _, op = self._take()
            rhs = self._term()
            value = value + rhs if op == "+" else value - rhs
        return value

    def _term(self) -> float:
        value = self._factor()
        while self._peek() in (("op", "*"), ("op", "/")):
            _, op = self._take()
            rhs = self._factor()
            if op == "*":
                value *= rhs
            else:
                if rhs == 0:
                    raise ZeroDivisionError("division by zero")
                value /= rhs
        return value

    def _factor(self) -> float:
        tok = self._peek()
        if tok is None:
            raise ValueError("unexpected end of expression")
        kind, text = self._take()
        if kind == "num":
            return float(text)
        if text in ("+", "-"):
            operand = self._factor()
            return operand if text == "+" else -operand
        if text == "(":
            value = self._expr()
            if self._peek() != ("op", ")"):
                raise ValueError("missing closing parenthesis")
            self._take()
            return value
        raise ValueError(f"unexpected token {text!r}")


def _tokenize(expr: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    for match in _TOKEN_RE.finditer(expr.strip()):
        number, other = match.groups()
        if number is not None:
            tokens.append(("num", number))
        elif other is not None:
            if other not in "+-*/()":
                raise ValueError(f"disallowed character {other!r}")
            tokens.append(("op", other))
    return tokens


def evaluate_arithmetic(expr: str) -> float | None:
    """Evaluate a numeric expression built from ``0-9 . + - * / ( )``.

    Args:
        expr: Expression text, e.g. ``"98/4*2"``.

    Returns:
        The value, or ``None`` if the text is empty, contains any other
        character, is malformed, or divides by zero.

    Example:
        >>> evaluate_arithmetic("140 / 4")
        35.0
    """
    try:
        tokens = _tokenize(expr)
        if not tokens:
            return None
        return _ArithmeticParser(tokens).parse()
    except (ValueError, ZeroDivisionError):
        return None


def _call_argument(code: str, start: int) -> str:
    """Return the call argument starting at *start*, up to its matching ')'.

    Scans at most ``_MAX_EXPRESSION_CHARS``; an unclosed call yields the
    scanned text.
    """
    depth = 1
    end = min(len(code), start + _MAX_EXPRESSION_CHARS)
    for i in range(start, end):
        ch = code[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return code[start:i]
    return code[start:end]


def extract_bpm(code: str) -> int | None:
    """Extract the tempo from the first tempo-setting call in *code*.

    Looks for ``setcpm(...)``, then ``.cpm(...)``, then ``setcps(...)``. The
    argument is evaluated as plain arithmetic; otherwise its leading number
    is used (``setcpm(120 * swing)`` gives 120). A call whose argument is
    neither is skipped.

    Returns:
        The tempo rounded half-up to an integer, or ``None`` when no call
        with a numeric argument is present.

    Example:
        >>> extract_bpm("setcpm(140/4)")
        35
    """
    for pattern in _TEMPO_CALL_RES:
        match = pattern.search(code)
        if match is None:
            continue
        argument = _call_argument(code, match.end())
        value = evaluate_arithmetic(argument)
        if value is None:
            leading = _LEADING_NUMBER_RE.match(argument)
            if leading is None:
                continue
            value = float(leading.group(1))
        return math.floor(value + 0.5)
    return None
