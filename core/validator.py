"""
Static safety and musicality checks for generated pattern scripts.

Guards against chaotic, unmusical, or broken compositions before they reach
the audio runtime. Works on text-level structural signals only — the script
is never executed or parsed into an AST.

Every check runs independently and contributes at most one issue (balance
checks contribute one per unbalanced pair); issues keep detection order so
the same input always yields the same list.
"""

import re
from dataclasses import dataclass

from core.config import DEFAULT_VALIDATION_CONFIG, ValidationConfig
from core.text import code_lines, string_literals

_VOICE_RE = re.compile(r"\$:")
_SETCPM_RE = re.compile(r"setcpm\s*\(", re.IGNORECASE)

_FORBIDDEN_SAMPLE_RES: tuple[re.Pattern[str], ...] = (
    re.compile(r"samples?\s*\(\s*['\"`]https?://", re.IGNORECASE),
    re.compile(r"samples?\s*\(\s*['\"`][^'\"`]*localhost", re.IGNORECASE),
    # Awaited sample banks are always fetched remotely
    re.compile(r"await\s+samples?\s*\(", re.IGNORECASE),
)

_RANDOM_CALL_RE = re.compile(r"\b(?:rand|irand)\s*\(")
_PERLIN_RE = re.compile(r"\bperlin\b")
_PROBABILISTIC_RE = re.compile(
    r"\.(?:sometimesBy|sometimes|rarely|almostNever|almostAlways|often|degradeBy)\s*\("
)

_FEEDBACK_RE = re.compile(r"\.(?:delayfeedback|delayfb|dfb)\s*\(\s*([\d.]+)")
_ROOM_RE = re.compile(r"\.room\s*\(\s*([\d.]+)")

EFFECT_METHODS: tuple[str, ...] = (
    "lpf",
    "hpf",
    "delay",
    "delaytime",
    "delayfeedback",
    "room",
    "size",
    "crush",
    "coarse",
    "shape",
    "vowel",
)
_EFFECT_RE = re.compile(r"\.(?:" + "|".join(EFFECT_METHODS) + r")\b")

_BALANCE_PAIRS: tuple[tuple[str, str, str], ...] = (
    ("(", ")", "parentheses"),
    ("[", "]", "brackets"),
    ("{", "}", "braces"),
)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of ``validate_pattern_code``.

    Attributes:
        valid: True iff ``issues`` is empty.
        issues: Human-readable problems, in detection order.
    """

    valid: bool
    issues: tuple[str, ...] = ()


# ---------------------------------------------------------------------------
# Individual signals
# ---------------------------------------------------------------------------


def count_voices(code: str) -> int:
    """Count ``$:`` voice bindings."""
    return len(_VOICE_RE.findall(code))


def count_random_usage(code: str) -> int:
    """Count random-value calls plus probabilistic transform calls."""
    return (
        len(_RANDOM_CALL_RE.findall(code))
        + len(_PERLIN_RE.findall(code))
        + len(_PROBABILISTIC_RE.findall(code))
    )


def _any_above(pattern: re.Pattern[str], code: str, limit: float) -> bool:
    for raw in pattern.findall(code):
        try:
            value = float(raw.rstrip("."))
        except ValueError:
            continue
        if value > limit:
            return True
    return False


def has_extreme_effects(code: str, config: ValidationConfig) -> bool:
    """True if any delay feedback or reverb room literal exceeds its limit."""
    return _any_above(_FEEDBACK_RE, code, config.max_delay_feedback) or _any_above(
        _ROOM_RE, code, config.max_room
    )


def has_forbidden_samples(code: str) -> bool:
    """True if a sample bank is loaded from a URL, localhost, or awaited."""
    return any(pattern.search(code) for pattern in _FORBIDDEN_SAMPLE_RES)


def balance_issues(code: str) -> list[str]:
    """Report unbalanced ``() [] {}`` anywhere, and ``<>`` inside string literals.

    Angle brackets only mean something inside mini-notation strings, where
    they delimit alternation groups; comparisons like ``x > 0.5`` in code
    are ignored.
    """
    issues: list[str] = []
    for opening, closing, name in _BALANCE_PAIRS:
        n_open, n_close = code.count(opening), code.count(closing)
        if n_open != n_close:
            issues.append(
                f"unbalanced {name}: {n_open} opening '{opening}' vs {n_close} closing '{closing}'"
            )

    for literal in string_literals(code):
        n_open, n_close = literal.count("<"), literal.count(">")
        if n_open != n_close:
            issues.append(
                f"unbalanced mini-notation: {n_open} opening '<' vs {n_close} closing '>' in pattern"
            )
            break
    return issues


def max_effects_on_voice_line(code: str) -> int:
    """Largest number of effect calls found on any single ``$:`` line."""
    densest = 0
    for line in code.split("\n"):
        if "$:" in line:
            densest = max(densest, len(_EFFECT_RE.findall(line)))
    return densest


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def validate_pattern_code(
    code: str,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> ValidationResult:
    """Run the full static check battery over a pattern script.

    Args:
        code: Script text (typically ``ParsedOutput.code``).
        config: Limits to apply.

    Returns:
        ``ValidationResult`` — deterministic for a given ``(code, config)``.
    """
    issues: list[str] = []

    voices = count_voices(code)
    if voices > config.max_voices:
        issues.append(
            f"too many voices ({voices}/{config.max_voices} max) - simplify to fewer tracks"
        )

    line_count = len(code_lines(code))
    if line_count > config.max_lines:
        issues.append(f"code too long ({line_count}/{config.max_lines} lines max) - simplify")
    if line_count < config.min_lines:
        issues.append("code too short - add more content")

    if config.require_setcpm and not _SETCPM_RE.search(code):
        issues.append("missing setcpm() - set tempo at the start")

    if config.reject_localhost and has_forbidden_samples(code):
        issues.append("uses external/localhost samples - only use built-in samples")

    random_usage = count_random_usage(code)
    if random_usage > config.max_random_usage:
        issues.append(
            f"excessive randomness ({random_usage}/{config.max_random_usage} max)"
            " - reduce rand/perlin usage"
        )

    if has_extreme_effects(code, config):
        issues.append("extreme effect values detected - reduce delay feedback and reverb")

    issues.extend(balance_issues(code))

    if max_effects_on_voice_line(code) > config.max_effects_per_line:
        issues.append("too many effects on a single voice - simplify effect chains")

    return ValidationResult(valid=not issues, issues=tuple(issues))
