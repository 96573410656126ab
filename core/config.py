"""
Configuration dataclasses for validation and retrieval.

These immutable config objects decouple parameter passing from function signatures,
making it easier to define standard configurations and reuse them across the
HTTP layer, the generation pipeline and tests.
"""

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class ValidationConfig:
    """
    Limits applied by the static safety/musicality validator.

    Immutable configuration object that can be reused across multiple
    validate_pattern_code() calls.

    Attributes:
        max_voices: Maximum number of ``$:`` voice bindings. Defaults to 6.
        max_lines: Maximum non-blank, non-comment lines. Defaults to 200.
        min_lines: Minimum non-blank, non-comment lines. Defaults to 5;
            anything shorter is a fragment, not a piece.
        max_random_usage: Maximum combined random-value and probabilistic
            transform calls. Defaults to 4.
        max_effects_per_voice: Soft guidance for effects per voice chain,
            surfaced to the generator. Defaults to 3.
        max_effects_per_line: Hard cutoff of effect calls on a single
            voice line. Defaults to 5.
        max_delay_feedback: Largest accepted delay feedback value. Defaults to 0.5.
        max_room: Largest accepted reverb room value. Defaults to 0.8.
        require_setcpm: Require a ``setcpm(...)`` tempo call. Defaults to True.
        reject_localhost: Reject remote / localhost sample banks. Defaults to True.

    Example:
        >>> config = ValidationConfig(max_voices=4)
        >>> result = validate_pattern_code(code, config)
    """

    max_voices: int = 6
    max_lines: int = 200
    min_lines: int = 5
    max_random_usage: int = 4
    max_effects_per_voice: int = 3
    max_effects_per_line: int = 5
    max_delay_feedback: float = 0.5
    max_room: float = 0.8
    require_setcpm: bool = True
    reject_localhost: bool = True

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        for name in ("max_voices", "max_lines", "min_lines", "max_random_usage"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        if self.min_lines > self.max_lines:
            raise ValueError(
                f"min_lines ({self.min_lines}) must not exceed max_lines ({self.max_lines})"
            )
        if self.max_effects_per_voice <= 0:
            raise ValueError(
                f"max_effects_per_voice must be positive, got {self.max_effects_per_voice}"
            )
        if self.max_effects_per_line <= 0:
            raise ValueError(
                f"max_effects_per_line must be positive, got {self.max_effects_per_line}"
            )
        if not 0.0 <= self.max_delay_feedback <= 1.0:
            raise ValueError(
                f"max_delay_feedback must be between 0 and 1, got {self.max_delay_feedback}"
            )
        if not 0.0 <= self.max_room <= 1.0:
            raise ValueError(f"max_room must be between 0 and 1, got {self.max_room}")

    def with_overrides(self, **overrides: object) -> "ValidationConfig":
        """Return a copy with the given fields replaced (partial config)."""
        return replace(self, **overrides)  # type: ignore[arg-type]


@dataclass(frozen=True)
class RetrievalConfig:
    """
    Result-set sizing for exemplar retrieval.

    Attributes:
        top_k: Best-scoring entries always returned. Defaults to 3.
        max_total: Hard cap after the diverse pick and backfill. Defaults to 4.
    """

    top_k: int = 3
    max_total: int = 4

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.top_k < 1:
            raise ValueError(f"top_k must be at least 1, got {self.top_k}")
        if self.max_total < 1:
            raise ValueError(f"max_total must be at least 1, got {self.max_total}")


# Pre-defined configurations for common use cases

DEFAULT_VALIDATION_CONFIG = ValidationConfig()
"""Default limits: 6 voices, 200 lines, 4 random calls, setcpm required."""

STRICT_VALIDATION_CONFIG = ValidationConfig(max_voices=4, max_random_usage=2)
"""Tighter limits for first drafts of a new session."""

LENIENT_VALIDATION_CONFIG = ValidationConfig(max_voices=8, require_setcpm=False)
"""Looser limits for user-pasted code that predates tempo conventions."""

DEFAULT_RETRIEVAL_CONFIG = RetrievalConfig()
"""Default sizing: top 3 plus one diverse pick, at most 4 results."""
