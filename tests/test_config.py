"""
Tests for core.config module.

These tests verify ValidationConfig / RetrievalConfig validation and the
predefined configurations.
"""

import pytest

from core.config import (
    DEFAULT_RETRIEVAL_CONFIG,
    DEFAULT_VALIDATION_CONFIG,
    LENIENT_VALIDATION_CONFIG,
    STRICT_VALIDATION_CONFIG,
    RetrievalConfig,
    ValidationConfig,
)


class TestValidationConfigValidation:
    """Test ValidationConfig parameter validation."""

    def test_default_values(self) -> None:
        config = ValidationConfig()
        assert config.max_voices == 6
        assert config.max_lines == 200
        assert config.min_lines == 5
        assert config.max_random_usage == 4
        assert config.max_effects_per_line == 5
        assert config.max_delay_feedback == 0.5
        assert config.max_room == 0.8
        assert config.require_setcpm is True
        assert config.reject_localhost is True

    @pytest.mark.parametrize("field", ["max_voices", "max_lines", "min_lines", "max_random_usage"])
    def test_negative_limit_raises(self, field: str) -> None:
        with pytest.raises(ValueError, match=f"{field} must be non-negative"):
            ValidationConfig(**{field: -1})

    def test_zero_limits_are_valid(self) -> None:
        config = ValidationConfig(max_voices=0, min_lines=0, max_random_usage=0)
        assert config.max_voices == 0

    def test_min_lines_above_max_lines_raises(self) -> None:
        with pytest.raises(ValueError, match="must not exceed max_lines"):
            ValidationConfig(min_lines=10, max_lines=5)

    def test_non_positive_effects_per_line_raises(self) -> None:
        with pytest.raises(ValueError, match="max_effects_per_line must be positive"):
            ValidationConfig(max_effects_per_line=0)

    def test_non_positive_effects_per_voice_raises(self) -> None:
        with pytest.raises(ValueError, match="max_effects_per_voice must be positive"):
            ValidationConfig(max_effects_per_voice=0)

    def test_feedback_out_of_range_raises(self) -> None:
        with pytest.raises(ValueError, match="max_delay_feedback"):
            ValidationConfig(max_delay_feedback=1.5)

    def test_room_out_of_range_raises(self) -> None:
        with pytest.raises(ValueError, match="max_room"):
            ValidationConfig(max_room=-0.1)


class TestValidationConfigOverrides:
    def test_with_overrides_returns_copy(self) -> None:
        config = DEFAULT_VALIDATION_CONFIG.with_overrides(max_voices=3)
        assert config.max_voices == 3
        assert config.max_lines == DEFAULT_VALIDATION_CONFIG.max_lines
        assert DEFAULT_VALIDATION_CONFIG.max_voices == 6

    def test_with_overrides_validates(self) -> None:
        with pytest.raises(ValueError):
            DEFAULT_VALIDATION_CONFIG.with_overrides(min_lines=500)

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            DEFAULT_VALIDATION_CONFIG.max_voices = 10  # type: ignore[misc]


class TestPredefinedConfigs:
    def test_default(self) -> None:
        assert DEFAULT_VALIDATION_CONFIG == ValidationConfig()

    def test_strict(self) -> None:
        assert STRICT_VALIDATION_CONFIG.max_voices == 4
        assert STRICT_VALIDATION_CONFIG.max_random_usage == 2

    def test_lenient(self) -> None:
        assert LENIENT_VALIDATION_CONFIG.max_voices == 8
        assert LENIENT_VALIDATION_CONFIG.require_setcpm is False


class TestRetrievalConfig:
    def test_defaults(self) -> None:
        assert DEFAULT_RETRIEVAL_CONFIG.top_k == 3
        assert DEFAULT_RETRIEVAL_CONFIG.max_total == 4

    def test_zero_top_k_raises(self) -> None:
        with pytest.raises(ValueError, match="top_k must be at least 1"):
            RetrievalConfig(top_k=0)

    def test_zero_max_total_raises(self) -> None:
        with pytest.raises(ValueError, match="max_total must be at least 1"):
            RetrievalConfig(max_total=0)
