"""
Pydantic schemas for ``/parse``, ``/validate`` and ``/accept``.

Parser and validator rejections are returned as data (``success=false`` /
``valid=false``), never as HTTP errors.
"""

from pydantic import BaseModel, Field


class ParseRequest(BaseModel):
    """Request body for ``POST /parse``."""

    raw: str = Field(..., max_length=100_000, description="Raw model output.")


class ParseResponse(BaseModel):
    """Response body for ``POST /parse``."""

    success: bool
    code: str = ""
    error: str | None = None
    bpm: int | None = Field(default=None, description="Tempo declared by the script, if any.")


class ValidationOverrides(BaseModel):
    """Partial validator limits; omitted fields keep their defaults."""

    max_voices: int | None = Field(default=None, ge=0)
    max_lines: int | None = Field(default=None, ge=0)
    min_lines: int | None = Field(default=None, ge=0)
    max_random_usage: int | None = Field(default=None, ge=0)
    max_effects_per_voice: int | None = Field(default=None, ge=1)
    max_effects_per_line: int | None = Field(default=None, ge=1)
    max_delay_feedback: float | None = Field(default=None, ge=0.0, le=1.0)
    max_room: float | None = Field(default=None, ge=0.0, le=1.0)
    require_setcpm: bool | None = None
    reject_localhost: bool | None = None


class ValidateRequest(BaseModel):
    """Request body for ``POST /validate``."""

    code: str = Field(..., max_length=100_000, description="Pattern script to check.")
    config: ValidationOverrides | None = Field(
        default=None, description="Partial limit overrides."
    )


class ValidateResponse(BaseModel):
    """Response body for ``POST /validate``."""

    valid: bool
    issues: list[str] = Field(default_factory=list)


class AcceptRequest(BaseModel):
    """Request body for ``POST /accept``."""

    raw: str = Field(..., max_length=100_000, description="Raw model output.")
    note: str | None = Field(default=None, max_length=200, description="Version label.")


class AcceptResponse(BaseModel):
    """Response body for ``POST /accept``."""

    accepted: bool = Field(..., description="True if the script was applied to the session.")
    code: str = ""
    error: str | None = Field(default=None, description="Parser rejection reason.")
    issues: list[str] = Field(default_factory=list, description="Validator issues.")
    version_count: int = Field(..., description="Versions in the current session afterwards.")
    bpm: int | None = Field(default=None, description="Tempo declared by the accepted script.")
    unchanged: bool = Field(
        default=False,
        description="True if the accepted script equals the current one (no version added).",
    )
