"""
Pydantic schemas for the ``/retrieve`` and ``/context`` endpoints.

Defines request validation and response serialization models.
"""

from pydantic import BaseModel, Field


class RetrieveMeta(BaseModel):
    """Performance timing metadata."""

    total_ms: float = Field(..., description="Total request duration (milliseconds).")
    request_id: str = Field(..., description="Unique identifier for this request (UUID4).")


class RetrieveRequest(BaseModel):
    """Request body for ``POST /retrieve`` and ``POST /context``.

    An empty prompt is accepted: it yields at most one best-effort exemplar.
    """

    prompt: str = Field(default="", max_length=4000, description="Free-text user prompt.")
    top_k: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Best-scoring entries always returned (1–10).",
    )
    max_total: int = Field(
        default=4,
        ge=1,
        le=10,
        description="Cap on results after the diverse pick (1–10).",
    )


class ExemplarResult(BaseModel):
    """A single retrieved corpus entry with its score breakdown."""

    id: str = Field(..., description="Corpus entry id.")
    title: str = Field(..., description="Display title.")
    score: float = Field(..., description="Additive match score.")
    reasons: list[str] = Field(default_factory=list, description="Awarded score categories.")
    genres: list[str] = Field(default_factory=list)
    moods: list[str] = Field(default_factory=list)
    bpm: float | None = Field(default=None, description="Tempo, if known.")
    snippet: str = Field(default="", description="Script preview.")


class RetrieveResponse(BaseModel):
    """Response body for ``POST /retrieve``."""

    prompt: str = Field(..., description="The original prompt.")
    results: list[ExemplarResult] = Field(..., description="Ranked exemplars.")
    expanded_terms: list[str] = Field(
        default_factory=list, description="Synonym expansion of the prompt, sorted."
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-fatal warnings (e.g. corpus_unavailable).",
    )
    meta: RetrieveMeta = Field(..., description="Performance timing metadata.")


class ContextResponse(BaseModel):
    """Response body for ``POST /context``."""

    context: str = Field(..., description="Numbered exemplar block; empty when none.")
    style_hints: str | None = Field(default=None, description="Corpus style-prior bullets.")
    warnings: list[str] = Field(default_factory=list)
