"""
Exemplar retrieval routes.

``POST /retrieve`` — rank corpus entries against a prompt.
``POST /context``  — the same ranking, formatted as the numbered exemplar
block handed to the generation model, plus style-prior hints.

Both degrade gracefully: with no corpus they return 200 with an empty
result and a ``corpus_unavailable`` warning.
"""

import logging
import time
import uuid
from dataclasses import replace
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from api.deps import get_corpus_index, get_snippet_roots, get_style_priors
from api.schemas.retrieve import (
    ContextResponse,
    ExemplarResult,
    RetrieveMeta,
    RetrieveRequest,
    RetrieveResponse,
)
from core.corpus.types import CorpusIndex, StylePriors
from core.rag.context import format_exemplar_block, format_style_hints
from core.retrieval import RetrievalResult, retrieve
from core.synonyms import expand_prompt
from infrastructure.metrics import LatencyTimer, record_retrieval
from ingestion.snippets import read_snippet

logger = logging.getLogger(__name__)

router = APIRouter(tags=["retrieval"])

Index = Annotated[CorpusIndex | None, Depends(get_corpus_index)]
Priors = Annotated[StylePriors | None, Depends(get_style_priors)]
SnippetRoots = Annotated[tuple[Path, ...], Depends(get_snippet_roots)]

CORPUS_UNAVAILABLE = "corpus_unavailable"


def _with_file_snippets(
    results: list[RetrievalResult],
    roots: tuple[Path, ...],
) -> list[RetrievalResult]:
    """Swap each stored snippet for a preview read from the source file."""
    return [
        replace(r, entry=replace(r.entry, snippet=read_snippet(r.entry, roots))) for r in results
    ]


def _ranked(
    body: RetrieveRequest,
    index: CorpusIndex | None,
    roots: tuple[Path, ...],
) -> tuple[list[RetrievalResult], list[str]]:
    warnings: list[str] = []
    if index is None or not index.songs:
        warnings.append(CORPUS_UNAVAILABLE)
    with LatencyTimer() as t:
        results = retrieve(body.prompt, index, top_k=body.top_k, max_total=body.max_total)
    record_retrieval(t.elapsed)
    return _with_file_snippets(results, roots), warnings


@router.post("/retrieve", response_model=RetrieveResponse)
def retrieve_exemplars(
    body: RetrieveRequest,
    response: Response,
    index: Index,
    roots: SnippetRoots,
) -> RetrieveResponse:
    """Return ranked, diversified exemplars for a prompt."""
    request_id = str(uuid.uuid4())
    t_start = time.perf_counter()

    results, warnings = _ranked(body, index, roots)
    expanded_terms = sorted(expand_prompt(body.prompt)) if body.prompt.strip() else []

    total_ms = (time.perf_counter() - t_start) * 1000
    logger.info(
        "retrieve [request_id=%s]: %d results in %.2fms", request_id, len(results), total_ms
    )

    response.headers["X-Request-Id"] = request_id
    response.headers["X-Total-Ms"] = str(round(total_ms, 2))

    return RetrieveResponse(
        prompt=body.prompt,
        results=[
            ExemplarResult(
                id=r.entry.id,
                title=r.entry.title,
                score=r.score,
                reasons=list(r.reasons),
                genres=list(r.entry.genres),
                moods=list(r.entry.moods),
                bpm=r.entry.bpm,
                snippet=r.entry.snippet,
            )
            for r in results
        ],
        expanded_terms=expanded_terms,
        warnings=warnings,
        meta=RetrieveMeta(total_ms=round(total_ms, 2), request_id=request_id),
    )


@router.post("/context", response_model=ContextResponse)
def build_context(
    body: RetrieveRequest,
    index: Index,
    priors: Priors,
    roots: SnippetRoots,
) -> ContextResponse:
    """Return the formatted exemplar block and style hints for a prompt."""
    results, warnings = _ranked(body, index, roots)
    return ContextResponse(
        context=format_exemplar_block(results) if results else "",
        style_hints=format_style_hints(priors),
        warnings=warnings,
    )
