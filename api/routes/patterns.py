"""
Pattern-script checking routes.

``POST /parse``    — extract one script from raw model output.
``POST /validate`` — run the static safety/musicality checks.
``POST /accept``   — parse, validate and, if both pass, apply the script to
the current session (recording a version when it changed).

Rejections are expected outcomes and come back as 200 responses.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_session_store
from api.schemas.patterns import (
    AcceptRequest,
    AcceptResponse,
    ParseRequest,
    ParseResponse,
    ValidateRequest,
    ValidateResponse,
)
from core.config import DEFAULT_VALIDATION_CONFIG
from core.output_parser import parse_model_output
from core.session.store import SessionStore
from core.tempo import extract_bpm
from core.validator import validate_pattern_code
from infrastructure.metrics import record_parse, record_session_commit, record_validation

logger = logging.getLogger(__name__)

router = APIRouter(tags=["patterns"])

Store = Annotated[SessionStore, Depends(get_session_store)]


@router.post("/parse", response_model=ParseResponse)
def parse(body: ParseRequest) -> ParseResponse:
    """Extract and sanity-check a script from raw model output."""
    parsed = parse_model_output(body.raw)
    record_parse(success=parsed.success)
    logger.debug("parse: success=%s error=%r", parsed.success, parsed.error)
    return ParseResponse(
        success=parsed.success,
        code=parsed.code,
        error=parsed.error,
        bpm=extract_bpm(parsed.code) if parsed.success else None,
    )


@router.post("/validate", response_model=ValidateResponse)
def validate(body: ValidateRequest) -> ValidateResponse:
    """Validate a script against default or partially overridden limits."""
    config = DEFAULT_VALIDATION_CONFIG
    if body.config is not None:
        overrides = body.config.model_dump(exclude_none=True)
        try:
            config = config.with_overrides(**overrides)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

    result = validate_pattern_code(body.code, config)
    record_validation(valid=result.valid, issue_count=len(result.issues))
    return ValidateResponse(valid=result.valid, issues=list(result.issues))


@router.post("/accept", response_model=AcceptResponse)
def accept(body: AcceptRequest, store: Store) -> AcceptResponse:
    """Parse, validate and apply a model reply to the current session."""
    session = store.ensure_session()

    parsed = parse_model_output(body.raw)
    record_parse(success=parsed.success)
    if not parsed.success:
        return AcceptResponse(
            accepted=False, error=parsed.error, version_count=len(session.versions)
        )

    result = validate_pattern_code(parsed.code)
    record_validation(valid=result.valid, issue_count=len(result.issues))
    if not result.valid:
        return AcceptResponse(
            accepted=False,
            code=parsed.code,
            issues=list(result.issues),
            version_count=len(session.versions),
        )

    commit = store.commit_code(parsed.code, note=body.note)
    record_session_commit(version_recorded=commit.version_recorded)
    logger.info(
        "accept: version_recorded=%s unchanged=%s versions=%d",
        commit.version_recorded,
        commit.unchanged,
        commit.version_count,
    )
    return AcceptResponse(
        accepted=True,
        code=parsed.code,
        version_count=commit.version_count,
        unchanged=commit.unchanged,
        bpm=extract_bpm(parsed.code),
    )
