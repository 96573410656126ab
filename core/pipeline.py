"""
Generation pipeline — retrieve, prompt, parse, validate, commit.

One call to ``run_generation`` turns a user request into an accepted
pattern script:

    1. retrieve exemplars from the corpus index
    2. build system + user messages (current script included when editing)
    3. call the injected ``GenerationProvider``
    4. parse the reply, then validate the extracted script
    5. on rejection, re-prompt with the error/issues appended
    6. on acceptance, append user + assistant messages and apply the code

The provider is the only collaborator that may block; it is awaited by
nothing here. Rejections are recorded as attempts, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from core.config import (
    DEFAULT_RETRIEVAL_CONFIG,
    DEFAULT_VALIDATION_CONFIG,
    RetrievalConfig,
    ValidationConfig,
)
from core.corpus.types import CorpusIndex, StylePriors
from core.generation.base import (
    GenerationProvider,
    GenerationRequest,
    Message,
)
from core.output_parser import ParsedOutput, parse_model_output
from core.rag.context import format_exemplar_block, format_style_hints
from core.rag.prompts import build_retry_prompt, build_system_prompt, build_user_prompt
from core.retrieval import RetrievalResult, retrieve
from core.session.store import SessionStore
from core.validator import ValidationResult, validate_pattern_code

__all__ = [
    "GenerationAttempt",
    "GenerationOutcome",
    "GenerationProvider",
    "build_generation_messages",
    "run_generation",
]

logger = logging.getLogger(__name__)

_EMPTY_REPLY = "(empty reply)"


@dataclass(frozen=True)
class GenerationAttempt:
    """One provider round-trip and its verdicts.

    Attributes:
        number: 1-based attempt number.
        raw: Raw reply text.
        parsed: Parser verdict.
        validation: Validator verdict, ``None`` when parsing failed.
    """

    number: int
    raw: str
    parsed: ParsedOutput
    validation: ValidationResult | None = None

    @property
    def accepted(self) -> bool:
        return self.parsed.success and self.validation is not None and self.validation.valid


@dataclass(frozen=True)
class GenerationOutcome:
    """Result of ``run_generation``.

    Attributes:
        success: True when an attempt was accepted and committed.
        code: The accepted script (empty on failure).
        attempts: Every attempt in order.
        exemplars: Retrieval results used to ground the request.
        version_recorded: True when committing appended a version.
    """

    success: bool
    code: str
    attempts: tuple[GenerationAttempt, ...]
    exemplars: tuple[RetrievalResult, ...] = ()
    version_recorded: bool = False

    @property
    def error(self) -> str | None:
        """Parser error of the last attempt, if any."""
        return self.attempts[-1].parsed.error if self.attempts else None

    @property
    def issues(self) -> tuple[str, ...]:
        """Validator issues of the last attempt, if any."""
        if not self.attempts or self.attempts[-1].validation is None:
            return ()
        return self.attempts[-1].validation.issues


def build_generation_messages(
    prompt: str,
    exemplars: list[RetrievalResult],
    priors: StylePriors | None = None,
    current_code: str | None = None,
    config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
) -> list[Message]:
    """Assemble the opening system + user messages for a request.

    Raises:
        ValueError: If *prompt* is blank.
    """
    exemplar_block = format_exemplar_block(exemplars) if exemplars else None
    return [
        Message(role="system", content=build_system_prompt(config, format_style_hints(priors))),
        Message(role="user", content=build_user_prompt(prompt, exemplar_block, current_code)),
    ]


def run_generation(
    prompt: str,
    provider: GenerationProvider,
    index: CorpusIndex | None,
    store: SessionStore,
    priors: StylePriors | None = None,
    max_attempts: int = 2,
    validation_config: ValidationConfig = DEFAULT_VALIDATION_CONFIG,
    retrieval_config: RetrievalConfig = DEFAULT_RETRIEVAL_CONFIG,
    include_current_code: bool | None = None,
) -> GenerationOutcome:
    """Generate, check and commit a pattern script for *prompt*.

    Args:
        prompt: The user's request. Must not be blank.
        provider: Model backend.
        index: Corpus snapshot; ``None`` generates without exemplars.
        store: Session to read the current script from and commit into.
        priors: Optional style priors surfaced in the system prompt.
        max_attempts: Provider calls before giving up (minimum 1).
        validation_config: Limits the script is checked against.
        retrieval_config: Exemplar result sizing.
        include_current_code: Send the current script for editing. When
            ``None``, derived from the session mode (``"edit"`` includes it).

    Returns:
        ``GenerationOutcome``. Nothing is committed unless ``success``.

    Raises:
        ValueError: If *prompt* is blank or *max_attempts* < 1.
        RuntimeError: Propagated from the provider.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    session = store.ensure_session()
    if include_current_code is None:
        include_current_code = store.state.mode == "edit"

    exemplars = retrieve(
        prompt, index, top_k=retrieval_config.top_k, max_total=retrieval_config.max_total
    )
    messages = build_generation_messages(
        prompt,
        exemplars,
        priors=priors,
        current_code=session.current_code if include_current_code else None,
        config=validation_config,
    )

    attempts: list[GenerationAttempt] = []
    for number in range(1, max_attempts + 1):
        response = provider.generate(GenerationRequest(messages=tuple(messages)))
        parsed = parse_model_output(response.content)
        validation = (
            validate_pattern_code(parsed.code, validation_config) if parsed.success else None
        )
        attempt = GenerationAttempt(
            number=number, raw=response.content, parsed=parsed, validation=validation
        )
        attempts.append(attempt)

        if attempt.accepted:
            store.append_user_message(prompt)
            store.append_assistant_message(response.content, code=parsed.code)
            recorded = store.apply_new_code(parsed.code)
            logger.info(
                "run_generation: accepted on attempt %d/%d (version_recorded=%s)",
                number,
                max_attempts,
                recorded,
            )
            return GenerationOutcome(
                success=True,
                code=parsed.code,
                attempts=tuple(attempts),
                exemplars=tuple(exemplars),
                version_recorded=recorded,
            )

        issues = validation.issues if validation is not None else ()
        logger.debug(
            "run_generation: attempt %d rejected error=%r issues=%s",
            number,
            parsed.error,
            list(issues),
        )
        messages.append(Message(role="assistant", content=response.content or _EMPTY_REPLY))
        messages.append(Message(role="user", content=build_retry_prompt(parsed.error, issues)))

    logger.warning("run_generation: all %d attempts rejected", max_attempts)
    return GenerationOutcome(
        success=False, code="", attempts=tuple(attempts), exemplars=tuple(exemplars)
    )
