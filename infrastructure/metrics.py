"""Prometheus metrics for the pattern assistant.

All metrics live in a private ``CollectorRegistry`` so importing this
module never touches the process-global default registry.

Metrics:
    pattern_parse_total{outcome}          Parser verdicts (success/failure)
    pattern_validation_total{outcome}     Validator verdicts (valid/invalid)
    pattern_validation_issues_total       Individual validator issues raised
    retrieval_requests_total              Retrieval calls served
    retrieval_latency_seconds             Retrieval wall-clock latency
    session_commits_total{kind}           Accepted scripts (version/noop)

Usage::

    from infrastructure.metrics import record_parse, record_validation

    record_parse(success=parsed.success)
"""

from __future__ import annotations

import logging
import time

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

_REGISTRY = CollectorRegistry()

pattern_parse_total = Counter(
    "pattern_parse_total",
    "Model outputs parsed, by outcome",
    ["outcome"],
    registry=_REGISTRY,
)

pattern_validation_total = Counter(
    "pattern_validation_total",
    "Pattern scripts validated, by outcome",
    ["outcome"],
    registry=_REGISTRY,
)

pattern_validation_issues_total = Counter(
    "pattern_validation_issues_total",
    "Individual validation issues raised",
    registry=_REGISTRY,
)

retrieval_requests_total = Counter(
    "retrieval_requests_total",
    "Exemplar retrieval requests served",
    registry=_REGISTRY,
)

retrieval_latency_seconds = Histogram(
    "retrieval_latency_seconds",
    "Exemplar retrieval latency in seconds",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0],
    registry=_REGISTRY,
)

session_commits_total = Counter(
    "session_commits_total",
    "Accepted scripts applied to the session, by kind",
    ["kind"],
    registry=_REGISTRY,
)

logger.info("Prometheus metrics registry initialized")


def record_parse(*, success: bool) -> None:
    """Record one parser verdict."""
    pattern_parse_total.labels(outcome="success" if success else "failure").inc()


def record_validation(*, valid: bool, issue_count: int = 0) -> None:
    """Record one validator verdict.

    Args:
        valid: Validator verdict.
        issue_count: Number of issues raised (0 when valid).
    """
    pattern_validation_total.labels(outcome="valid" if valid else "invalid").inc()
    if issue_count:
        pattern_validation_issues_total.inc(issue_count)


def record_retrieval(latency_seconds: float) -> None:
    """Record a served retrieval request and its latency."""
    retrieval_requests_total.inc()
    retrieval_latency_seconds.observe(latency_seconds)


def record_session_commit(*, version_recorded: bool) -> None:
    """Record an accepted script; ``noop`` when no version was appended."""
    session_commits_total.labels(kind="version" if version_recorded else "noop").inc()


def get_metrics_response() -> tuple[bytes, str]:
    """Generate Prometheus text exposition format.

    Returns:
        Tuple of (body_bytes, content_type_string).
    """
    return generate_latest(_REGISTRY), CONTENT_TYPE_LATEST


class LatencyTimer:
    """Context manager for measuring latency.

    Usage::

        with LatencyTimer() as t:
            results = retrieve(prompt, index)
        record_retrieval(t.elapsed)
    """

    def __init__(self) -> None:
        self._start: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> LatencyTimer:
        self._start = time.perf_counter()
        return self

    def __exit__(self, *_: object) -> None:
        self.elapsed = time.perf_counter() - self._start
