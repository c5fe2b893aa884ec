"""
Prometheus Metrics

Safety pipeline observability, exposed at /metrics for Prometheus
scraping.

ARCHITECTURE: Metrics are decoupled from business logic.
Only increment/observe; never block on metrics operations.
Labels never carry student, room or message identifiers.
"""

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)
from fastapi import APIRouter, Response

# =============================================================================
# PIPELINE METRICS
# =============================================================================

SAFETY_CHECKS_TOTAL = Counter(
    "safechat_safety_checks_total",
    "Safety pipeline runs by final stage",
    ["final_stage"],  # no_concern, verified, error
)

KEYWORD_HITS_TOTAL = Counter(
    "safechat_keyword_hits_total",
    "Keyword scanner hits by concern category",
    ["concern_type"],
)

# =============================================================================
# VERIFIER METRICS
# =============================================================================

VERIFIER_OUTCOMES_TOTAL = Counter(
    "safechat_verifier_outcomes_total",
    "Concern verifications by outcome",
    ["outcome"],  # verified, dismissed, fail_open
)

VERIFIER_FAILURES_TOTAL = Counter(
    "safechat_verifier_failures_total",
    "Verifier failures by reason",
    ["reason"],  # timeout, provider_error, rate_limited, malformed
)

VERIFIER_LATENCY = Histogram(
    "safechat_verifier_latency_seconds",
    "Concern verification latency, including fallbacks",
    buckets=[0.25, 0.5, 1.0, 2.0, 4.0, 8.0, 15.0],
)

CONCERN_LEVELS_TOTAL = Counter(
    "safechat_concern_levels_total",
    "Verified concern levels by category",
    ["concern_type", "concern_level"],
)

# =============================================================================
# SIDE-EFFECT METRICS
# =============================================================================

FLAGS_CREATED_TOTAL = Counter(
    "safechat_flags_created_total",
    "Flags created by concern category",
    ["concern_type"],
)

ADVICE_MESSAGES_TOTAL = Counter(
    "safechat_advice_messages_total",
    "Safety advice messages by result",
    ["result"],  # created, failed
)

TEACHER_ALERTS_TOTAL = Counter(
    "safechat_teacher_alerts_total",
    "Teacher alert dispatches by result",
    ["result"],  # sent, failed, no_recipient
)

PERSISTENCE_FAILURES_TOTAL = Counter(
    "safechat_persistence_failures_total",
    "Store failures inside the pipeline",
    ["operation"],
)

# =============================================================================
# SYSTEM INFO
# =============================================================================

SYSTEM_INFO = Info(
    "safechat_system",
    "SafeChat system information",
)

SYSTEM_INFO.info({
    "version": "0.1.0",
    "environment": "development",
})


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def track_keyword_hit(concern_type: str) -> None:
    """Record keyword scanner hit."""
    KEYWORD_HITS_TOTAL.labels(concern_type=concern_type).inc()


def track_verifier_outcome(outcome: str, duration_seconds: float) -> None:
    """Record verification outcome and latency."""
    VERIFIER_OUTCOMES_TOTAL.labels(outcome=outcome).inc()
    VERIFIER_LATENCY.observe(duration_seconds)


def track_verifier_failure(reason: str) -> None:
    """Record verifier failure reason."""
    VERIFIER_FAILURES_TOTAL.labels(reason=reason).inc()


def track_concern_level(concern_type: str, concern_level: int) -> None:
    """Record verified concern level."""
    CONCERN_LEVELS_TOTAL.labels(concern_type=concern_type, concern_level=str(concern_level)).inc()


def track_safety_check(final_stage: str) -> None:
    """Record pipeline completion."""
    SAFETY_CHECKS_TOTAL.labels(final_stage=final_stage).inc()


def track_flag_created(concern_type: str) -> None:
    FLAGS_CREATED_TOTAL.labels(concern_type=concern_type).inc()


def track_advice_message(result: str) -> None:
    ADVICE_MESSAGES_TOTAL.labels(result=result).inc()


def track_teacher_alert(result: str) -> None:
    TEACHER_ALERTS_TOTAL.labels(result=result).inc()


def track_persistence_failure(operation: str) -> None:
    PERSISTENCE_FAILURES_TOTAL.labels(operation=operation).inc()


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

metrics_router = APIRouter(tags=["metrics"])


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )


def update_system_info(environment: str, version: str = "0.1.0") -> None:
    """Update system info metric with current environment."""
    SYSTEM_INFO.info({
        "version": version,
        "environment": environment,
    })
