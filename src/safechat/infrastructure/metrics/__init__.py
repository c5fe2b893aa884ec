"""Metrics infrastructure package."""

from safechat.infrastructure.metrics.prometheus_metrics import (
    # Pipeline metrics
    SAFETY_CHECKS_TOTAL,
    KEYWORD_HITS_TOTAL,
    # Verifier metrics
    VERIFIER_OUTCOMES_TOTAL,
    VERIFIER_FAILURES_TOTAL,
    VERIFIER_LATENCY,
    CONCERN_LEVELS_TOTAL,
    # Side-effect metrics
    FLAGS_CREATED_TOTAL,
    ADVICE_MESSAGES_TOTAL,
    TEACHER_ALERTS_TOTAL,
    PERSISTENCE_FAILURES_TOTAL,
    # Helpers
    track_keyword_hit,
    track_verifier_outcome,
    track_verifier_failure,
    track_concern_level,
    track_safety_check,
    track_flag_created,
    track_advice_message,
    track_teacher_alert,
    track_persistence_failure,
    update_system_info,
    # Router
    metrics_router,
)

__all__ = [
    "SAFETY_CHECKS_TOTAL",
    "KEYWORD_HITS_TOTAL",
    "VERIFIER_OUTCOMES_TOTAL",
    "VERIFIER_FAILURES_TOTAL",
    "VERIFIER_LATENCY",
    "CONCERN_LEVELS_TOTAL",
    "FLAGS_CREATED_TOTAL",
    "ADVICE_MESSAGES_TOTAL",
    "TEACHER_ALERTS_TOTAL",
    "PERSISTENCE_FAILURES_TOTAL",
    "track_keyword_hit",
    "track_verifier_outcome",
    "track_verifier_failure",
    "track_concern_level",
    "track_safety_check",
    "track_flag_created",
    "track_advice_message",
    "track_teacher_alert",
    "track_persistence_failure",
    "update_system_info",
    "metrics_router",
]
