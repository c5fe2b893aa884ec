"""Safety services package - concern detection and escalation."""

from safechat.services.safety.keyword_scanner import KeywordScanner, DEFAULT_KEYWORDS
from safechat.services.safety.helpline_registry import (
    HelplineConfigError,
    HelplineEntry,
    HelplineRegistry,
    normalize_country_code,
)
from safechat.services.safety.safety_response import (
    DISCLOSURE_SENTENCE,
    SafetyAdviceBuilder,
    ensure_disclosure,
)
from safechat.services.safety.structured_decode import DecodeResult, decode_json_object
from safechat.services.safety.concern_verifier import ConcernVerifier
from safechat.services.safety.interfaces import AlertDispatcher, ChatStore, PersistenceError
from safechat.services.safety.escalation_orchestrator import (
    EscalationOrchestrator,
    build_escalation_orchestrator,
)

__all__ = [
    # Scanning
    "KeywordScanner",
    "DEFAULT_KEYWORDS",
    # Helplines
    "HelplineConfigError",
    "HelplineEntry",
    "HelplineRegistry",
    "normalize_country_code",
    # Advice
    "DISCLOSURE_SENTENCE",
    "SafetyAdviceBuilder",
    "ensure_disclosure",
    # Verification
    "DecodeResult",
    "decode_json_object",
    "ConcernVerifier",
    # Boundaries
    "AlertDispatcher",
    "ChatStore",
    "PersistenceError",
    # Orchestration
    "EscalationOrchestrator",
    "build_escalation_orchestrator",
]
