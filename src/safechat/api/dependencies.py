"""
API Dependencies

Process-wide safety components, set up during application startup
and injected into endpoints with Depends(). Tests replace them via
app.dependency_overrides.
"""

from typing import Optional

from safechat.infrastructure.database.chat_store import SqlAlchemyChatStore
from safechat.services.safety.escalation_orchestrator import EscalationOrchestrator
from safechat.services.safety.helpline_registry import HelplineRegistry

_orchestrator: Optional[EscalationOrchestrator] = None
_chat_store: Optional[SqlAlchemyChatStore] = None
_registry: Optional[HelplineRegistry] = None


def configure(
    orchestrator: EscalationOrchestrator,
    chat_store: SqlAlchemyChatStore,
    registry: HelplineRegistry,
) -> None:
    """Install the components built at startup."""
    global _orchestrator, _chat_store, _registry
    _orchestrator = orchestrator
    _chat_store = chat_store
    _registry = registry


def reset() -> None:
    """Drop installed components (shutdown and tests)."""
    global _orchestrator, _chat_store, _registry
    _orchestrator = None
    _chat_store = None
    _registry = None


def get_orchestrator() -> EscalationOrchestrator:
    """Get the escalation orchestrator."""
    if _orchestrator is None:
        raise RuntimeError("Escalation orchestrator not initialized")
    return _orchestrator


def get_chat_store() -> SqlAlchemyChatStore:
    """Get the SQLAlchemy chat store."""
    if _chat_store is None:
        raise RuntimeError("Chat store not initialized")
    return _chat_store


def get_helpline_registry() -> HelplineRegistry:
    """Get the helpline registry."""
    if _registry is None:
        raise RuntimeError("Helpline registry not initialized")
    return _registry
