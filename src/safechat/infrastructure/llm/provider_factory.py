"""
LLM Provider Factory

Creates the verifier's classification provider from configuration.

CONFIGURATION:
    SAFECHAT_VERIFIER_PROVIDER=openrouter  # or: openai
"""

from enum import StrEnum
from typing import Optional

from safechat.config import get_settings
from safechat.config.logging_config import get_logger
from safechat.infrastructure.llm.provider import LLMProvider

logger = get_logger(__name__)

OPENAI_BASE_URL = "https://api.openai.com/v1"


class LLMProviderType(StrEnum):
    """Supported LLM provider types."""

    OPENROUTER = "openrouter"
    OPENAI = "openai"


# Singleton instances for reuse
_provider_instances: dict[LLMProviderType, LLMProvider] = {}


def get_llm_provider(
    provider_type: Optional[LLMProviderType] = None,
    force_new: bool = False,
) -> LLMProvider:
    """
    Get LLM provider instance.

    Provider type defaults to SAFECHAT_VERIFIER_PROVIDER.

    Args:
        provider_type: Override provider type
        force_new: Create new instance instead of cached

    Returns:
        Configured LLM provider
    """
    if provider_type is None:
        provider_str = get_settings().verifier.provider
        try:
            provider_type = LLMProviderType(provider_str)
        except ValueError:
            logger.warning("Unknown verifier provider, defaulting to openrouter", provider=provider_str)
            provider_type = LLMProviderType.OPENROUTER

    if not force_new and provider_type in _provider_instances:
        return _provider_instances[provider_type]

    provider = _create_provider(provider_type)

    if not force_new:
        _provider_instances[provider_type] = provider

    logger.info(
        "LLM provider initialized",
        provider=provider_type.value,
        configured=provider.is_configured(),
    )

    return provider


def _create_provider(provider_type: LLMProviderType) -> LLMProvider:
    """Create provider instance by type."""
    from safechat.infrastructure.llm.openai_provider import OpenAIProvider

    if provider_type == LLMProviderType.OPENROUTER:
        return OpenAIProvider(provider_name="openrouter")

    if provider_type == LLMProviderType.OPENAI:
        return OpenAIProvider(
            base_url=OPENAI_BASE_URL,
            provider_name="openai",
            default_headers={},
        )

    raise ValueError(f"Unknown provider type: {provider_type}")


def clear_provider_cache() -> None:
    """Clear cached provider instances (for testing)."""
    _provider_instances.clear()
