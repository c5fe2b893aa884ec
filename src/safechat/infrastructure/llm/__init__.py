"""LLM provider abstraction package."""

from safechat.infrastructure.llm.provider import (
    LLMProvider,
    LLMResponse,
    LLMProviderError,
    RateLimitError,
    ContentFilterError,
)
from safechat.infrastructure.llm.openai_provider import OpenAIProvider
from safechat.infrastructure.llm.provider_factory import get_llm_provider, LLMProviderType

__all__ = [
    # Base types
    "LLMProvider",
    "LLMResponse",
    "LLMProviderError",
    "RateLimitError",
    "ContentFilterError",
    # Providers
    "OpenAIProvider",
    # Factory
    "get_llm_provider",
    "LLMProviderType",
]
