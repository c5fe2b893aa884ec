"""
OpenAI-Compatible LLM Provider

Chat-completions client for OpenRouter, OpenAI or any other
OpenAI-compatible endpoint. Used by the concern verifier.
"""

import time
from typing import Optional

from openai import (
    AsyncOpenAI,
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    RateLimitError as OpenAIRateLimitError,
)
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)

from safechat.config import get_settings
from safechat.config.logging_config import get_logger
from safechat.infrastructure.llm.provider import (
    LLMProvider,
    LLMResponse,
    LLMProviderError,
    RateLimitError,
    ContentFilterError,
)
from safechat.services.prompt.prompt_builder import BuiltPrompt

logger = get_logger(__name__)


class OpenAIProvider(LLMProvider):
    """
    OpenAI-compatible provider.

    Features:
    - Async operation
    - Configurable base URL and attribution headers (OpenRouter)
    - JSON-object response mode
    - Bounded retries on rate limiting only; the verifier's own
      timeout caps total time spent here

    Usage:
        provider = OpenAIProvider()
        response = await provider.generate(prompt, json_mode=True)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        provider_name: str = "openrouter",
        default_headers: Optional[dict[str, str]] = None,
    ) -> None:
        """
        Initialize provider.

        Args:
            api_key: API key (defaults to settings)
            model: Model identifier (defaults to settings)
            base_url: OpenAI-compatible base URL (defaults to settings)
            max_tokens: Default max tokens
            temperature: Default temperature
            provider_name: Name used in logs and errors
            default_headers: Extra headers sent with every request
        """
        settings = get_settings()
        verifier = settings.verifier

        self._api_key = api_key or verifier.api_key.get_secret_value()
        self._default_model = model or verifier.model
        self._base_url = base_url or verifier.base_url
        self._default_max_tokens = max_tokens or verifier.max_tokens
        self._default_temperature = temperature if temperature is not None else verifier.temperature
        self._provider_name = provider_name

        if default_headers is None:
            default_headers = {
                "HTTP-Referer": settings.safety.app_url,
                "X-Title": verifier.app_title,
            }
        self._default_headers = default_headers

        self._client: Optional[AsyncOpenAI] = None

    @property
    def provider_name(self) -> str:
        return self._provider_name

    @property
    def default_model(self) -> str:
        return self._default_model

    def is_configured(self) -> bool:
        """Check if API key is configured."""
        return bool(self._api_key)

    def _get_client(self) -> AsyncOpenAI:
        """Get or create async client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                base_url=self._base_url,
                default_headers=self._default_headers,
                max_retries=0,
            )
        return self._client

    @retry(
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
        retry=retry_if_exception_type(RateLimitError),
        reraise=True,
    )
    async def generate(
        self,
        prompt: BuiltPrompt,
        *,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Generate completion.

        Args:
            prompt: Built prompt
            model: Model override
            max_tokens: Max tokens override
            temperature: Temperature override
            json_mode: Request a JSON object response

        Returns:
            LLMResponse with generated content
        """
        if not self.is_configured():
            raise LLMProviderError(
                f"{self._provider_name} API key not configured",
                provider=self.provider_name,
            )

        client = self._get_client()
        model_name = model or self._default_model

        kwargs = {
            "model": model_name,
            "messages": prompt.to_messages(),
            "max_tokens": max_tokens or prompt.max_tokens or self._default_max_tokens,
            "temperature": temperature if temperature is not None else prompt.temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        start_time = time.time()

        try:
            response = await client.chat.completions.create(**kwargs)
        except OpenAIRateLimitError as e:
            logger.warning("Verifier rate limit hit", provider=self.provider_name, error=str(e))
            raise RateLimitError(provider=self.provider_name, retry_after_seconds=1)
        except APIStatusError as e:
            logger.error(
                "Verifier API error",
                provider=self.provider_name,
                status_code=e.status_code,
                error=str(e),
            )
            raise LLMProviderError(
                f"{self._provider_name} API error (status {e.status_code})",
                provider=self.provider_name,
                status_code=e.status_code,
                original_error=e,
            )
        except (APIConnectionError, APITimeoutError) as e:
            logger.error("Verifier connection error", provider=self.provider_name, error=str(e))
            raise LLMProviderError(
                f"{self._provider_name} connection error: {e}",
                provider=self.provider_name,
                is_retryable=True,
                original_error=e,
            )

        latency_ms = int((time.time() - start_time) * 1000)

        if not response.choices:
            raise LLMProviderError(
                f"{self._provider_name} returned no choices",
                provider=self.provider_name,
            )

        choice = response.choices[0]
        content = choice.message.content or ""
        finish_reason = choice.finish_reason or "stop"

        if finish_reason == "content_filter":
            raise ContentFilterError(
                provider=self.provider_name,
                filter_reason="Content was filtered by provider safety systems",
            )

        usage = {
            "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
            "completion_tokens": response.usage.completion_tokens if response.usage else 0,
            "total_tokens": response.usage.total_tokens if response.usage else 0,
        }

        logger.debug(
            "Verifier completion generated",
            provider=self.provider_name,
            model=model_name,
            tokens=usage["total_tokens"],
            latency_ms=latency_ms,
        )

        return LLMResponse(
            content=content,
            finish_reason=finish_reason,
            usage=usage,
            model=model_name,
            provider=self.provider_name,
            latency_ms=latency_ms,
            raw_response=response,
        )
