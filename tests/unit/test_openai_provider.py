"""
Unit Tests for the OpenAI-Compatible Provider

The AsyncOpenAI client is replaced with a mock; no network access.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from safechat.infrastructure.llm.openai_provider import OpenAIProvider
from safechat.infrastructure.llm.provider import ContentFilterError, LLMProviderError, RateLimitError
from safechat.services.prompt.prompt_builder import BuiltPrompt


def completion(content="{}", finish_reason="stop"):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content), finish_reason=finish_reason)],
        usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5, total_tokens=15),
    )


def http_error(cls, status_code):
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    response = httpx.Response(status_code, request=request)
    return cls("error", response=response, body=None)


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=completion('{"concernLevel": 2}'))
    return client


@pytest.fixture
def provider(client) -> OpenAIProvider:
    provider = OpenAIProvider(api_key="test-key", model="test/model", base_url="https://openrouter.ai/api/v1")
    provider._client = client
    return provider


@pytest.fixture
def prompt() -> BuiltPrompt:
    return BuiltPrompt(system_prompt="system", user_message="user", max_tokens=300, temperature=0.2)


class TestGenerate:

    async def test_returns_content(self, provider, prompt):
        response = await provider.generate(prompt)

        assert response.content == '{"concernLevel": 2}'
        assert response.total_tokens == 15
        assert response.model == "test/model"

    async def test_request_shape(self, provider, client, prompt):
        await provider.generate(prompt, json_mode=True)

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "test/model"
        assert kwargs["max_tokens"] == 300
        assert kwargs["temperature"] == 0.2
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    async def test_no_response_format_by_default(self, provider, client, prompt):
        await provider.generate(prompt)

        assert "response_format" not in client.chat.completions.create.call_args.kwargs

    async def test_attribution_headers(self):
        provider = OpenAIProvider(api_key="k")

        assert "X-Title" in provider._default_headers
        assert "HTTP-Referer" in provider._default_headers


class TestErrors:

    async def test_unconfigured(self, prompt):
        provider = OpenAIProvider(api_key="", model="m")
        provider._api_key = ""

        with pytest.raises(LLMProviderError):
            await provider.generate(prompt)

    async def test_status_error(self, provider, client, prompt):
        client.chat.completions.create.side_effect = http_error(openai.InternalServerError, 500)

        with pytest.raises(LLMProviderError) as exc_info:
            await provider.generate(prompt)

        assert exc_info.value.status_code == 500

    async def test_rate_limit_retried_once(self, provider, client, prompt):
        client.chat.completions.create.side_effect = http_error(openai.RateLimitError, 429)

        with pytest.raises(RateLimitError):
            await provider.generate(prompt)

        assert client.chat.completions.create.await_count == 2

    async def test_connection_error(self, provider, client, prompt):
        request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
        client.chat.completions.create.side_effect = openai.APIConnectionError(request=request)

        with pytest.raises(LLMProviderError) as exc_info:
            await provider.generate(prompt)

        assert exc_info.value.is_retryable is True

    async def test_no_choices(self, provider, client, prompt):
        client.chat.completions.create.return_value = SimpleNamespace(choices=[], usage=None)

        with pytest.raises(LLMProviderError):
            await provider.generate(prompt)

    async def test_content_filter(self, provider, client, prompt):
        client.chat.completions.create.return_value = completion("", finish_reason="content_filter")

        with pytest.raises(ContentFilterError):
            await provider.generate(prompt)
