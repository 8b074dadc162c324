"""Tests for language-generation backend clients."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from release_notifier.adapters.llm import (
    AnthropicClient,
    GoogleClient,
    OpenAIChatClient,
    OpenAIResponsesClient,
    create_text_generator,
)
from release_notifier.adapters.llm.prompts import RELEASE_OUTPUT_SCHEMA
from release_notifier.config import LLMConfig
from release_notifier.core import FailureKind


@pytest.fixture
def llm_config() -> LLMConfig:
    """Create config with fast retries."""
    return LLMConfig(model="test-model", max_retries=3, initial_retry_delay=0.0)


def make_response(status_code: int, body: Any = None, headers: dict | None = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body or {}
    response.headers = headers or {}
    response.text = str(body)
    return response


def mock_http(mock_client_class: MagicMock, *responses: Any) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.post.side_effect = list(responses)
    mock_client_class.return_value = mock_client
    return mock_client


@pytest.mark.asyncio
async def test_openai_chat_success(llm_config: LLMConfig) -> None:
    """Test chat completions request and response parsing."""
    client = OpenAIChatClient(llm_config, "sk-test")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class, make_response(200, {
            "choices": [{"message": {"content": '{"categories": []}'}}]
        }))

        result = await client.generate("system", "prompt", RELEASE_OUTPUT_SCHEMA)

        assert result.ok
        assert result.text == '{"categories": []}'

        call = mock_client.post.call_args
        assert call.args[0] == "https://api.openai.com/v1/chat/completions"
        assert call.kwargs["headers"]["Authorization"] == "Bearer sk-test"
        payload = call.kwargs["json"]
        assert payload["temperature"] == 0.0
        assert payload["messages"][0] == {"role": "system", "content": "system"}
        assert payload["response_format"]["json_schema"]["schema"] == RELEASE_OUTPUT_SCHEMA


@pytest.mark.asyncio
async def test_base_url_override(llm_config: LLMConfig) -> None:
    """Test custom endpoint for OpenAI-compatible proxies."""
    llm_config.base_url = "https://proxy.example.com/v1/"
    client = OpenAIChatClient(llm_config, "sk-test")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class, make_response(200, {
            "choices": [{"message": {"content": "{}"}}]
        }))

        await client.generate("system", "prompt", RELEASE_OUTPUT_SCHEMA)

        assert mock_client.post.call_args.args[0] == "https://proxy.example.com/v1/chat/completions"


@pytest.mark.asyncio
async def test_openai_responses_parsing(llm_config: LLMConfig) -> None:
    """Test responses API output extraction."""
    client = OpenAIResponsesClient(llm_config, "sk-test")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class, make_response(200, {
            "output": [
                {"type": "reasoning", "content": []},
                {"type": "message", "content": [{"type": "output_text", "text": '{"categories": []}'}]},
            ]
        }))

        result = await client.generate("system", "prompt", RELEASE_OUTPUT_SCHEMA)

        assert result.text == '{"categories": []}'
        payload = mock_client.post.call_args.kwargs["json"]
        assert mock_client.post.call_args.args[0].endswith("/responses")
        assert payload["instructions"] == "system"
        assert payload["text"]["format"]["type"] == "json_schema"


@pytest.mark.asyncio
async def test_anthropic_schema_in_system_prompt(llm_config: LLMConfig) -> None:
    """Test Anthropic request carries the schema in the system text."""
    client = AnthropicClient(llm_config, "ant-key")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class, make_response(200, {
            "content": [{"type": "text", "text": '{"categories": []}'}]
        }))

        result = await client.generate("system", "prompt", RELEASE_OUTPUT_SCHEMA)

        assert result.text == '{"categories": []}'
        call = mock_client.post.call_args
        assert call.args[0] == "https://api.anthropic.com/v1/messages"
        assert call.kwargs["headers"]["x-api-key"] == "ant-key"
        assert '"categories"' in call.kwargs["json"]["system"]


@pytest.mark.asyncio
async def test_google_schema_conversion(llm_config: LLMConfig) -> None:
    """Test Gemini request drops unsupported schema keywords."""
    client = GoogleClient(llm_config, "g-key")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class, make_response(200, {
            "candidates": [{"content": {"parts": [{"text": '{"categories": []}'}]}}]
        }))

        result = await client.generate("system", "prompt", RELEASE_OUTPUT_SCHEMA)

        assert result.text == '{"categories": []}'
        call = mock_client.post.call_args
        assert call.args[0].endswith("/models/test-model:generateContent")
        assert call.kwargs["headers"]["x-goog-api-key"] == "g-key"
        schema = call.kwargs["json"]["generationConfig"]["responseSchema"]
        assert "additionalProperties" not in schema
        assert "additionalProperties" not in schema["properties"]["categories"]["items"]


@pytest.mark.asyncio
async def test_retry_on_429(llm_config: LLMConfig) -> None:
    """Test retry logic on 429 error."""
    client = OpenAIChatClient(llm_config, "sk-test")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(
            mock_client_class,
            make_response(429, {}, {"retry-after": "0"}),
            make_response(200, {"choices": [{"message": {"content": "{}"}}]}),
        )

        result = await client.generate("system", "prompt", RELEASE_OUTPUT_SCHEMA)

        assert result.ok
        assert mock_client.post.call_count == 2


@pytest.mark.asyncio
async def test_timeout_exhausts_retries(llm_config: LLMConfig) -> None:
    """Test repeated timeouts end in a timeout failure."""
    client = AnthropicClient(llm_config, "ant-key")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(
            mock_client_class,
            *[httpx.ReadTimeout("timed out") for _ in range(3)],
        )

        result = await client.generate("system", "prompt", RELEASE_OUTPUT_SCHEMA)

        assert not result.ok
        assert result.failure.kind is FailureKind.TIMEOUT
        assert mock_client.post.call_count == 3


@pytest.mark.asyncio
async def test_auth_error_not_retried(llm_config: LLMConfig) -> None:
    """Test 401 fails immediately."""
    client = OpenAIChatClient(llm_config, "bad")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http(mock_client_class, make_response(401, {"error": "invalid key"}))

        result = await client.generate("system", "prompt", RELEASE_OUTPUT_SCHEMA)

        assert result.failure.kind is FailureKind.AUTH
        assert mock_client.post.call_count == 1


@pytest.mark.asyncio
async def test_unexpected_response_shape(llm_config: LLMConfig) -> None:
    """Test a 200 without the expected fields is malformed output."""
    client = OpenAIChatClient(llm_config, "sk-test")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http(mock_client_class, make_response(200, {"choices": []}))

        result = await client.generate("system", "prompt", RELEASE_OUTPUT_SCHEMA)

        assert result.failure.kind is FailureKind.MALFORMED_OUTPUT


@pytest.mark.parametrize(
    "provider, expected",
    [
        ("openai", OpenAIChatClient),
        ("openai-responses", OpenAIResponsesClient),
        ("anthropic", AnthropicClient),
        ("google", GoogleClient),
        ("something-else", OpenAIChatClient),
    ],
)
def test_factory_selects_backend(provider: str, expected: type) -> None:
    """Test provider switch."""
    client = create_text_generator(LLMConfig(provider=provider), "key")
    assert type(client) is expected
    assert client.api_key == "key"
