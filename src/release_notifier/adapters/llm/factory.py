"""Pick the language-generation backend named in configuration."""

from release_notifier.adapters.llm.anthropic_client import AnthropicClient
from release_notifier.adapters.llm.base import HttpTextGenerator
from release_notifier.adapters.llm.google_client import GoogleClient
from release_notifier.adapters.llm.openai_client import OpenAIChatClient, OpenAIResponsesClient
from release_notifier.config import LLMConfig

_BACKENDS: dict[str, type[HttpTextGenerator]] = {
    "google": GoogleClient,
    "anthropic": AnthropicClient,
    "openai-responses": OpenAIResponsesClient,
    "openai": OpenAIChatClient,
}


def create_text_generator(config: LLMConfig, api_key: str) -> HttpTextGenerator:
    """Build the configured backend.

    Anything unrecognized gets the Chat Completions client, which is what
    OpenAI-compatible proxies speak.
    """
    backend = _BACKENDS.get(config.provider, OpenAIChatClient)
    return backend(config, api_key)
