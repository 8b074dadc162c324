"""Language-generation backends and the release categorizer."""

from release_notifier.adapters.llm.anthropic_client import AnthropicClient
from release_notifier.adapters.llm.categorizer import LLMCategorizer
from release_notifier.adapters.llm.factory import create_text_generator
from release_notifier.adapters.llm.google_client import GoogleClient
from release_notifier.adapters.llm.openai_client import OpenAIChatClient, OpenAIResponsesClient

__all__ = [
    "AnthropicClient",
    "GoogleClient",
    "LLMCategorizer",
    "OpenAIChatClient",
    "OpenAIResponsesClient",
    "create_text_generator",
]
