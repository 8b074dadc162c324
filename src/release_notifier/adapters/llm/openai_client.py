"""OpenAI backends: Chat Completions and Responses APIs."""

import json
from typing import Any

from release_notifier.adapters.llm.base import HttpTextGenerator


class OpenAIChatClient(HttpTextGenerator):
    """Chat Completions API, also spoken by most OpenAI-compatible proxies."""

    provider = "openai"
    default_base_url = "https://api.openai.com/v1"

    def _endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "content-type": "application/json",
        }

    def _payload(self, system: str, prompt: str, schema: dict[str, Any]) -> dict[str, Any]:
        return {
            "model": self.model,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {
                    "name": "release_categories",
                    "strict": True,
                    "schema": schema,
                },
            },
        }

    def _extract_text(self, data: dict[str, Any]) -> str:
        return data["choices"][0]["message"]["content"] or ""


class OpenAIResponsesClient(OpenAIChatClient):
    """Responses API."""

    provider = "openai-responses"

    def _endpoint(self) -> str:
        return f"{self.base_url}/responses"

    def _payload(self, system: str, prompt: str, schema: dict[str, Any]) -> dict[str, Any]:
        return {
            "model": self.model,
            "temperature": self.config.temperature,
            "max_output_tokens": self.config.max_tokens,
            "instructions": system,
            "input": prompt,
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "release_categories",
                    "strict": True,
                    "schema": schema,
                },
            },
        }

    def _extract_text(self, data: dict[str, Any]) -> str:
        if data.get("output_text"):
            return data["output_text"]

        parts = [
            content["text"]
            for item in data["output"]
            if item.get("type") == "message"
            for content in item.get("content", [])
            if content.get("type") == "output_text"
        ]
        if not parts:
            raise KeyError(f"no output_text in response: {json.dumps(data)[:200]}")
        return "".join(parts)
