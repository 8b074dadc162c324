"""Anthropic Messages API backend."""

import json
from typing import Any

from release_notifier.adapters.llm.base import HttpTextGenerator


class AnthropicClient(HttpTextGenerator):
    """Claude models. The schema travels inside the system instruction."""

    provider = "anthropic"
    default_base_url = "https://api.anthropic.com/v1"

    def _endpoint(self) -> str:
        return f"{self.base_url}/messages"

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }

    def _payload(self, system: str, prompt: str, schema: dict[str, Any]) -> dict[str, Any]:
        system_with_schema = (
            f"{system}\n\n"
            "Respond with a single JSON object and nothing else. "
            f"It must validate against this JSON schema:\n{json.dumps(schema)}"
        )
        return {
            "model": self.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "system": system_with_schema,
            "messages": [
                {"role": "user", "content": prompt}
            ],
        }

    def _extract_text(self, data: dict[str, Any]) -> str:
        return "".join(
            block["text"] for block in data["content"] if block.get("type", "text") == "text"
        )
