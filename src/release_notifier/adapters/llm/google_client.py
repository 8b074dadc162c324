"""Google Gemini generateContent backend."""

from typing import Any

from release_notifier.adapters.llm.base import HttpTextGenerator


def _to_gemini_schema(schema: dict[str, Any]) -> dict[str, Any]:
    """Drop JSON-schema keywords the Gemini API rejects."""
    converted: dict[str, Any] = {}
    for key, value in schema.items():
        if key == "additionalProperties":
            continue
        if key == "properties":
            converted[key] = {name: _to_gemini_schema(sub) for name, sub in value.items()}
        elif key == "items" and isinstance(value, dict):
            converted[key] = _to_gemini_schema(value)
        else:
            converted[key] = value
    return converted


class GoogleClient(HttpTextGenerator):
    """Gemini models through the Generative Language API."""

    provider = "google"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"

    def _endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def _headers(self) -> dict[str, str]:
        return {
            "x-goog-api-key": self.api_key,
            "content-type": "application/json",
        }

    def _payload(self, system: str, prompt: str, schema: dict[str, Any]) -> dict[str, Any]:
        return {
            "systemInstruction": {"parts": [{"text": system}]},
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_tokens,
                "responseMimeType": "application/json",
                "responseSchema": _to_gemini_schema(schema),
            },
        }

    def _extract_text(self, data: dict[str, Any]) -> str:
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(part.get("text", "") for part in parts)
