"""Instruction text and output schema for release categorization."""

from typing import Any

from release_notifier.core import CategoryKind

CATEGORY_TYPES = [kind.value for kind in CategoryKind]

RELEASE_OUTPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "required": ["categories"],
    "properties": {
        "categories": {
            "type": "array",
            "items": {
                "type": "object",
                "additionalProperties": False,
                "required": ["type", "items"],
                "properties": {
                    "type": {"type": "string", "enum": CATEGORY_TYPES},
                    "items": {"type": "array", "items": {"type": "string"}},
                },
            },
        },
    },
}

LANGUAGE_NAMES = {
    "zh-CN": "Simplified Chinese (简体中文)",
    "zh-TW": "Traditional Chinese (繁體中文)",
    "en": "English",
    "ru": "Russian (русский)",
    "ja": "Japanese (日本語)",
    "ko": "Korean (한국어)",
    "de": "German (Deutsch)",
    "fr": "French (français)",
    "es": "Spanish (español)",
}

SYSTEM_PROMPT_TEMPLATE = """You are a GitHub Release Notes translator and categorizer.
Given release notes in any language, you MUST:
1. Translate all content to {language}
2. Categorize each change into exactly one type: {types}
3. Return data that strictly follows the provided schema

Rules:
- Each item should be a concise one-line description in {language}
- Merge duplicate or very similar items
- If a change doesn't fit feat/fix/perf/refactor/docs, use "other"
- Skip CI/build/dependency-only changes unless significant
- If input is empty or meaningless, return an empty categories array"""


def language_name(language: str) -> str:
    """Human-readable name for a language code, or the code itself."""
    return LANGUAGE_NAMES.get(language, language)


def build_system_prompt(language: str) -> str:
    return SYSTEM_PROMPT_TEMPLATE.format(
        language=language_name(language),
        types=", ".join(CATEGORY_TYPES),
    )
