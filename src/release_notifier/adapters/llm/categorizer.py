"""Release changelog categorization through a language model."""

import json
import time
from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from release_notifier.adapters.llm.prompts import RELEASE_OUTPUT_SCHEMA, build_system_prompt
from release_notifier.core import (
    CategorizedRelease,
    CategoryGroup,
    CategoryKind,
    Failure,
    FailureKind,
    ReleaseCategorizer,
    ReleaseRecord,
    TextGenerator,
)
from release_notifier.core.json_repair import repair_json_text
from release_notifier.logging_config import get_logger

logger = get_logger(__name__)

FALLBACK_EXCERPT_LENGTH = 500


def format_release_date(published_at: datetime, timezone: str) -> str:
    """Render an instant as ``YYYY-MM-DD HH:MM:SS`` in the given zone."""
    return published_at.astimezone(ZoneInfo(timezone)).strftime("%Y-%m-%d %H:%M:%S")


def parse_categories(data: Any) -> Optional[list[CategoryGroup]]:
    """Validate the model's object and keep only usable groups.

    Returns None when the overall shape is wrong. Groups with an unknown
    kind or no non-blank items are dropped silently.
    """
    if not isinstance(data, dict) or not isinstance(data.get("categories"), list):
        return None

    groups: list[CategoryGroup] = []
    for entry in data["categories"]:
        if not isinstance(entry, dict) or not isinstance(entry.get("items"), list):
            return None

        kind = CategoryKind.parse(entry.get("type"))
        if kind is None:
            continue

        items = tuple(
            item.strip() for item in entry["items"] if isinstance(item, str) and item.strip()
        )
        if not items:
            continue

        groups.append(CategoryGroup(kind=kind, items=items))

    return groups


class LLMCategorizer(ReleaseCategorizer):
    """Translate and classify changelog items, never losing a release."""

    def __init__(self, generator: TextGenerator, language: str, timezone: str) -> None:
        self.generator = generator
        self.language = language
        self.timezone = timezone
        self.system_prompt = build_system_prompt(language)

    async def categorize(self, release: ReleaseRecord) -> CategorizedRelease:
        """Categorize a release.

        Empty changelogs short-circuit without a model call. Any failure
        yields a single "other" group holding the start of the raw body.
        """
        base = dict(
            repo=release.repo,
            tag=release.tag,
            date=format_release_date(release.published_at, self.timezone),
            url=release.url,
        )

        if not release.body.strip():
            return CategorizedRelease(**base, categories=())

        start = time.monotonic()
        groups, failure = await self._request_categories(release)
        elapsed_ms = int((time.monotonic() - start) * 1000)

        if failure is not None:
            logger.error(
                "categorize_failed",
                repo=release.repo,
                tag=release.tag,
                failure=failure.kind.value,
                detail=failure.detail[:300],
                elapsed_ms=elapsed_ms,
            )
            return CategorizedRelease(**base, categories=(self._fallback_group(release),))

        logger.info(
            "release_categorized",
            repo=release.repo,
            tag=release.tag,
            groups=len(groups),
            elapsed_ms=elapsed_ms,
        )
        return CategorizedRelease(**base, categories=tuple(groups))

    async def _request_categories(
        self, release: ReleaseRecord
    ) -> tuple[list[CategoryGroup], Optional[Failure]]:
        """Call the model, repair its text and validate the result."""
        result = await self.generator.generate(
            system=self.system_prompt,
            prompt=release.body,
            schema=RELEASE_OUTPUT_SCHEMA,
        )
        if not result.ok:
            return [], result.failure or Failure(FailureKind.MALFORMED_OUTPUT, "empty response")

        json_text, repaired = repair_json_text(result.text or "")
        if repaired and json_text != (result.text or "").strip():
            logger.warning("model_output_repaired", repo=release.repo, tag=release.tag)

        try:
            data = json.loads(json_text)
        except json.JSONDecodeError as e:
            return [], Failure(FailureKind.MALFORMED_OUTPUT, f"{e}; text: {json_text[:200]}")

        groups = parse_categories(data)
        if groups is None:
            return [], Failure(FailureKind.MALFORMED_OUTPUT, f"schema mismatch: {json_text[:200]}")

        return groups, None

    @staticmethod
    def _fallback_group(release: ReleaseRecord) -> CategoryGroup:
        return CategoryGroup(
            kind=CategoryKind.OTHER,
            items=(release.body[:FALLBACK_EXCERPT_LENGTH],),
        )
