"""Plain-text rendering of categorized releases for chat delivery."""

from release_notifier.core import (
    CategorizedRelease,
    CategoryKind,
    MessageChunk,
    MessageFormatter,
)

CATEGORY_LABELS: dict[str, dict[CategoryKind, str]] = {
    "zh-CN": {
        CategoryKind.FEATURE: "✨ 新功能",
        CategoryKind.FIX: "🐛 问题修复",
        CategoryKind.PERFORMANCE: "⚡ 性能优化",
        CategoryKind.REFACTOR: "♻️ 重构",
        CategoryKind.DOCUMENTATION: "📝 文档",
        CategoryKind.OTHER: "📦 其他",
    },
    "en": {
        CategoryKind.FEATURE: "✨ Features",
        CategoryKind.FIX: "🐛 Bug Fixes",
        CategoryKind.PERFORMANCE: "⚡ Performance",
        CategoryKind.REFACTOR: "♻️ Refactoring",
        CategoryKind.DOCUMENTATION: "📝 Documentation",
        CategoryKind.OTHER: "📦 Other",
    },
    "ru": {
        CategoryKind.FEATURE: "✨ Новое",
        CategoryKind.FIX: "🐛 Исправления",
        CategoryKind.PERFORMANCE: "⚡ Производительность",
        CategoryKind.REFACTOR: "♻️ Рефакторинг",
        CategoryKind.DOCUMENTATION: "📝 Документация",
        CategoryKind.OTHER: "📦 Прочее",
    },
    "ja": {
        CategoryKind.FEATURE: "✨ 新機能",
        CategoryKind.FIX: "🐛 バグ修正",
        CategoryKind.PERFORMANCE: "⚡ パフォーマンス",
        CategoryKind.REFACTOR: "♻️ リファクタリング",
        CategoryKind.DOCUMENTATION: "📝 ドキュメント",
        CategoryKind.OTHER: "📦 その他",
    },
}

NO_CHANGES_TEXT = {
    "zh-CN": "暂无更新说明",
    "en": "No release notes",
    "ru": "Описание изменений отсутствует",
    "ja": "リリースノートはありません",
}

FALLBACK_LANGUAGE = "en"


class TextMessageFormatter(MessageFormatter):
    """Render a release and split it into chunks under a size limit."""

    def __init__(self, language: str = "zh-CN", max_length: int = 4096) -> None:
        if max_length <= 0:
            raise ValueError("max_length must be positive")
        self.language = language
        self.max_length = max_length
        self.labels = CATEGORY_LABELS.get(language, CATEGORY_LABELS[FALLBACK_LANGUAGE])
        self.no_changes = NO_CHANGES_TEXT.get(language, NO_CHANGES_TEXT[FALLBACK_LANGUAGE])

    def format(self, release: CategorizedRelease) -> list[MessageChunk]:
        texts = split_text(self.render(release), self.max_length)
        return [
            MessageChunk(index=i, total=len(texts), text=text)
            for i, text in enumerate(texts)
        ]

    def render(self, release: CategorizedRelease) -> str:
        """Render the full message before splitting."""
        lines = [
            f"📦 {release.repo}",
            f"🏷 {release.tag} · {release.date}",
            f"🔗 {release.url}",
        ]

        groups = [group for group in release.categories if group.items]
        if not groups:
            lines.extend(["", self.no_changes])

        for group in groups:
            lines.extend(["", self.labels[group.kind]])
            for item in group.items:
                lines.append(f"• {item}")

        return "\n".join(lines)


def split_text(text: str, max_length: int) -> list[str]:
    """Split text into pieces of at most ``max_length`` characters.

    Breaks only between lines, packing as many whole lines per piece as
    fit. A line longer than the limit on its own is cut into hard pieces.
    Only newlines are lost at the cut points.
    """
    if len(text) <= max_length:
        return [text]

    chunks: list[str] = []
    current: list[str] = []
    current_length = 0

    for line in text.split("\n"):
        if len(line) > max_length:
            if current:
                chunks.append("\n".join(current))
                current, current_length = [], 0
            chunks.extend(
                line[start:start + max_length] for start in range(0, len(line), max_length)
            )
            continue

        added = len(line) if not current else len(line) + 1
        if current and current_length + added > max_length:
            chunks.append("\n".join(current))
            current, current_length = [], 0
            added = len(line)

        current.append(line)
        current_length += added

    if current:
        chunks.append("\n".join(current))

    # Blank separator lines at chunk edges carry nothing
    stripped = [chunk.strip("\n") for chunk in chunks]
    return [chunk for chunk in stripped if chunk.strip()]
