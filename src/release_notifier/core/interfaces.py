"""Core interfaces for adapters."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from release_notifier.core.entities import (
    CategorizedRelease,
    DeliveryReport,
    FetchResult,
    GenerationResult,
    MessageChunk,
    ReleaseRecord,
)


class ReleaseSource(ABC):
    """Interface for listing releases of a repository."""

    @abstractmethod
    async def fetch_latest(self, repo: str, etag: Optional[str] = None) -> FetchResult:
        """Fetch the newest release, honoring a conditional-fetch token."""
        pass


class TextGenerator(ABC):
    """Interface for language-generation backends."""

    @abstractmethod
    async def generate(
        self, system: str, prompt: str, schema: dict[str, Any]
    ) -> GenerationResult:
        """Generate text that should match the given JSON schema."""
        pass


class ReleaseCategorizer(ABC):
    """Interface for turning a raw changelog into category groups."""

    @abstractmethod
    async def categorize(self, release: ReleaseRecord) -> CategorizedRelease:
        """Categorize a release. Never raises on backend failures."""
        pass


class MessageFormatter(ABC):
    """Interface for rendering a categorized release into chunks."""

    @abstractmethod
    def format(self, release: CategorizedRelease) -> list[MessageChunk]:
        """Render and split into size-bounded chunks."""
        pass


class NotificationService(ABC):
    """Interface for delivering chunks to a messaging channel."""

    @abstractmethod
    async def send_chunks(self, chunks: list[MessageChunk]) -> DeliveryReport:
        """Send chunks strictly in order."""
        pass
