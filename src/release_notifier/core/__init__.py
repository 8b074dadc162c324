"""Core domain layer."""

from release_notifier.core.entities import (
    CategorizedRelease,
    CategoryGroup,
    CategoryKind,
    DeliveryReport,
    Failure,
    FailureKind,
    FetchResult,
    FetchStatus,
    GenerationResult,
    MessageChunk,
    ReleaseRecord,
    RepositoryWatch,
)
from release_notifier.core.interfaces import (
    MessageFormatter,
    NotificationService,
    ReleaseCategorizer,
    ReleaseSource,
    TextGenerator,
)
from release_notifier.core.state_store import StateStore

__all__ = [
    "CategorizedRelease",
    "CategoryGroup",
    "CategoryKind",
    "DeliveryReport",
    "Failure",
    "FailureKind",
    "FetchResult",
    "FetchStatus",
    "GenerationResult",
    "MessageChunk",
    "ReleaseRecord",
    "RepositoryWatch",
    "MessageFormatter",
    "NotificationService",
    "ReleaseCategorizer",
    "ReleaseSource",
    "TextGenerator",
    "StateStore",
]
