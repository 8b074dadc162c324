"""Core domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class CategoryKind(str, Enum):
    """Closed set of changelog item classifications."""

    FEATURE = "feat"
    FIX = "fix"
    PERFORMANCE = "perf"
    REFACTOR = "refactor"
    DOCUMENTATION = "docs"
    OTHER = "other"

    @classmethod
    def parse(cls, value: object) -> Optional["CategoryKind"]:
        """Return the matching kind or None for anything outside the set."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class FailureKind(str, Enum):
    """Why an outbound call did not succeed."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    AUTH = "auth"
    NOT_FOUND = "not_found"
    SERVER = "server"
    REJECTED = "rejected"
    MALFORMED_OUTPUT = "malformed_output"


_TRANSIENT = {
    FailureKind.NETWORK,
    FailureKind.TIMEOUT,
    FailureKind.RATE_LIMITED,
    FailureKind.SERVER,
}


@dataclass(frozen=True)
class Failure:
    """Structured failure reason returned instead of raising."""

    kind: FailureKind
    detail: str = ""
    retry_after: Optional[float] = None
    reset_at: Optional[datetime] = None

    @property
    def retryable(self) -> bool:
        return self.kind in _TRANSIENT

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}" if self.detail else self.kind.value


@dataclass
class RepositoryWatch:
    """Persisted tracking state of one monitored repository."""

    repo: str
    etag: Optional[str] = None
    last_tag: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.repo:
            raise ValueError("Repository cannot be empty")


@dataclass(frozen=True)
class ReleaseRecord:
    """A release as fetched from the source-control provider."""

    repo: str
    tag: str
    published_at: datetime
    url: str
    body: str = ""

    def __post_init__(self) -> None:
        if not self.tag:
            raise ValueError("Tag cannot be empty")


@dataclass(frozen=True)
class CategoryGroup:
    """One classification bucket with its translated one-line items."""

    kind: CategoryKind
    items: tuple[str, ...]


@dataclass(frozen=True)
class CategorizedRelease:
    """Release summary ready for rendering."""

    repo: str
    tag: str
    date: str
    url: str
    categories: tuple[CategoryGroup, ...] = ()


@dataclass(frozen=True)
class MessageChunk:
    """One outbound message, ordered among its siblings."""

    index: int
    total: int
    text: str


class FetchStatus(str, Enum):
    """Outcome of one release-listing call."""

    NOT_MODIFIED = "not_modified"
    RELEASE = "release"
    NO_RELEASES = "no_releases"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchResult:
    """Result of fetching the newest release of a repository."""

    status: FetchStatus
    release: Optional[ReleaseRecord] = None
    etag: Optional[str] = None
    failure: Optional[Failure] = None

    @classmethod
    def not_modified(cls) -> "FetchResult":
        return cls(status=FetchStatus.NOT_MODIFIED)

    @classmethod
    def failed(cls, failure: Failure) -> "FetchResult":
        return cls(status=FetchStatus.FAILED, failure=failure)


@dataclass(frozen=True)
class GenerationResult:
    """Raw text from a language-generation backend, or why there is none."""

    text: Optional[str] = None
    failure: Optional[Failure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.text is not None


@dataclass
class DeliveryReport:
    """How far delivery of one release's chunks got."""

    total: int
    sent: int = 0
    failure: Optional[Failure] = None
    message_ids: list[int] = field(default_factory=list)

    @property
    def delivered(self) -> bool:
        return self.failure is None and self.sent == self.total
