"""Business logic use cases."""

from collections import Counter
from enum import Enum
from typing import Callable, Optional

from release_notifier.core import (
    FetchStatus,
    MessageFormatter,
    NotificationService,
    ReleaseCategorizer,
    ReleaseRecord,
    ReleaseSource,
    StateStore,
)
from release_notifier.logging_config import get_logger

logger = get_logger(__name__)


class RepositoryOutcome(str, Enum):
    """What one cycle did for one repository."""

    UNCHANGED = "unchanged"
    NOTIFIED = "notified"
    PREVIEWED = "previewed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ReleaseWatchService:
    """Fetch, categorize, format and deliver new releases.

    The stored tag and token only move forward after the last chunk of a
    release has been delivered, so a failed delivery is retried as a new
    release on the next cycle.
    """

    def __init__(
        self,
        source: ReleaseSource,
        categorizer: ReleaseCategorizer,
        formatter: MessageFormatter,
        state_store: StateStore,
        notification_service: Optional[NotificationService] = None,
        dry_run: bool = False,
    ) -> None:
        if notification_service is None and not dry_run:
            raise ValueError("notification_service is required unless dry_run is set")
        self.source = source
        self.categorizer = categorizer
        self.formatter = formatter
        self.state_store = state_store
        self.notification_service = notification_service
        self.dry_run = dry_run

    async def run_cycle(
        self,
        repositories: list[str],
        should_stop: Callable[[], bool] = lambda: False,
    ) -> dict[str, RepositoryOutcome]:
        """Process every repository once. Never raises."""
        outcomes: dict[str, RepositoryOutcome] = {}

        for repo in repositories:
            if should_stop():
                logger.info("cycle_interrupted", remaining=len(repositories) - len(outcomes))
                break

            try:
                outcomes[repo] = await self.process_repository(repo)
            except Exception:
                logger.exception("repository_processing_crashed", repo=repo)
                outcomes[repo] = RepositoryOutcome.FAILED

        counts = Counter(outcome.value for outcome in outcomes.values())
        logger.info("cycle_finished", repositories=len(outcomes), **counts)
        return outcomes

    async def process_repository(self, repo: str) -> RepositoryOutcome:
        """Run fetch, categorize, format and deliver for one repository."""
        watch = self.state_store.get(repo)
        etag = watch.etag if watch else None
        last_tag = watch.last_tag if watch else None

        result = await self.source.fetch_latest(repo, etag)

        if result.status is FetchStatus.FAILED:
            failure = result.failure
            logger.warning(
                "fetch_skipped",
                repo=repo,
                operation="fetch",
                failure=failure.kind.value if failure else "unknown",
                detail=failure.detail if failure else "",
                reset_at=failure.reset_at.isoformat() if failure and failure.reset_at else None,
            )
            return RepositoryOutcome.SKIPPED

        if result.status is FetchStatus.NOT_MODIFIED:
            logger.debug("release_not_modified", repo=repo)
            return RepositoryOutcome.UNCHANGED

        if result.status is FetchStatus.NO_RELEASES or result.release is None:
            logger.debug("no_releases", repo=repo)
            self._commit(repo, etag=result.etag)
            return RepositoryOutcome.UNCHANGED

        release = result.release
        if release.tag == last_tag:
            logger.debug("release_already_notified", repo=repo, tag=release.tag)
            self._commit(repo, etag=result.etag)
            return RepositoryOutcome.UNCHANGED

        logger.info("new_release", repo=repo, tag=release.tag, previous_tag=last_tag)
        return await self._notify(release, result.etag)

    async def _notify(self, release: ReleaseRecord, etag: Optional[str]) -> RepositoryOutcome:
        categorized = await self.categorizer.categorize(release)
        chunks = self.formatter.format(categorized)

        if self.dry_run or self.notification_service is None:
            for chunk in chunks:
                logger.info(
                    "dry_run_chunk",
                    repo=release.repo,
                    tag=release.tag,
                    chunk=chunk.index + 1,
                    total=chunk.total,
                    text=chunk.text,
                )
            return RepositoryOutcome.PREVIEWED

        report = await self.notification_service.send_chunks(chunks)
        if not report.delivered:
            logger.error(
                "delivery_failed",
                repo=release.repo,
                tag=release.tag,
                operation="deliver",
                sent=report.sent,
                total=report.total,
                failure=report.failure.kind.value if report.failure else "incomplete",
            )
            return RepositoryOutcome.FAILED

        self._commit(release.repo, etag=etag, tag=release.tag)
        logger.info("release_delivered", repo=release.repo, tag=release.tag, chunks=report.sent)
        return RepositoryOutcome.NOTIFIED

    def _commit(self, repo: str, etag: Optional[str] = None, tag: Optional[str] = None) -> None:
        if self.dry_run or (etag is None and tag is None):
            return
        self.state_store.put(repo, etag=etag, tag=tag)
