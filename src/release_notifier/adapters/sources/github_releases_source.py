"""GitHub source for the newest release of a repository."""

from datetime import datetime, timezone
from typing import Optional

import httpx

from release_notifier.core import (
    Failure,
    FailureKind,
    FetchResult,
    FetchStatus,
    ReleaseRecord,
    ReleaseSource,
)
from release_notifier.logging_config import get_logger

logger = get_logger(__name__)


class GitHubReleasesSource(ReleaseSource):
    """List releases through the GitHub REST API using ETag caching.

    A 304 answer to a conditional request does not count against the
    primary rate limit, so unchanged repositories cost no quota.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_base: str = "https://api.github.com",
        timeout: float = 30.0,
    ) -> None:
        self.token = token
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._paused_until: Optional[datetime] = None

    @property
    def paused_until(self) -> Optional[datetime]:
        """Rate-limit reset time while it lies in the future."""
        if self._paused_until and self._paused_until > datetime.now(timezone.utc):
            return self._paused_until
        return None

    async def fetch_latest(self, repo: str, etag: Optional[str] = None) -> FetchResult:
        """Fetch the newest release of ``repo``.

        Never raises for HTTP or transport problems: they come back as a
        FAILED result carrying the failure kind.
        """
        paused_until = self.paused_until
        if paused_until:
            return FetchResult.failed(Failure(
                kind=FailureKind.RATE_LIMITED,
                detail="waiting for rate limit reset",
                reset_at=paused_until,
            ))

        headers = self._get_headers()
        if etag:
            headers["If-None-Match"] = etag

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.api_base}/repos/{repo}/releases",
                    headers=headers,
                    params={"per_page": 1},
                )
        except httpx.TimeoutException as e:
            return FetchResult.failed(Failure(FailureKind.TIMEOUT, str(e) or type(e).__name__))
        except httpx.RequestError as e:
            return FetchResult.failed(Failure(FailureKind.NETWORK, str(e) or type(e).__name__))

        if response.status_code == 304:
            return FetchResult.not_modified()

        if response.status_code != 200:
            return FetchResult.failed(self._classify_error(response))

        new_etag = response.headers.get("etag")
        try:
            releases = response.json()
        except ValueError as e:
            return FetchResult.failed(Failure(FailureKind.SERVER, f"invalid JSON body: {e}"))

        if not releases:
            return FetchResult(status=FetchStatus.NO_RELEASES, etag=new_etag)

        try:
            release = self._create_release(repo, releases[0])
        except (KeyError, TypeError, ValueError) as e:
            return FetchResult.failed(Failure(FailureKind.SERVER, f"unexpected release payload: {e}"))

        return FetchResult(status=FetchStatus.RELEASE, release=release, etag=new_etag)

    def _classify_error(self, response: httpx.Response) -> Failure:
        """Map an error response onto a failure kind."""
        status = response.status_code
        detail = f"HTTP {status}: {self._error_message(response)}"

        if status in (403, 429) and self._is_rate_limited(response):
            reset_at = self._parse_reset(response)
            retry_after = self._parse_retry_after(response)
            if reset_at is None and retry_after is not None:
                reset_at = datetime.fromtimestamp(
                    datetime.now(timezone.utc).timestamp() + retry_after, tz=timezone.utc
                )
            self._paused_until = reset_at
            logger.warning(
                "github_rate_limited",
                reset_at=reset_at.isoformat() if reset_at else None,
                authenticated=bool(self.token),
            )
            return Failure(
                kind=FailureKind.RATE_LIMITED,
                detail=detail,
                retry_after=retry_after,
                reset_at=reset_at,
            )

        if status in (401, 403):
            return Failure(FailureKind.AUTH, detail)
        if status == 404:
            return Failure(FailureKind.NOT_FOUND, detail)
        if status >= 500:
            return Failure(FailureKind.SERVER, detail)
        return Failure(FailureKind.REJECTED, detail)

    @staticmethod
    def _is_rate_limited(response: httpx.Response) -> bool:
        if response.headers.get("x-ratelimit-remaining") == "0":
            return True
        if "retry-after" in response.headers:
            return True
        return response.status_code == 429

    @staticmethod
    def _parse_reset(response: httpx.Response) -> Optional[datetime]:
        value = response.headers.get("x-ratelimit-reset")
        if not value:
            return None
        try:
            return datetime.fromtimestamp(int(value), tz=timezone.utc)
        except ValueError:
            return None

    @staticmethod
    def _parse_retry_after(response: httpx.Response) -> Optional[float]:
        value = response.headers.get("retry-after")
        if not value:
            return None
        try:
            return float(value)
        except ValueError:
            return None

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return str(response.json().get("message", ""))
        except (ValueError, AttributeError):
            return response.text[:200]

    def _create_release(self, repo: str, data: dict) -> ReleaseRecord:
        """Create release record from a list-releases entry."""
        published = data.get("published_at") or data.get("created_at")
        if published:
            published_at = datetime.fromisoformat(published.replace("Z", "+00:00"))
        else:
            published_at = datetime.now(timezone.utc)

        return ReleaseRecord(
            repo=repo,
            tag=data["tag_name"],
            published_at=published_at,
            url=data.get("html_url") or f"https://github.com/{repo}/releases",
            body=data.get("body") or "",
        )

    def _get_headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        return headers
