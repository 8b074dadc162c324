"""Source adapters for fetching releases."""

from release_notifier.adapters.sources.github_releases_source import GitHubReleasesSource

__all__ = ["GitHubReleasesSource"]
