"""Durable per-repository tracking state kept in a single YAML file."""

import os
import tempfile
from pathlib import Path
from typing import Optional

import yaml

from release_notifier.core.entities import RepositoryWatch
from release_notifier.logging_config import get_logger

logger = get_logger(__name__)


class StateStore:
    """Map repository id to its last conditional-fetch token and notified tag.

    The whole mapping is loaded at construction and flushed after every
    ``put``. Entries for repositories no longer configured stay in the file
    untouched.
    """

    def __init__(self, state_file: Path) -> None:
        self.state_file = state_file
        self._watches: dict[str, RepositoryWatch] = {}
        self._load()

    def _load(self) -> None:
        """Read state file, starting empty if it is missing or unreadable."""
        if not self.state_file.exists():
            logger.info("state_file_missing", path=str(self.state_file))
            return

        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            # Latest release of every repository gets notified again.
            logger.warning("state_file_unreadable", path=str(self.state_file), error=str(e))
            return

        if not isinstance(data, dict):
            logger.warning("state_file_invalid", path=str(self.state_file))
            return

        repositories = data.get("repositories") or {}
        if not isinstance(repositories, dict):
            logger.warning("state_file_invalid", path=str(self.state_file))
            return

        for repo, entry in repositories.items():
            entry = entry or {}
            if not isinstance(repo, str) or not isinstance(entry, dict):
                logger.warning("state_entry_invalid", path=str(self.state_file), repo=str(repo))
                continue
            self._watches[repo] = RepositoryWatch(
                repo=repo,
                etag=entry.get("etag"),
                last_tag=entry.get("last_tag"),
            )

        logger.info("state_loaded", path=str(self.state_file), repositories=len(self._watches))

    def get(self, repo: str) -> Optional[RepositoryWatch]:
        """Return tracking state for a repository, or None if never seen."""
        watch = self._watches.get(repo)
        if watch is None:
            return None
        return RepositoryWatch(repo=watch.repo, etag=watch.etag, last_tag=watch.last_tag)

    def put(self, repo: str, etag: Optional[str] = None, tag: Optional[str] = None) -> RepositoryWatch:
        """Merge given fields into the repository's state and flush.

        None leaves the stored value as it is.
        """
        watch = self._watches.setdefault(repo, RepositoryWatch(repo=repo))
        if etag is not None:
            watch.etag = etag
        if tag is not None:
            watch.last_tag = tag

        self._flush()
        return self.get(repo)  # type: ignore[return-value]

    def repositories(self) -> list[str]:
        """List every repository with stored state."""
        return sorted(self._watches)

    def _flush(self) -> None:
        """Write the mapping atomically."""
        data = {
            "repositories": {
                repo: {"etag": watch.etag, "last_tag": watch.last_tag}
                for repo, watch in sorted(self._watches.items())
            }
        }

        self.state_file.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.state_file.parent, prefix=".state-", suffix=".yaml"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                yaml.dump(data, f, allow_unicode=True, default_flow_style=False, sort_keys=False)
            os.replace(tmp_path, self.state_file)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
