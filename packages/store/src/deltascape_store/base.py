"""Abstract store interface.

The rollup pipeline depends on BaseStore only, so a different backend
(Postgres, Mongo, a hosted document store) can be dropped in without
touching deltascape_core.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from deltascape_store.models import OrgWeekUpdate, PullReport, RepoWeekUpdate


class BaseStore(ABC):
    """Persistence for PR reports and weekly rollups.

    Window arguments are ISO-8601 UTC strings and always describe a
    half-open interval ``[start, end)``.
    """

    @abstractmethod
    def upsert_pull_report(self, report: PullReport) -> None:
        """Insert the report, replacing any report stored for the same (owner, repo, number)."""

    @abstractmethod
    def insert_repo_update(self, update: RepoWeekUpdate) -> None:
        """Append a repo-week record. Earlier records for the same week are kept as history."""

    @abstractmethod
    def insert_org_update(self, update: OrgWeekUpdate) -> None:
        """Append an org-week record."""

    @abstractmethod
    def find_pull_reports(self, owner: str, repo: str, start: str, end: str) -> list[PullReport]:
        """Return reports whose merge timestamp falls in the window, oldest merge first."""

    @abstractmethod
    def find_repo_updates(self, owner: str, start: str, end: str) -> list[RepoWeekUpdate]:
        """Return the newest update per (repo, week) whose week starts in the window."""

    @abstractmethod
    def latest_repo_update(self, owner: str, repo: str) -> RepoWeekUpdate | None:
        """Return the update for the most recent week, or None."""

    @abstractmethod
    def latest_org_update(self, owner: str) -> OrgWeekUpdate | None:
        """Return the org update for the most recent week, or None."""

    @abstractmethod
    def list_pull_reports(self, owner: str, repo: str, limit: int = 50) -> list[PullReport]:
        """Return the most recently merged reports for a repository, newest first."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Default is a no-op so callers can always call close() safely.
        """

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
