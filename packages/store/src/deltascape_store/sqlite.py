"""SQLiteStore — local file-based store for PR reports and weekly rollups.

Schema:
  pulls               — one row per (owner, repo, number); rewritten on rerun.
  weekly_updates      — append-only repo-week history.
  weekly_org_updates  — append-only org-week history.

Timestamps are ISO-8601 UTC strings produced by ``models.to_iso`` so the
window filters below can compare them as text.
"""

from __future__ import annotations

import logging
import sqlite3

from deltascape_store.base import BaseStore
from deltascape_store.models import OrgWeekUpdate, PullReport, RepoWeekUpdate

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS pulls (
    owner            TEXT NOT NULL,
    repo             TEXT NOT NULL,
    number           INTEGER NOT NULL,
    title            TEXT,
    body             TEXT,
    author           TEXT,
    author_avatar    TEXT,
    author_html_url  TEXT,
    html_url         TEXT,
    diff_url         TEXT,
    comments_url     TEXT,
    merged_at        TEXT NOT NULL,
    summary          TEXT,
    compressed_diff  TEXT,
    created_at       TEXT,
    PRIMARY KEY (owner, repo, number)
);
CREATE INDEX IF NOT EXISTS idx_pulls_merged ON pulls (owner, repo, merged_at);

CREATE TABLE IF NOT EXISTS weekly_updates (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    owner          TEXT NOT NULL,
    repo           TEXT NOT NULL,
    week_start_at  TEXT NOT NULL,
    update_text    TEXT,
    created_at     TEXT
);
CREATE INDEX IF NOT EXISTS idx_weekly_owner ON weekly_updates (owner, week_start_at);

CREATE TABLE IF NOT EXISTS weekly_org_updates (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    owner              TEXT NOT NULL,
    week_start_at      TEXT NOT NULL,
    update_text        TEXT,
    short_update_text  TEXT,
    created_at         TEXT
);
CREATE INDEX IF NOT EXISTS idx_weekly_org_owner ON weekly_org_updates (owner, week_start_at);
"""

_PULL_COLUMNS = (
    "owner",
    "repo",
    "number",
    "title",
    "body",
    "author",
    "author_avatar",
    "author_html_url",
    "html_url",
    "diff_url",
    "comments_url",
    "merged_at",
    "summary",
    "compressed_diff",
    "created_at",
)


class SQLiteStore(BaseStore):
    """Stores reports and rollups in a local SQLite database file.

    The path defaults to `.deltascape.db` in the current working directory.
    Configure via .deltascape.yml: `store_path: /path/to/deltascape.db`.
    Pass ":memory:" for a throwaway database.
    """

    def __init__(self, db_path: str = ".deltascape.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def upsert_pull_report(self, report: PullReport) -> None:
        placeholders = ", ".join("?" for _ in _PULL_COLUMNS)
        updates = ", ".join(f"{c}=excluded.{c}" for c in _PULL_COLUMNS[3:])
        self._conn.execute(
            f"INSERT INTO pulls ({', '.join(_PULL_COLUMNS)}) VALUES ({placeholders}) "
            f"ON CONFLICT (owner, repo, number) DO UPDATE SET {updates}",
            tuple(getattr(report, c) for c in _PULL_COLUMNS),
        )
        self._conn.commit()
        logger.debug("Upserted report for %s/%s#%d", report.owner, report.repo, report.number)

    def insert_repo_update(self, update: RepoWeekUpdate) -> None:
        self._conn.execute(
            """
            INSERT INTO weekly_updates (owner, repo, week_start_at, update_text, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (update.owner, update.repo, update.week_start_at, update.update, update.created_at),
        )
        self._conn.commit()

    def insert_org_update(self, update: OrgWeekUpdate) -> None:
        self._conn.execute(
            """
            INSERT INTO weekly_org_updates
              (owner, week_start_at, update_text, short_update_text, created_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (update.owner, update.week_start_at, update.update, update.short_update, update.created_at),
        )
        self._conn.commit()

    def find_pull_reports(self, owner: str, repo: str, start: str, end: str) -> list[PullReport]:
        rows = self._conn.execute(
            "SELECT * FROM pulls WHERE owner=? AND repo=? AND merged_at >= ? AND merged_at < ? "
            "ORDER BY merged_at, number",
            (owner, repo, start, end),
        ).fetchall()
        return [self._row_to_report(r) for r in rows]

    def find_repo_updates(self, owner: str, start: str, end: str) -> list[RepoWeekUpdate]:
        # Newest row wins for each (repo, week) so reruns supersede older records.
        rows = self._conn.execute(
            """
            SELECT * FROM weekly_updates
            WHERE id IN (
                SELECT MAX(id) FROM weekly_updates
                WHERE owner=? AND week_start_at >= ? AND week_start_at < ?
                GROUP BY repo, week_start_at
            )
            ORDER BY repo, week_start_at
            """,
            (owner, start, end),
        ).fetchall()
        return [self._row_to_repo_update(r) for r in rows]

    def latest_repo_update(self, owner: str, repo: str) -> RepoWeekUpdate | None:
        row = self._conn.execute(
            "SELECT * FROM weekly_updates WHERE owner=? AND repo=? ORDER BY week_start_at DESC, id DESC LIMIT 1",
            (owner, repo),
        ).fetchone()
        return self._row_to_repo_update(row) if row else None

    def latest_org_update(self, owner: str) -> OrgWeekUpdate | None:
        row = self._conn.execute(
            "SELECT * FROM weekly_org_updates WHERE owner=? ORDER BY week_start_at DESC, id DESC LIMIT 1",
            (owner,),
        ).fetchone()
        if row is None:
            return None
        return OrgWeekUpdate(
            owner=row["owner"],
            week_start_at=row["week_start_at"],
            update=row["update_text"] or "",
            short_update=row["short_update_text"] or "",
            created_at=row["created_at"] or "",
        )

    def list_pull_reports(self, owner: str, repo: str, limit: int = 50) -> list[PullReport]:
        rows = self._conn.execute(
            "SELECT * FROM pulls WHERE owner=? AND repo=? ORDER BY merged_at DESC, number DESC LIMIT ?",
            (owner, repo, limit),
        ).fetchall()
        return [self._row_to_report(r) for r in rows]

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_report(row: sqlite3.Row) -> PullReport:
        return PullReport(
            owner=row["owner"],
            repo=row["repo"],
            number=row["number"],
            title=row["title"] or "",
            html_url=row["html_url"] or "",
            diff_url=row["diff_url"] or "",
            comments_url=row["comments_url"] or "",
            merged_at=row["merged_at"],
            summary=row["summary"] or "",
            compressed_diff=row["compressed_diff"] or "",
            body=row["body"] or "",
            author=row["author"],
            author_avatar=row["author_avatar"],
            author_html_url=row["author_html_url"],
            created_at=row["created_at"] or "",
        )

    @staticmethod
    def _row_to_repo_update(row: sqlite3.Row) -> RepoWeekUpdate:
        return RepoWeekUpdate(
            owner=row["owner"],
            repo=row["repo"],
            week_start_at=row["week_start_at"],
            update=row["update_text"] or "",
            created_at=row["created_at"] or "",
        )
