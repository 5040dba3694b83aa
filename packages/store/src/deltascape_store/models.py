"""Persisted records for the weekly rollup pipeline.

All three records are plain value objects. The store is the only writer of
record; the pipeline builds fully-populated instances and hands them over.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def utc_now() -> str:
    return to_iso(datetime.now(timezone.utc))


def to_iso(value: datetime) -> str:
    """Normalise a datetime to a second-precision ISO-8601 UTC string.

    Naive datetimes are assumed to already be UTC. A single format keeps
    lexical ordering in the store equal to chronological ordering.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


@dataclass
class PullReport:
    """A merged pull request together with its compressed diff and summary.

    Keyed by (owner, repo, number); saving the same key again replaces the
    previous report.
    """

    owner: str
    repo: str
    number: int
    title: str
    html_url: str
    diff_url: str
    comments_url: str
    merged_at: str  # ISO-8601 UTC timestamp
    summary: str
    compressed_diff: str
    body: str = ""
    author: str | None = None
    author_avatar: str | None = None
    author_html_url: str | None = None
    created_at: str = field(default_factory=utc_now)


@dataclass
class RepoWeekUpdate:
    """Narrative of what changed in one repository during one week."""

    owner: str
    repo: str
    week_start_at: str  # ISO-8601 UTC timestamp
    update: str
    created_at: str = field(default_factory=utc_now)


@dataclass
class OrgWeekUpdate:
    """Narrative plus a 1-2 sentence digest across all repositories of an owner."""

    owner: str
    week_start_at: str  # ISO-8601 UTC timestamp
    update: str
    short_update: str
    created_at: str = field(default_factory=utc_now)
