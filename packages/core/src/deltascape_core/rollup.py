"""Weekly rollups: PR reports for a week, then repo-week and org-week narratives.

Every run is idempotent. PR reports are upserted by (owner, repo, number);
weekly updates are appended and the newest record for a week wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from deltascape_core import prompts
from deltascape_core.config import PipelineConfig
from deltascape_core.errors import ExternalFetchError, NotMergedError, SummarizationFailure
from deltascape_core.gh.pull_request import GitHubSource
from deltascape_core.providers.base import BaseSummarizer
from deltascape_core.reports import build_pull_report
from deltascape_store.models import OrgWeekUpdate, PullReport, RepoWeekUpdate, to_iso

if TYPE_CHECKING:
    from deltascape_store.base import BaseStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeekWindow:
    """Half-open interval ``[start, end)`` in UTC."""

    start: datetime
    end: datetime

    @property
    def start_iso(self) -> str:
        return to_iso(self.start)

    @property
    def end_iso(self) -> str:
        return to_iso(self.end)

    def __str__(self) -> str:
        return f"{self.start:%Y-%m-%d} → {self.end:%Y-%m-%d}"


def week_window(now: datetime | None = None, weeks_ago: int = 1) -> WeekWindow:
    """Return the Monday-aligned week ``weeks_ago`` weeks before the current one.

    ``weeks_ago=1`` is the last complete week; 0 is the week in progress.
    """
    if weeks_ago < 0:
        raise ValueError(f"weeks_ago must not be negative, got {weeks_ago}")
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    now = now.astimezone(timezone.utc)
    this_monday = (now - timedelta(days=now.weekday())).replace(hour=0, minute=0, second=0, microsecond=0)
    start = this_monday - timedelta(weeks=weeks_ago)
    return WeekWindow(start=start, end=start + timedelta(weeks=1))


@dataclass
class WeeklyRunResult:
    """Outcome of reporting every PR merged in a week."""

    stored: list[PullReport] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)


async def store_week_pull_reports(
    owner: str,
    repo: str,
    window: WeekWindow,
    source: GitHubSource,
    summarizer: BaseSummarizer,
    store: BaseStore,
    config: PipelineConfig,
) -> WeeklyRunResult:
    """Build and upsert a report for every PR merged in the window.

    PRs are processed one at a time. A PR that fails is left out and
    recorded in the result; the others still run.
    """
    result = WeeklyRunResult()
    numbers = await source.list_merged_pulls(owner, repo, window.start, window.end)

    for number in numbers:
        try:
            report = await build_pull_report(owner, repo, number, source, summarizer, config)
        except NotMergedError:
            logger.info("Skipping %s/%s#%d: not merged", owner, repo, number)
            result.skipped.append(number)
            continue
        except (SummarizationFailure, ExternalFetchError) as e:
            logger.error("Report for %s/%s#%d failed: %s", owner, repo, number, e)
            result.failed[number] = str(e)
            continue
        store.upsert_pull_report(report)
        result.stored.append(report)
        logger.info("Stored report for %s/%s#%d", owner, repo, number)

    return result


def format_pull_changes(reports: list[PullReport]) -> str:
    return "\n\n".join(f"{r.title}\n{r.summary}" for r in reports)


def format_repo_changes(updates: list[RepoWeekUpdate]) -> str:
    return "\n\n".join(u.update for u in updates)


async def summarize_repo_week(reports: list[PullReport], summarizer: BaseSummarizer, config: PipelineConfig) -> str:
    return await summarizer.summarize(
        prompts.SUMMARIZE_REPO_WEEK,
        format_pull_changes(reports),
        temperature=config.narrative_temperature,
    )


async def summarize_org_week(
    updates: list[RepoWeekUpdate], summarizer: BaseSummarizer, config: PipelineConfig
) -> tuple[str, str]:
    """Return (narrative, 1-2 sentence digest) for a set of repo-week updates."""
    changes = format_repo_changes(updates)
    summary = await summarizer.summarize(
        prompts.SUMMARIZE_ORG_WEEK, changes, temperature=config.narrative_temperature
    )
    short_summary = await summarizer.summarize(
        prompts.SHORTEN_ORG_WEEK, changes, temperature=config.narrative_temperature
    )
    return summary, short_summary


async def store_repo_week_update(
    owner: str,
    repo: str,
    window: WeekWindow,
    summarizer: BaseSummarizer,
    store: BaseStore,
    config: PipelineConfig,
) -> RepoWeekUpdate | None:
    """Summarize the stored PR reports of a week into one repo update.

    Returns None and writes nothing when no PR was merged in the window.
    """
    reports = store.find_pull_reports(owner, repo, window.start_iso, window.end_iso)
    if not reports:
        logger.info("No reports for %s/%s in %s; nothing to summarize", owner, repo, window)
        return None

    update = RepoWeekUpdate(
        owner=owner,
        repo=repo,
        week_start_at=window.start_iso,
        update=await summarize_repo_week(reports, summarizer, config),
    )
    store.insert_repo_update(update)
    logger.info("Stored weekly update for %s/%s from %d report(s)", owner, repo, len(reports))
    return update


async def store_org_week_update(
    owner: str,
    window: WeekWindow,
    summarizer: BaseSummarizer,
    store: BaseStore,
    config: PipelineConfig,
) -> OrgWeekUpdate | None:
    """Summarize the repo updates of a week into one org update plus a digest.

    Returns None and writes nothing when no repo update exists for the window.
    """
    updates = store.find_repo_updates(owner, window.start_iso, window.end_iso)
    if not updates:
        logger.info("No repository updates for %s in %s; nothing to summarize", owner, window)
        return None

    summary, short_summary = await summarize_org_week(updates, summarizer, config)
    org_update = OrgWeekUpdate(
        owner=owner,
        week_start_at=window.start_iso,
        update=summary,
        short_update=short_summary,
    )
    store.insert_org_update(org_update)
    logger.info("Stored weekly org update for %s from %d repo update(s)", owner, len(updates))
    return org_update
