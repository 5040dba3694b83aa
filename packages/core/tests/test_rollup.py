"""Tests for weekly rollups: week windows, PR report runs, repo and org updates."""

import asyncio
import types
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
import requests

from fakes import FakeSource, ScriptedSummarizer, make_pull

from deltascape_core import prompts
from deltascape_core.config import PipelineConfig
from deltascape_core.errors import SegmentationInvariantViolation, SummarizationFailure
from deltascape_core.gh.pull_request import GitHubSource
from deltascape_core.rollup import (
    WeekWindow,
    format_pull_changes,
    store_org_week_update,
    store_repo_week_update,
    store_week_pull_reports,
    week_window,
)
from deltascape_store.models import PullReport, RepoWeekUpdate

CONFIG = PipelineConfig()
WINDOW = WeekWindow(
    start=datetime(2024, 3, 4, tzinfo=timezone.utc),
    end=datetime(2024, 3, 11, tzinfo=timezone.utc),
)
IN_WEEK = datetime(2024, 3, 6, 9, 0, tzinfo=timezone.utc)


def _report(number, title, summary, merged_at="2024-03-06T09:00:00+00:00", repo="api"):
    return PullReport(
        owner="acme",
        repo=repo,
        number=number,
        title=title,
        html_url="",
        diff_url="",
        comments_url="",
        merged_at=merged_at,
        summary=summary,
        compressed_diff="",
    )


# ---------------------------------------------------------------------------
# week_window
# ---------------------------------------------------------------------------


class TestWeekWindow:
    def test_last_week_from_midweek(self):
        window = week_window(datetime(2024, 3, 13, 15, 45, tzinfo=timezone.utc))
        assert window.start == datetime(2024, 3, 4, tzinfo=timezone.utc)
        assert window.end == datetime(2024, 3, 11, tzinfo=timezone.utc)

    def test_monday_midnight_belongs_to_new_week(self):
        window = week_window(datetime(2024, 3, 11, tzinfo=timezone.utc))
        assert window.start == datetime(2024, 3, 4, tzinfo=timezone.utc)

    def test_current_week(self):
        window = week_window(datetime(2024, 3, 13, tzinfo=timezone.utc), weeks_ago=0)
        assert window.start == datetime(2024, 3, 11, tzinfo=timezone.utc)
        assert window.end - window.start == timedelta(weeks=1)

    def test_naive_now_is_treated_as_utc(self):
        assert week_window(datetime(2024, 3, 13)) == WINDOW

    def test_negative_weeks_rejected(self):
        with pytest.raises(ValueError):
            week_window(weeks_ago=-1)

    def test_iso_bounds(self):
        assert WINDOW.start_iso == "2024-03-04T00:00:00+00:00"
        assert WINDOW.end_iso == "2024-03-11T00:00:00+00:00"


# ---------------------------------------------------------------------------
# store_week_pull_reports
# ---------------------------------------------------------------------------


class TestStoreWeekPullReports:
    def _run(self, source, summarizer, store):
        return asyncio.run(store_week_pull_reports("acme", "api", WINDOW, source, summarizer, store, CONFIG))

    def test_stores_each_merged_pull(self, store):
        source = FakeSource([make_pull(1, merged_at=IN_WEEK), make_pull(2, merged_at=IN_WEEK)])

        result = self._run(source, ScriptedSummarizer(), store)

        assert [r.number for r in result.stored] == [1, 2]
        stored = store.find_pull_reports("acme", "api", WINDOW.start_iso, WINDOW.end_iso)
        assert [r.number for r in stored] == [1, 2]

    def test_rerun_overwrites_report(self, store):
        source = FakeSource([make_pull(1, merged_at=IN_WEEK)])

        self._run(source, ScriptedSummarizer(default="First run."), store)
        self._run(source, ScriptedSummarizer(default="Second run."), store)

        stored = store.list_pull_reports("acme", "api")
        assert len(stored) == 1
        assert stored[0].summary == "Second run."

    def test_unmerged_pull_is_skipped_and_not_stored(self, store):
        source = FakeSource([make_pull(1, merged_at=None), make_pull(2, merged_at=IN_WEEK)])

        result = self._run(source, ScriptedSummarizer(), store)

        assert result.skipped == [1]
        assert [r.number for r in store.list_pull_reports("acme", "api")] == [2]

    def test_failed_pull_is_reported_and_others_continue(self, store):
        source = FakeSource([make_pull(1, merged_at=IN_WEEK), make_pull(2, merged_at=IN_WEEK)], fail_fetch={1})

        result = self._run(source, ScriptedSummarizer(), store)

        assert list(result.failed) == [1]
        assert "502" in result.failed[1]
        assert [r.number for r in store.list_pull_reports("acme", "api")] == [2]

    def test_empty_summary_leaves_no_partial_record(self, store):
        source = FakeSource([make_pull(1, merged_at=IN_WEEK)])
        summarizer = ScriptedSummarizer({prompts.SUMMARIZE_PULL_REQUEST: ""})

        result = self._run(source, summarizer, store)

        assert list(result.failed) == [1]
        assert store.list_pull_reports("acme", "api") == []

    def test_invariant_violation_aborts_the_run(self, store, mocker):
        mocker.patch(
            "deltascape_core.rollup.build_pull_report",
            side_effect=SegmentationInvariantViolation("chunk too large"),
        )
        source = FakeSource([make_pull(1, merged_at=IN_WEEK)])

        with pytest.raises(SegmentationInvariantViolation):
            self._run(source, ScriptedSummarizer(), store)

    def test_pulls_are_processed_sequentially(self, store, mocker):
        state = {"in_flight": 0, "peak": 0}

        async def _fake_build(owner, repo, number, source, summarizer, config):
            state["in_flight"] += 1
            state["peak"] = max(state["peak"], state["in_flight"])
            await asyncio.sleep(0.001)
            state["in_flight"] -= 1
            return _report(number, f"PR {number}", "done")

        mocker.patch("deltascape_core.rollup.build_pull_report", side_effect=_fake_build)
        source = FakeSource([make_pull(n, merged_at=IN_WEEK) for n in (1, 2, 3)])

        result = self._run(source, ScriptedSummarizer(), store)

        assert len(result.stored) == 3
        assert state["peak"] == 1

    def test_network_error_fails_only_that_pull(self, store):
        github = MagicMock()
        github.get_repo.return_value.get_pulls.return_value = [
            types.SimpleNamespace(number=n, updated_at=IN_WEEK, merged_at=IN_WEEK) for n in (2, 1)
        ]
        github.get_repo.return_value.get_pull.side_effect = requests.ConnectionError("connection reset")
        source = GitHubSource("tok", github=github)

        result = self._run(source, ScriptedSummarizer(), store)

        assert set(result.failed) == {1, 2}
        assert "connection reset" in result.failed[1]
        assert result.stored == []
        assert store.list_pull_reports("acme", "api") == []


# ---------------------------------------------------------------------------
# store_repo_week_update
# ---------------------------------------------------------------------------


class TestStoreRepoWeekUpdate:
    def test_summarizes_titles_and_summaries(self, store):
        store.upsert_pull_report(_report(1, "Add retries", "Retries flaky calls."))
        store.upsert_pull_report(_report(2, "Bump deps", "Updates requests."))
        summarizer = ScriptedSummarizer({prompts.SUMMARIZE_REPO_WEEK: "Retries landed."})

        update = asyncio.run(store_repo_week_update("acme", "api", WINDOW, summarizer, store, CONFIG))

        assert update.update == "Retries landed."
        assert update.week_start_at == WINDOW.start_iso
        [user_prompt] = summarizer.prompts_for(prompts.SUMMARIZE_REPO_WEEK)
        assert user_prompt == "Add retries\nRetries flaky calls.\n\nBump deps\nUpdates requests."
        assert store.latest_repo_update("acme", "api").update == "Retries landed."

    def test_only_reports_merged_in_window(self, store):
        store.upsert_pull_report(_report(1, "Before", "x", merged_at="2024-03-03T23:59:59+00:00"))
        store.upsert_pull_report(_report(2, "Inside", "y", merged_at="2024-03-04T00:00:00+00:00"))
        store.upsert_pull_report(_report(3, "After", "z", merged_at="2024-03-11T00:00:00+00:00"))
        summarizer = ScriptedSummarizer()

        asyncio.run(store_repo_week_update("acme", "api", WINDOW, summarizer, store, CONFIG))

        assert summarizer.prompts_for(prompts.SUMMARIZE_REPO_WEEK) == ["Inside\ny"]

    def test_empty_week_writes_nothing(self, store):
        summarizer = ScriptedSummarizer()

        assert asyncio.run(store_repo_week_update("acme", "api", WINDOW, summarizer, store, CONFIG)) is None
        assert summarizer.calls == []
        assert store.latest_repo_update("acme", "api") is None

    def test_failed_summary_writes_nothing(self, store):
        store.upsert_pull_report(_report(1, "Add retries", "Retries flaky calls."))
        summarizer = ScriptedSummarizer({prompts.SUMMARIZE_REPO_WEEK: ""})

        with pytest.raises(SummarizationFailure):
            asyncio.run(store_repo_week_update("acme", "api", WINDOW, summarizer, store, CONFIG))
        assert store.latest_repo_update("acme", "api") is None


# ---------------------------------------------------------------------------
# store_org_week_update
# ---------------------------------------------------------------------------


class TestStoreOrgWeekUpdate:
    def _seed(self, store):
        for repo, text in (("api", "API got retries."), ("web", "Web got dark mode.")):
            store.insert_repo_update(
                RepoWeekUpdate(owner="acme", repo=repo, week_start_at=WINDOW.start_iso, update=text)
            )

    def test_produces_narrative_and_digest(self, store):
        self._seed(store)
        summarizer = ScriptedSummarizer(
            {prompts.SUMMARIZE_ORG_WEEK: "Across acme: retries and dark mode.", prompts.SHORTEN_ORG_WEEK: "Retries."}
        )

        update = asyncio.run(store_org_week_update("acme", WINDOW, summarizer, store, CONFIG))

        assert update.update == "Across acme: retries and dark mode."
        assert update.short_update == "Retries."
        expected_input = "API got retries.\n\nWeb got dark mode."
        assert summarizer.prompts_for(prompts.SUMMARIZE_ORG_WEEK) == [expected_input]
        assert summarizer.prompts_for(prompts.SHORTEN_ORG_WEEK) == [expected_input]
        assert store.latest_org_update("acme").short_update == "Retries."

    def test_failed_digest_writes_nothing(self, store):
        self._seed(store)
        summarizer = ScriptedSummarizer({prompts.SUMMARIZE_ORG_WEEK: "Across acme.", prompts.SHORTEN_ORG_WEEK: ""})

        with pytest.raises(SummarizationFailure):
            asyncio.run(store_org_week_update("acme", WINDOW, summarizer, store, CONFIG))
        assert store.latest_org_update("acme") is None

    def test_rerun_of_repo_update_supersedes_older_one(self, store):
        self._seed(store)
        store.insert_repo_update(
            RepoWeekUpdate(owner="acme", repo="api", week_start_at=WINDOW.start_iso, update="API rewritten.")
        )
        summarizer = ScriptedSummarizer()

        asyncio.run(store_org_week_update("acme", WINDOW, summarizer, store, CONFIG))

        [user_prompt] = summarizer.prompts_for(prompts.SUMMARIZE_ORG_WEEK)
        assert "API rewritten." in user_prompt
        assert "API got retries." not in user_prompt

    def test_never_reads_pull_reports(self, store):
        self._seed(store)
        store.upsert_pull_report(_report(1, "Secret PR", "raw details"))
        summarizer = ScriptedSummarizer()

        asyncio.run(store_org_week_update("acme", WINDOW, summarizer, store, CONFIG))

        assert all("Secret PR" not in user for _, user, _ in summarizer.calls)

    def test_empty_week_writes_nothing(self, store):
        summarizer = ScriptedSummarizer()

        assert asyncio.run(store_org_week_update("acme", WINDOW, summarizer, store, CONFIG)) is None
        assert summarizer.calls == []
        assert store.latest_org_update("acme") is None


def test_format_pull_changes():
    reports = [_report(1, "A", "a."), _report(2, "B", "b.")]
    assert format_pull_changes(reports) == "A\na.\n\nB\nb."
