"""Per pull request reports: metadata, compressed diff and a readable summary."""

from __future__ import annotations

import logging

from deltascape_core import prompts
from deltascape_core.config import PipelineConfig
from deltascape_core.errors import NotMergedError
from deltascape_core.gh.pull_request import GitHubSource
from deltascape_core.providers.base import BaseSummarizer
from deltascape_core.summarizer import compress_diff
from deltascape_store.models import PullReport, to_iso

logger = logging.getLogger(__name__)


async def build_pull_report(
    owner: str,
    repo: str,
    number: int,
    source: GitHubSource,
    summarizer: BaseSummarizer,
    config: PipelineConfig,
) -> PullReport:
    """Fetch a merged pull request and summarize it.

    Stages run one after another: fetch metadata, fetch and compress the
    diff, then ask for a "what changed" narrative. Any failure propagates and
    no report is returned, so a caller never persists a partial record.

    Raises NotMergedError before any model call when the PR is not merged,
    and SummarizationFailure when the final narrative comes back empty.
    """
    pull = await source.fetch_pull(owner, repo, number)
    if pull.merged_at is None:
        raise NotMergedError(owner, repo, number)

    diff = await source.fetch_diff(pull)
    compressed_diff = await compress_diff(diff, summarizer, config)
    logger.debug("%s/%s#%d: diff %d chars → %d chars", owner, repo, number, len(diff), len(compressed_diff))

    summary = await summarizer.summarize(
        prompts.SUMMARIZE_PULL_REQUEST,
        prompts.pull_request_prompt(pull.title, pull.body, compressed_diff),
        temperature=config.narrative_temperature,
    )

    return PullReport(
        owner=owner,
        repo=repo,
        number=number,
        title=pull.title,
        html_url=pull.html_url,
        diff_url=pull.diff_url,
        comments_url=pull.comments_url,
        merged_at=to_iso(pull.merged_at),
        summary=summary,
        compressed_diff=compressed_diff,
        body=pull.body,
        author=pull.author,
        author_avatar=pull.author_avatar,
        author_html_url=pull.author_html_url,
    )
