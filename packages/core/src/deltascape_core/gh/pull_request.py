from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

import requests
from github import Github, GithubException

from deltascape_core.errors import ExternalFetchError

logger = logging.getLogger(__name__)

_DIFF_MEDIA_TYPE = "application/vnd.github.v3.diff"
_DIFF_TIMEOUT_SECONDS = 60

# PyGithub raises GithubException for API errors but lets requests transport
# errors through unchanged; both end up as ExternalFetchError here.


@dataclass(frozen=True)
class PullMetadata:
    """The fields of a pull request the report pipeline reads."""

    number: int
    title: str
    body: str
    html_url: str
    diff_url: str
    api_url: str
    comments_url: str
    merged_at: datetime | None
    author: str | None = None
    author_avatar: str | None = None
    author_html_url: str | None = None


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def get_repo(github: Github, owner: str, repo: str):
    try:
        return github.get_repo(f"{owner}/{repo}")
    except (GithubException, requests.RequestException) as e:
        raise ExternalFetchError(f"Could not load repository {owner}/{repo}: {e}") from e


def to_metadata(pull) -> PullMetadata:
    user = pull.user
    return PullMetadata(
        number=pull.number,
        title=pull.title or "",
        body=pull.body or "",
        html_url=pull.html_url,
        diff_url=pull.diff_url,
        api_url=pull.url,
        comments_url=pull.comments_url,
        merged_at=_as_utc(pull.merged_at),
        author=user.login if user else None,
        author_avatar=user.avatar_url if user else None,
        author_html_url=user.html_url if user else None,
    )


def fetch_pull_metadata(repo, number: int) -> PullMetadata:
    try:
        return to_metadata(repo.get_pull(number))
    except (GithubException, requests.RequestException) as e:
        raise ExternalFetchError(f"Could not fetch PR #{number} of {repo.full_name}: {e}") from e


def list_recently_updated_pulls(repo):
    """Closed pull requests, most recently updated first. Paginated lazily by PyGithub."""
    return repo.get_pulls(state="closed", sort="updated", direction="desc")


def merged_pull_numbers(pulls, start: datetime, end: datetime) -> list[int]:
    """Return numbers of pulls merged in ``[start, end)``, in listing order.

    ``pulls`` must be sorted by update time, newest first. Iteration stops at
    the first pull last updated before ``start``: a pull merged inside the
    window was necessarily updated inside it too, so nothing older can match.
    """
    start, end = _as_utc(start), _as_utc(end)
    numbers: list[int] = []
    try:
        for pull in pulls:
            if _as_utc(pull.updated_at) < start:
                break
            merged_at = _as_utc(pull.merged_at)
            if merged_at is not None and start <= merged_at < end:
                numbers.append(pull.number)
    except (GithubException, requests.RequestException) as e:
        raise ExternalFetchError(f"Could not list pull requests: {e}") from e
    return numbers


def fetch_diff_text(url: str, token: str | None = None) -> str:
    """Download the raw unified diff of a pull request."""
    headers = {"Accept": _DIFF_MEDIA_TYPE}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    try:
        response = requests.get(url, headers=headers, timeout=_DIFF_TIMEOUT_SECONDS)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ExternalFetchError(f"Could not download diff from {url}: {e}") from e
    return response.text


class GitHubSource:
    """Async facade over PyGithub and the diff endpoint.

    PyGithub is blocking, so each call runs in a worker thread; the event
    loop only suspends on these boundaries.
    """

    def __init__(self, token: str | None, github: Github | None = None):
        self._token = token
        self._github = github if github is not None else Github(token)

    async def fetch_pull(self, owner: str, repo: str, number: int) -> PullMetadata:
        def _fetch() -> PullMetadata:
            return fetch_pull_metadata(get_repo(self._github, owner, repo), number)

        return await asyncio.to_thread(_fetch)

    async def fetch_diff(self, pull: PullMetadata) -> str:
        return await asyncio.to_thread(fetch_diff_text, pull.api_url or pull.diff_url, self._token)

    async def list_merged_pulls(self, owner: str, repo: str, start: datetime, end: datetime) -> list[int]:
        def _list() -> list[int]:
            pulls = list_recently_updated_pulls(get_repo(self._github, owner, repo))
            return merged_pull_numbers(pulls, start, end)

        numbers = await asyncio.to_thread(_list)
        logger.info("%d pull request(s) merged in %s/%s between %s and %s", len(numbers), owner, repo, start, end)
        return numbers
