"""GitHub token resolution with gh CLI fallback.

Weekly runs usually happen in CI or cron, where GITHUB_TOKEN is set. On a
developer machine an existing `gh auth login` session is enough, so no
personal access token has to be created just to run `deltascape show`.

Resolution order (stops at first success):
  1. GITHUB_TOKEN environment variable (CI, cron jobs, explicit override)
  2. `gh auth token` (GitHub CLI session, available after `gh auth login`)
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)


def resolve_github_token() -> str | None:
    """Return a GitHub token, or None when neither source provides one.

    Never raises: callers check for None and emit a UsageError.
    """
    # 1. Explicit environment variable: always takes precedence over the
    #    gh config store.
    token = os.environ.get("GITHUB_TOKEN")
    if token:
        return token

    # 2. GitHub CLI session: reuse the token that `gh auth login` stored.
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        # gh is not installed or hung; there is no other source to try.
        return None

    gh_token = result.stdout.strip() if result.returncode == 0 else ""
    if gh_token:
        logger.debug("Using the GitHub token of the gh CLI session.")
        return gh_token
    return None
