"""GitHub token resolution.

The trigger comments, labels and sets statuses as whichever account owns the
token, and ignores comments from that same account. A dedicated bot token
can therefore be supplied separately from the workflow's GITHUB_TOKEN.

Resolution order (stops at first success):
  1. PRTRIGGER_GITHUB_TOKEN (dedicated bot account)
  2. GITHUB_TOKEN (GitHub Actions / explicit override)
  3. `gh auth token` (local GitHub CLI session, handy with --shadow)
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_TOKEN_ENV_VARS = ("PRTRIGGER_GITHUB_TOKEN", "GITHUB_TOKEN")


def resolve_github_token() -> str | None:
    """Return a GitHub token or None if no source is available.

    Never raises; callers decide whether a missing token is fatal.
    """
    for name in _TOKEN_ENV_VARS:
        token = os.environ.get(name)
        if token:
            logger.debug("Using GitHub token from %s.", name)
            return token

    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None

    gh_token = result.stdout.strip() if result.returncode == 0 else ""
    if gh_token:
        logger.debug("Resolved GitHub token via gh CLI session.")
        return gh_token
    return None
