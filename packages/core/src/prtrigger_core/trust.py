"""Who may start tests, and cleanup once they have.

Two separate checks exist and must not be confused:

- ``is_user_trusted`` looks only at organization membership of one user.
- ``trusted_pull_request`` is the fallback for outside contributors. It needs
  the pull request's comment history: the PR counts as trusted when its
  author is trusted, or when a trusted user has already commented
  ``/ok-to-test`` on it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from prtrigger_core.commands import wants_test_all

if TYPE_CHECKING:
    from prtrigger_core.gh.client import BaseGitHubClient
    from prtrigger_core.models import IssueComment, PullRequestRef

logger = logging.getLogger(__name__)


def is_user_trusted(client: BaseGitHubClient, user: str, trusted_org: str, org: str) -> bool:
    """Return True if ``user`` belongs to the trusted org, or to the repo's own org.

    Membership lookup failures are raised, not treated as "untrusted".
    """
    if client.is_member(trusted_org, user):
        return True
    if org != trusted_org:
        return client.is_member(org, user)
    return False


def trusted_pull_request(
    client: BaseGitHubClient,
    pr: PullRequestRef,
    trusted_org: str,
    comments: list[IssueComment],
) -> bool:
    if is_user_trusted(client, pr.author, trusted_org, pr.org):
        return True

    bot = client.bot_name()
    for comment in comments:
        if comment.author in (bot, pr.author) or not wants_test_all(comment.body):
            continue
        if is_user_trusted(client, comment.author, trusted_org, pr.org):
            logger.debug("%s#%d approved for testing by %s.", pr.repo, pr.number, comment.author)
            return True
    return False


def clear_stale_comments(
    client: BaseGitHubClient,
    pr: PullRequestRef,
    label: str,
    comments: list[IssueComment] | None = None,
) -> int:
    """Delete the bot's earlier "needs ok-to-test" notices on ``pr``.

    ``comments`` is fetched when the caller did not already list them.
    Returns the number of comments deleted.
    """
    if comments is None:
        comments = client.list_issue_comments(pr.org, pr.repo, pr.number)
    bot = client.bot_name()
    deleted = 0
    for comment in comments:
        if comment.author != bot or label not in comment.body:
            continue
        client.delete_comment(pr.org, pr.repo, pr.number, comment.id)
        deleted += 1
    if deleted:
        logger.info("Deleted %d stale comment(s) on %s/%s#%d.", deleted, pr.org, pr.repo, pr.number)
    return deleted
