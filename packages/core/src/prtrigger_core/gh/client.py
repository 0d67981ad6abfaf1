"""GitHub access used by the trigger.

The dispatcher depends on BaseGitHubClient, never on PyGithub directly, so
tests can pass an in-memory fake and ``--shadow`` can wrap the real client.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from github import Github
from rich.console import Console
from rich.markup import escape

from prtrigger_core.models import CheckStatus, IssueComment, PullRequestRef

console = Console()
logger = logging.getLogger(__name__)


class BaseGitHubClient(ABC):
    """The hosting-service calls one dispatch decision may make.

    Every method maps to a single API call boundary. Errors are raised, never
    translated into a default value.
    """

    @abstractmethod
    def bot_name(self) -> str:
        """Login of the account the trigger acts as."""

    @abstractmethod
    def is_member(self, org: str, user: str) -> bool: ...

    @abstractmethod
    def get_pull_request_changes(self, org: str, repo: str, number: int) -> list[str]:
        """Filenames touched by the pull request."""

    @abstractmethod
    def get_pull_request(self, org: str, repo: str, number: int) -> PullRequestRef: ...

    @abstractmethod
    def get_combined_status(self, org: str, repo: str, sha: str) -> list[CheckStatus]: ...

    @abstractmethod
    def get_ref(self, org: str, repo: str, ref: str) -> str:
        """Resolve a git ref such as ``heads/main`` to a commit SHA."""

    @abstractmethod
    def list_issue_comments(self, org: str, repo: str, number: int) -> list[IssueComment]: ...

    @abstractmethod
    def create_comment(self, org: str, repo: str, number: int, body: str) -> None: ...

    @abstractmethod
    def delete_comment(self, org: str, repo: str, number: int, comment_id: int) -> None: ...

    @abstractmethod
    def remove_label(self, org: str, repo: str, number: int, label: str) -> None: ...

    @abstractmethod
    def create_status(self, org: str, repo: str, sha: str, status: CheckStatus) -> None: ...


class GitHubClient(BaseGitHubClient):
    """BaseGitHubClient backed by PyGithub.

    ``bot_name`` skips the `GET /user` lookup, which installation tokens such
    as the Actions GITHUB_TOKEN are not allowed to make.
    """

    def __init__(self, token: str, gh: Github | None = None, bot_name: str | None = None):
        self._gh = gh if gh is not None else Github(token)
        self._bot_name = bot_name

    def _repo(self, org: str, repo: str):
        return self._gh.get_repo(f"{org}/{repo}")

    def bot_name(self) -> str:
        if self._bot_name is None:
            self._bot_name = self._gh.get_user().login
        return self._bot_name

    def is_member(self, org: str, user: str) -> bool:
        return self._gh.get_organization(org).has_in_members(self._gh.get_user(user))

    def get_pull_request_changes(self, org: str, repo: str, number: int) -> list[str]:
        return [f.filename for f in self._repo(org, repo).get_pull(number).get_files()]

    def get_pull_request(self, org: str, repo: str, number: int) -> PullRequestRef:
        pr = self._repo(org, repo).get_pull(number)
        return PullRequestRef(
            org=org,
            repo=repo,
            number=pr.number,
            base_ref=pr.base.ref,
            head_sha=pr.head.sha,
            author=pr.user.login,
            state=pr.state,
            labels=frozenset(label.name for label in pr.labels),
        )

    def get_combined_status(self, org: str, repo: str, sha: str) -> list[CheckStatus]:
        combined = self._repo(org, repo).get_commit(sha).get_combined_status()
        return [
            CheckStatus(context=s.context, state=s.state, description=s.description or "", target_url=s.target_url)
            for s in combined.statuses
        ]

    def get_ref(self, org: str, repo: str, ref: str) -> str:
        return self._repo(org, repo).get_git_ref(ref).object.sha

    def list_issue_comments(self, org: str, repo: str, number: int) -> list[IssueComment]:
        return [
            IssueComment(id=c.id, author=c.user.login, body=c.body or "", html_url=c.html_url or "")
            for c in self._repo(org, repo).get_issue(number).get_comments()
        ]

    def create_comment(self, org: str, repo: str, number: int, body: str) -> None:
        self._repo(org, repo).get_issue(number).create_comment(body)

    def delete_comment(self, org: str, repo: str, number: int, comment_id: int) -> None:
        self._repo(org, repo).get_issue(number).get_comment(comment_id).delete()

    def remove_label(self, org: str, repo: str, number: int, label: str) -> None:
        self._repo(org, repo).get_issue(number).remove_from_labels(label)

    def create_status(self, org: str, repo: str, sha: str, status: CheckStatus) -> None:
        kwargs = {"state": status.state, "description": status.description, "context": status.context}
        if status.target_url:
            kwargs["target_url"] = status.target_url
        self._repo(org, repo).get_commit(sha).create_status(**kwargs)


class ShadowGitHubClient(BaseGitHubClient):
    """Dry-run wrapper: reads go to GitHub, writes are recorded and printed.

    ``writes`` keeps one tuple per suppressed call, e.g.
    ``("create_comment", "owner/repo#12", body)``.
    """

    def __init__(self, inner: BaseGitHubClient):
        self._inner = inner
        self.writes: list[tuple] = []

    def _record(self, *write) -> None:
        self.writes.append(write)
        console.print(f"[dim]shadow:[/dim] [bold]{write[0]}[/bold] {escape(' '.join(str(w) for w in write[1:]))}")

    def bot_name(self) -> str:
        return self._inner.bot_name()

    def is_member(self, org: str, user: str) -> bool:
        return self._inner.is_member(org, user)

    def get_pull_request_changes(self, org: str, repo: str, number: int) -> list[str]:
        return self._inner.get_pull_request_changes(org, repo, number)

    def get_pull_request(self, org: str, repo: str, number: int) -> PullRequestRef:
        return self._inner.get_pull_request(org, repo, number)

    def get_combined_status(self, org: str, repo: str, sha: str) -> list[CheckStatus]:
        return self._inner.get_combined_status(org, repo, sha)

    def get_ref(self, org: str, repo: str, ref: str) -> str:
        return self._inner.get_ref(org, repo, ref)

    def list_issue_comments(self, org: str, repo: str, number: int) -> list[IssueComment]:
        return self._inner.list_issue_comments(org, repo, number)

    def create_comment(self, org: str, repo: str, number: int, body: str) -> None:
        self._record("create_comment", f"{org}/{repo}#{number}", body)

    def delete_comment(self, org: str, repo: str, number: int, comment_id: int) -> None:
        self._record("delete_comment", f"{org}/{repo}#{number}", comment_id)

    def remove_label(self, org: str, repo: str, number: int, label: str) -> None:
        self._record("remove_label", f"{org}/{repo}#{number}", label)

    def create_status(self, org: str, repo: str, sha: str, status: CheckStatus) -> None:
        self._record("create_status", f"{org}/{repo}@{sha[:7]}", f"{status.context}={status.state}")
