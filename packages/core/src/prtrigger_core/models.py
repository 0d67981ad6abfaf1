"""Snapshots of hosting-service state used by one dispatch decision.

Everything here is read-only and rebuilt for every incoming comment; nothing
is cached across decisions. Durable state lives in GitHub (labels, comments,
statuses) and in the job store.
"""

from __future__ import annotations

from dataclasses import dataclass, field

ACTION_CREATED = "created"
ACTION_EDITED = "edited"
ACTION_DELETED = "deleted"

STATUS_SUCCESS = "success"
STATUS_PENDING = "pending"
STATUS_FAILURE = "failure"
STATUS_ERROR = "error"


@dataclass(frozen=True)
class CommentEvent:
    """A comment left on an issue or pull request."""

    action: str
    org: str
    repo: str
    number: int
    author: str
    body: str
    is_pull_request: bool = True
    issue_state: str = "open"
    issue_labels: frozenset[str] = frozenset()
    html_url: str = ""
    guid: str = ""  # webhook delivery id, used to correlate started jobs

    @property
    def full_repo(self) -> str:
        return f"{self.org}/{self.repo}"

    def has_label(self, label: str) -> bool:
        return label in self.issue_labels


@dataclass(frozen=True)
class PullRequestRef:
    org: str
    repo: str
    number: int
    base_ref: str
    head_sha: str
    author: str
    state: str = "open"
    labels: frozenset[str] = frozenset()


@dataclass(frozen=True)
class IssueComment:
    id: int
    author: str
    body: str
    html_url: str = ""


@dataclass(frozen=True)
class CheckStatus:
    """One reporting context on a commit."""

    context: str
    state: str  # "success" | "pending" | "failure" | "error"
    description: str = ""
    target_url: str | None = None


@dataclass
class DispatchResult:
    """What a single decision did. Returned by handle_issue_comment."""

    started: list[str] = field(default_factory=list)  # job store ids
    skipped: list[str] = field(default_factory=list)  # contexts given a "Skipped" status
    denied: bool = False
    label_removed: bool = False
    comments_cleared: bool = False

    @property
    def is_noop(self) -> bool:
        return not (self.started or self.skipped or self.denied or self.label_removed)
