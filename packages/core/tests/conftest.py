"""Shared fixtures: an in-memory GitHub and a recording job store."""

from __future__ import annotations

import pytest

from prtrigger_core.gh.client import BaseGitHubClient
from prtrigger_core.models import CommentEvent, IssueComment, PullRequestRef
from prtrigger_store.base import BaseJobStore

BOT = "ci-bot"
HEAD_SHA = "a" * 40
BASE_SHA = "b" * 40


class FakeGitHubClient(BaseGitHubClient):
    """Answers reads from attributes and records every call."""

    def __init__(self):
        self.members: dict[str, set[str]] = {}
        self.files: list[str] = []
        self.pr = PullRequestRef(
            org="org", repo="repo", number=1, base_ref="main", head_sha=HEAD_SHA, author="contributor"
        )
        self.statuses = []
        self.comments: list[IssueComment] = []
        self.base_sha = BASE_SHA
        self.calls: list[tuple] = []
        self.fail: dict[str, Exception] = {}

    def _call(self, name, *args):
        self.calls.append((name, *args))
        if name in self.fail:
            raise self.fail[name]

    def called(self, name) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    @property
    def writes(self) -> list[tuple]:
        write_calls = {"create_comment", "delete_comment", "remove_label", "create_status"}
        return [c for c in self.calls if c[0] in write_calls]

    def bot_name(self):
        self._call("bot_name")
        return BOT

    def is_member(self, org, user):
        self._call("is_member", org, user)
        return user in self.members.get(org, set())

    def get_pull_request_changes(self, org, repo, number):
        self._call("get_pull_request_changes", org, repo, number)
        return list(self.files)

    def get_pull_request(self, org, repo, number):
        self._call("get_pull_request", org, repo, number)
        return self.pr

    def get_combined_status(self, org, repo, sha):
        self._call("get_combined_status", org, repo, sha)
        return list(self.statuses)

    def get_ref(self, org, repo, ref):
        self._call("get_ref", org, repo, ref)
        return self.base_sha

    def list_issue_comments(self, org, repo, number):
        self._call("list_issue_comments", org, repo, number)
        return list(self.comments)

    def create_comment(self, org, repo, number, body):
        self._call("create_comment", org, repo, number, body)

    def delete_comment(self, org, repo, number, comment_id):
        self._call("delete_comment", org, repo, number, comment_id)

    def remove_label(self, org, repo, number, label):
        self._call("remove_label", org, repo, number, label)

    def create_status(self, org, repo, sha, status):
        self._call("create_status", org, repo, sha, status)


class RecordingStore(BaseJobStore):
    def __init__(self):
        self.records = []
        self.fail_jobs: dict[str, Exception] = {}

    def create(self, record):
        if record.job in self.fail_jobs:
            raise self.fail_jobs[record.job]
        record.id = f"job-{len(self.records) + 1}"
        self.records.append(record)
        return record.id

    def list_jobs(self, repo, pr_number=None):
        return list(self.records)


@pytest.fixture
def client():
    return FakeGitHubClient()


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def make_event():
    def _make(body, author="member", action="created", labels=(), **kwargs):
        defaults = dict(
            action=action,
            org="org",
            repo="repo",
            number=1,
            author=author,
            body=body,
            is_pull_request=True,
            issue_state="open",
            issue_labels=frozenset(labels),
            html_url="https://github.com/org/repo/pull/1#issuecomment-1",
            guid="guid-123",
        )
        defaults.update(kwargs)
        return CommentEvent(**defaults)

    return _make
