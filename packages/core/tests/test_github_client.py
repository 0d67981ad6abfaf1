"""Tests for the PyGithub-backed client and the shadow wrapper."""

from unittest.mock import MagicMock

import pytest
from github import GithubException

from prtrigger_core.gh.client import GitHubClient, ShadowGitHubClient
from prtrigger_core.models import CheckStatus

SHA = "a" * 40


@pytest.fixture
def gh():
    return MagicMock()


@pytest.fixture
def repo(gh):
    repo = MagicMock()
    gh.get_repo.return_value = repo
    return repo


class TestGitHubClient:
    def test_bot_name_cached(self, gh):
        gh.get_user.return_value.login = "ci-bot"
        client = GitHubClient("tok", gh=gh)
        assert client.bot_name() == "ci-bot"
        assert client.bot_name() == "ci-bot"
        gh.get_user.assert_called_once_with()

    def test_configured_bot_name_skips_user_lookup(self, gh):
        client = GitHubClient("tok", gh=gh, bot_name="github-actions[bot]")
        assert client.bot_name() == "github-actions[bot]"
        gh.get_user.assert_not_called()

    def test_is_member(self, gh):
        gh.get_organization.return_value.has_in_members.return_value = True
        assert GitHubClient("tok", gh=gh).is_member("org", "alice") is True
        gh.get_organization.assert_called_once_with("org")
        gh.get_user.assert_called_once_with("alice")

    def test_is_member_error_propagates(self, gh):
        gh.get_organization.side_effect = GithubException(500, {"message": "boom"}, None)
        with pytest.raises(GithubException):
            GitHubClient("tok", gh=gh).is_member("org", "alice")

    def test_get_pull_request_changes(self, gh, repo):
        files = [MagicMock(filename="a.py"), MagicMock(filename="docs/b.md")]
        repo.get_pull.return_value.get_files.return_value = files
        assert GitHubClient("tok", gh=gh).get_pull_request_changes("org", "repo", 3) == ["a.py", "docs/b.md"]
        gh.get_repo.assert_called_with("org/repo")
        repo.get_pull.assert_called_with(3)

    def test_get_pull_request(self, gh, repo):
        pr = repo.get_pull.return_value
        pr.number = 3
        pr.base.ref = "main"
        pr.head.sha = SHA
        pr.user.login = "dev"
        pr.state = "open"
        label = MagicMock()
        label.name = "needs-ok-to-test"
        pr.labels = [label]

        ref = GitHubClient("tok", gh=gh).get_pull_request("org", "repo", 3)

        assert ref.base_ref == "main"
        assert ref.head_sha == SHA
        assert ref.author == "dev"
        assert ref.labels == frozenset({"needs-ok-to-test"})

    def test_get_combined_status(self, gh, repo):
        status = MagicMock(context="unit", state="failure", description=None, target_url=None)
        repo.get_commit.return_value.get_combined_status.return_value.statuses = [status]

        statuses = GitHubClient("tok", gh=gh).get_combined_status("org", "repo", SHA)

        repo.get_commit.assert_called_once_with(SHA)
        assert statuses == [CheckStatus(context="unit", state="failure", description="")]

    def test_get_ref(self, gh, repo):
        repo.get_git_ref.return_value.object.sha = SHA
        assert GitHubClient("tok", gh=gh).get_ref("org", "repo", "heads/main") == SHA
        repo.get_git_ref.assert_called_once_with("heads/main")

    def test_list_issue_comments(self, gh, repo):
        comment = MagicMock(id=5, body="/ok-to-test", html_url="u")
        comment.user.login = "alice"
        repo.get_issue.return_value.get_comments.return_value = [comment]

        comments = GitHubClient("tok", gh=gh).list_issue_comments("org", "repo", 3)

        assert comments[0].id == 5
        assert comments[0].author == "alice"

    def test_writes(self, gh, repo):
        client = GitHubClient("tok", gh=gh)
        issue = repo.get_issue.return_value

        client.create_comment("org", "repo", 3, "hi")
        client.remove_label("org", "repo", 3, "needs-ok-to-test")
        client.delete_comment("org", "repo", 3, 9)
        client.create_status("org", "repo", SHA, CheckStatus(context="e2e", state="success", description="Skipped"))

        issue.create_comment.assert_called_once_with("hi")
        issue.remove_from_labels.assert_called_once_with("needs-ok-to-test")
        issue.get_comment.assert_called_once_with(9)
        issue.get_comment.return_value.delete.assert_called_once_with()
        repo.get_commit.return_value.create_status.assert_called_once_with(
            state="success", description="Skipped", context="e2e"
        )


class TestShadowGitHubClient:
    def test_reads_delegated(self):
        inner = MagicMock()
        inner.get_ref.return_value = SHA
        assert ShadowGitHubClient(inner).get_ref("org", "repo", "heads/main") == SHA

    def test_writes_recorded_not_sent(self):
        inner = MagicMock()
        shadow = ShadowGitHubClient(inner)

        shadow.create_comment("org", "repo", 1, "[org](https://github.com/orgs/org/people)")
        shadow.remove_label("org", "repo", 1, "needs-ok-to-test")
        shadow.create_status("org", "repo", SHA, CheckStatus(context="e2e", state="success"))
        shadow.delete_comment("org", "repo", 1, 4)

        inner.create_comment.assert_not_called()
        inner.remove_label.assert_not_called()
        inner.create_status.assert_not_called()
        inner.delete_comment.assert_not_called()
        assert [w[0] for w in shadow.writes] == ["create_comment", "remove_label", "create_status", "delete_comment"]
