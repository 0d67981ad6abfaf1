"""Comment-triggered presubmit dispatch.

handle_issue_comment() turns one pull request comment into job-start
requests. It reads everything it needs fresh from GitHub, so an event that
failed half-way can be replayed in full.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from prtrigger_core.commands import parse_commands
from prtrigger_core.models import ACTION_CREATED, STATUS_SUCCESS, CheckStatus, CommentEvent, DispatchResult
from prtrigger_core.response import denial_message, format_response
from prtrigger_core.status import classify_statuses
from prtrigger_core.trust import clear_stale_comments, is_user_trusted, trusted_pull_request
from prtrigger_store.models import JobRecord, Pull, Refs

if TYPE_CHECKING:
    from prtrigger_core.gh.client import BaseGitHubClient
    from prtrigger_core.jobs import JobCatalog, JobDefinition
    from prtrigger_core.models import IssueComment, PullRequestRef
    from prtrigger_store.base import BaseJobStore

logger = logging.getLogger(__name__)

NEEDS_OK_TO_TEST = "needs-ok-to-test"
EVENT_GUID_LABEL = "event-GUID"
SKIPPED_DESCRIPTION = "Skipped"

_LABEL_PREFIX = "prtrigger"


class DispatchError(Exception):
    """One or more jobs could not be submitted.

    Jobs that were submitted before or after the failures stay submitted;
    ``result`` describes them.
    """

    def __init__(self, errors: list[tuple[str, Exception]], result: DispatchResult):
        self.errors = errors
        self.result = result
        detail = "; ".join(f"{job}: {err}" for job, err in errors)
        super().__init__(f"errors starting jobs: {detail}")


class ChangedFiles:
    """Filenames changed by one pull request, fetched on first use.

    Several catalog lookups in one decision may need the list; it is
    requested from GitHub at most once per instance.
    """

    def __init__(self, client: BaseGitHubClient, org: str, repo: str, number: int):
        self._client = client
        self._org = org
        self._repo = repo
        self._number = number
        self._files: list[str] | None = None

    def __call__(self) -> list[str]:
        if self._files is None:
            self._files = self._client.get_pull_request_changes(self._org, self._repo, self._number)
        return self._files


@dataclass
class DispatchDecision:
    """Candidate jobs split by whether they apply to the base branch.

    Each reporting context appears at most once across both lists. ``to_run``
    keeps the first applicable job per context; ``to_skip`` holds only
    contexts where no shard runs and the job reports its skip.
    """

    to_run: list[JobDefinition] = field(default_factory=list)
    to_skip: list[JobDefinition] = field(default_factory=list)


def plan_dispatch(jobs: list[JobDefinition], branch: str) -> DispatchDecision:
    decision = DispatchDecision()
    running_contexts = {job.context for job in jobs if job.runs_against_branch(branch)}
    started_contexts: set[str] = set()
    skipped_contexts: set[str] = set()
    for job in jobs:
        if job.runs_against_branch(branch):
            if job.context not in started_contexts:
                started_contexts.add(job.context)
                decision.to_run.append(job)
            continue
        if job.skip_report or job.context in running_contexts or job.context in skipped_contexts:
            continue
        skipped_contexts.add(job.context)
        decision.to_skip.append(job)
    return decision


def build_job_record(job: JobDefinition, pr: PullRequestRef, base_sha: str, guid: str) -> JobRecord:
    labels = dict(job.labels)
    labels.update(
        {
            f"{_LABEL_PREFIX}/type": "presubmit",
            f"{_LABEL_PREFIX}/job": job.name,
            f"{_LABEL_PREFIX}/refs.org": pr.org,
            f"{_LABEL_PREFIX}/refs.repo": pr.repo,
            f"{_LABEL_PREFIX}/refs.pull": str(pr.number),
            EVENT_GUID_LABEL: guid,
        }
    )
    return JobRecord(
        job=job.name,
        context=job.context,
        refs=Refs(
            org=pr.org,
            repo=pr.repo,
            base_ref=pr.base_ref,
            base_sha=base_sha,
            pulls=[Pull(number=pr.number, author=pr.author, sha=pr.head_sha)],
        ),
        labels=labels,
    )


def _should_handle(client: BaseGitHubClient, event: CommentEvent) -> bool:
    # Only freshly created comments on open pull requests, and never our own.
    if event.action != ACTION_CREATED:
        return False
    if not event.is_pull_request or event.issue_state != "open":
        return False
    return event.author != client.bot_name()


def _remove_label_quietly(client: BaseGitHubClient, event: CommentEvent, label: str) -> bool:
    try:
        client.remove_label(event.org, event.repo, event.number, label)
    except Exception as e:
        logger.error("Failed at removing %s label from %s#%d: %s", label, event.full_repo, event.number, e)
        return False
    return True


def _clear_stale_comments_quietly(
    client: BaseGitHubClient,
    pr: PullRequestRef,
    label: str,
    comments: list[IssueComment] | None,
) -> bool:
    try:
        clear_stale_comments(client, pr, label, comments)
    except Exception as e:
        logger.warning("Failed to clear stale comments on %s/%s#%d: %s", pr.org, pr.repo, pr.number, e)
        return False
    return True


def handle_issue_comment(
    client: BaseGitHubClient,
    catalog: JobCatalog,
    store: BaseJobStore,
    trusted_org: str,
    event: CommentEvent,
    needs_ok_to_test: str = NEEDS_OK_TO_TEST,
) -> DispatchResult:
    """Start the presubmits a pull request comment asks for.

    Returns a DispatchResult describing the side effects. Raises DispatchError
    when some jobs failed to submit, and lets any GitHub error propagate.
    """
    result = DispatchResult()
    if not _should_handle(client, event):
        return result

    org, repo, number = event.org, event.repo, event.number
    files = ChangedFiles(client, org, repo, number)

    commands = parse_commands(event.body)
    requested = catalog.matching_presubmits(event.full_repo, event.body, commands.test_all, files)

    if not commands.retest and not requested:
        # Nothing to run, but a trusted "/ok-to-test" still lifts the label.
        if commands.test_all and event.has_label(needs_ok_to_test):
            if is_user_trusted(client, event.author, trusted_org, org):
                client.remove_label(org, repo, number, needs_ok_to_test)
                result.label_removed = True
        return result

    pr = client.get_pull_request(org, repo, number)

    if commands.retest:
        statuses = client.get_combined_status(org, repo, pr.head_sha)
        skip_contexts, run_contexts = classify_statuses(statuses)
        retests = catalog.retest_presubmits(event.full_repo, skip_contexts, run_contexts, files)
        logger.debug("Retest of %s#%d resolved %d job(s).", event.full_repo, number, len(retests))
        requested = requested + retests

    comments: list[IssueComment] | None = None
    if not is_user_trusted(client, event.author, trusted_org, org):
        comments = client.list_issue_comments(org, repo, number)
        if not trusted_pull_request(client, pr, trusted_org, comments):
            message = denial_message(trusted_org, org)
            logger.info('Commenting "%s".', message)
            client.create_comment(org, repo, number, format_response(event, message))
            result.denied = True
            return result

    if commands.test_all and event.has_label(needs_ok_to_test):
        result.label_removed = _remove_label_quietly(client, event, needs_ok_to_test)
        result.comments_cleared = _clear_stale_comments_quietly(client, pr, needs_ok_to_test, comments)

    base_sha = client.get_ref(org, repo, f"heads/{pr.base_ref}")
    decision = plan_dispatch(requested, pr.base_ref)

    for job in decision.to_skip:
        client.create_status(
            org,
            repo,
            pr.head_sha,
            CheckStatus(context=job.context, state=STATUS_SUCCESS, description=SKIPPED_DESCRIPTION),
        )
        logger.info("Skipped %s: does not run against %s.", job.context, pr.base_ref)
        result.skipped.append(job.context)

    errors: list[tuple[str, Exception]] = []
    for job in decision.to_run:
        logger.info("Starting %s build.", job.name)
        record = build_job_record(job, pr, base_sha, event.guid)
        try:
            job_id = store.create(record)
        except Exception as e:
            logger.warning("Could not start %s for %s#%d: %s", job.name, event.full_repo, number, e)
            errors.append((job.name, e))
            continue
        logger.info("Created job %s (%s) for %s#%d.", job.name, job_id, event.full_repo, number)
        result.started.append(job_id)

    if errors:
        raise DispatchError(errors, result)
    return result
