"""Presubmit job definitions and the catalog that matches comments to jobs.

The catalog is built from the ``presubmits`` section of .prtrigger.yml:

    presubmits:
      owner/repo:
        - name: unit-tests
          always_run: true
        - name: e2e
          context: e2e
          branches: ["main"]
          run_if_changed: "^(cmd|pkg)/"

Several jobs may share one ``context`` while applying to different branches
(branch shards); the dispatcher treats them as one reporting line.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Iterable

logger = logging.getLogger(__name__)

ChangedFilesProvider = Callable[[], list[str]]

_DEFAULT_TRIGGER = r"(?m)^/test( | .* )(all|{name}),?($|\s.*)"


def _compile(pattern: str, job_name: str, key: str) -> re.Pattern:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ValueError(f"Job {job_name!r}: invalid {key} regex {pattern!r}: {e}") from e


@dataclass
class JobDefinition:
    name: str
    context: str = ""
    always_run: bool = False
    run_if_changed: str | None = None
    trigger: str = ""
    rerun_command: str = ""
    branches: list[str] = field(default_factory=list)
    skip_branches: list[str] = field(default_factory=list)
    skip_report: bool = False
    labels: dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Job definitions require a name.")
        if not self.context:
            self.context = self.name
        if not self.trigger:
            self.trigger = _DEFAULT_TRIGGER.format(name=re.escape(self.name))
        if not self.rerun_command:
            self.rerun_command = f"/test {self.name}"
        self._trigger_re = _compile(self.trigger, self.name, "trigger")
        self._changes_re = _compile(self.run_if_changed, self.name, "run_if_changed") if self.run_if_changed else None
        self._branch_res = [_compile(b, self.name, "branches") for b in self.branches]
        self._skip_branch_res = [_compile(b, self.name, "skip_branches") for b in self.skip_branches]

    @classmethod
    def from_dict(cls, d: dict) -> JobDefinition:
        return cls(
            name=d.get("name", ""),
            context=d.get("context", ""),
            always_run=bool(d.get("always_run", False)),
            run_if_changed=d.get("run_if_changed"),
            trigger=d.get("trigger", ""),
            rerun_command=d.get("rerun_command", ""),
            branches=list(d.get("branches") or []),
            skip_branches=list(d.get("skip_branches") or []),
            skip_report=bool(d.get("skip_report", False)),
            labels={str(k): str(v) for k, v in (d.get("labels") or {}).items()},
        )

    def trigger_matches(self, body: str) -> bool:
        return bool(self._trigger_re.search(body or ""))

    def runs_against_branch(self, branch: str) -> bool:
        """Return True if the job should run for pull requests targeting ``branch``.

        ``skip_branches`` wins over ``branches``; a job with neither runs everywhere.
        """
        if any(r.fullmatch(branch) for r in self._skip_branch_res):
            return False
        if not self._branch_res:
            return True
        return any(r.fullmatch(branch) for r in self._branch_res)

    def runs_against_changes(self, files: Iterable[str]) -> bool:
        if self._changes_re is None:
            return False
        return any(self._changes_re.search(f) for f in files)


class JobCatalog:
    """All configured presubmits, keyed by ``owner/repo``."""

    def __init__(self, presubmits: dict[str, list[JobDefinition]] | None = None):
        self._presubmits = presubmits or {}

    @classmethod
    def from_config(cls, config: dict) -> JobCatalog:
        raw = config.get("presubmits") or {}
        if not isinstance(raw, dict):
            raise ValueError("'presubmits' must map owner/repo to a list of jobs.")
        presubmits = {repo: [JobDefinition.from_dict(j) for j in (jobs or [])] for repo, jobs in raw.items()}
        logger.debug("Loaded %d presubmit(s) for %d repo(s).", sum(map(len, presubmits.values())), len(presubmits))
        return cls(presubmits)

    def presubmits(self, full_repo: str) -> list[JobDefinition]:
        return list(self._presubmits.get(full_repo, []))

    def matching_presubmits(
        self,
        full_repo: str,
        body: str,
        test_all: bool,
        files: ChangedFilesProvider,
    ) -> list[JobDefinition]:
        """Return the jobs a comment asks for.

        A job is requested when its trigger matches the comment, or when the
        comment asks to test everything and the job would normally run for
        this pull request (``always_run``, or ``run_if_changed`` matching the
        changed files).
        """
        result = []
        for job in self._presubmits.get(full_repo, []):
            if job.trigger_matches(body):
                result.append(job)
            elif test_all and self._runs_by_default(job, files):
                result.append(job)
        return result

    def retest_presubmits(
        self,
        full_repo: str,
        skip_contexts: set[str],
        run_contexts: set[str],
        files: ChangedFilesProvider,
    ) -> list[JobDefinition]:
        """Return the jobs to rerun for ``/retest``.

        Contexts that already passed or are still running are left alone.
        Failed contexts are rerun, as are default jobs that never reported.
        """
        result = []
        for job in self._presubmits.get(full_repo, []):
            if job.context in skip_contexts:
                continue
            if job.context in run_contexts or self._runs_by_default(job, files):
                result.append(job)
        return result

    @staticmethod
    def _runs_by_default(job: JobDefinition, files: ChangedFilesProvider) -> bool:
        if job.always_run:
            return True
        if job.run_if_changed:
            return job.runs_against_changes(files())
        return False
