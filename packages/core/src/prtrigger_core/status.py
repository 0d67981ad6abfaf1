from __future__ import annotations

from typing import Iterable

from prtrigger_core.models import STATUS_ERROR, STATUS_FAILURE, STATUS_PENDING, STATUS_SUCCESS, CheckStatus


def classify_statuses(statuses: Iterable[CheckStatus]) -> tuple[set[str], set[str]]:
    """Split a commit's combined status into (skip_contexts, run_contexts).

    Passed or still-running contexts are skipped; failed or errored ones are
    rerun candidates. Any other state is ignored.
    """
    skip_contexts: set[str] = set()
    run_contexts: set[str] = set()
    for status in statuses:
        if status.state in (STATUS_SUCCESS, STATUS_PENDING):
            skip_contexts.add(status.context)
        elif status.state in (STATUS_FAILURE, STATUS_ERROR):
            run_contexts.add(status.context)
    return skip_contexts, run_contexts
