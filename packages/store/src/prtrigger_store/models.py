"""Job records submitted to the execution backend.

Decoupled from prtrigger_core's GitHub models so the store layer can be used
on its own (e.g. by a runner that only consumes stored jobs).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class Pull:
    number: int
    author: str
    sha: str


@dataclass
class Refs:
    """The code a job is asked to test: a base commit plus pull request heads."""

    org: str
    repo: str
    base_ref: str
    base_sha: str
    pulls: list[Pull] = field(default_factory=list)

    @property
    def full_repo(self) -> str:
        return f"{self.org}/{self.repo}"


@dataclass
class JobRecord:
    """One request to start a presubmit job.

    Built by the dispatcher from a job definition and a pull request; ``id``
    stays empty until a store assigns one in create().
    """

    job: str
    context: str
    refs: Refs
    labels: dict[str, str] = field(default_factory=dict)
    type: str = "presubmit"
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())  # ISO-8601 UTC
    id: str = ""
