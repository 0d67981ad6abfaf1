"""Abstract execution-backend interface.

The dispatcher hands every job it decides to start to a BaseJobStore. What
happens next (a runner polling SQLite, a team watching a Gist) is outside
prtrigger's concern, so backends are swappable without touching core code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prtrigger_store.models import JobRecord


class BaseJobStore(ABC):
    """Pluggable sink for job-start requests.

    Implementations must be safe to call from CI environments where no
    interactive credentials are available: all auth must happen via
    constructor arguments or environment variables resolved at init time.
    """

    @abstractmethod
    def create(self, record: JobRecord) -> str:
        """Store a job request and return its identifier.

        Raises on failure: the dispatcher reports failed submissions.
        """

    @abstractmethod
    def list_jobs(self, repo: str, pr_number: int | None = None) -> list[JobRecord]:
        """Return jobs for a repo (``owner/name``), optionally filtered by PR number.

        Returns an empty list if no jobs exist.
        """

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional. Subclasses that need cleanup should override this.
        """
