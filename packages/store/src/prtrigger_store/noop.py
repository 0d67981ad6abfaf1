"""No-op store — the default when no store is configured.

Jobs get an identifier and a log line but are not persisted. Using a
NoOpStore rather than None lets the dispatcher always call store.create().
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from prtrigger_store.base import BaseJobStore

if TYPE_CHECKING:
    from prtrigger_store.models import JobRecord

logger = logging.getLogger(__name__)


class NoOpStore(BaseJobStore):
    """Discards all records; needs no configuration."""

    def create(self, record: JobRecord) -> str:
        record.id = uuid.uuid4().hex
        logger.info("NoOpStore: discarding job %s (%s) for %s.", record.job, record.id, record.refs.full_repo)
        return record.id

    def list_jobs(self, repo: str, pr_number: int | None = None) -> list[JobRecord]:
        return []
