"""SQLiteStore — local file-based job queue.

A runner on the same machine (or one sharing the file) can poll the ``jobs``
table for new rows. Only standard-library sqlite3 is needed.

Schema:
  jobs — one row per job-start request. Pull request heads and labels are
         kept as JSON columns; ``pr_number`` duplicates the first pull's
         number so per-PR queries stay indexed.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import uuid

from prtrigger_store.base import BaseJobStore
from prtrigger_store.models import JobRecord, Pull, Refs

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS jobs (
    id          TEXT PRIMARY KEY,
    job         TEXT NOT NULL,
    context     TEXT NOT NULL,
    type        TEXT NOT NULL,
    repo        TEXT NOT NULL,
    org         TEXT NOT NULL,
    name        TEXT NOT NULL,
    base_ref    TEXT,
    base_sha    TEXT,
    pr_number   INTEGER,
    pulls_json  TEXT DEFAULT '[]',
    labels_json TEXT DEFAULT '{}',
    created_at  TEXT
);
CREATE INDEX IF NOT EXISTS idx_jobs_repo ON jobs (repo);
CREATE INDEX IF NOT EXISTS idx_jobs_pr   ON jobs (repo, pr_number);
"""


class SQLiteStore(BaseJobStore):
    """Stores job requests in a local SQLite database file.

    The database path defaults to `.prtrigger.db` in the current working
    directory. Configure via .prtrigger.yml: `store_path: /path/to/jobs.db`.
    """

    def __init__(self, db_path: str = ".prtrigger.db"):
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def create(self, record: JobRecord) -> str:
        record.id = record.id or uuid.uuid4().hex
        refs = record.refs
        self._conn.execute(
            """
            INSERT INTO jobs
              (id, job, context, type, repo, org, name, base_ref, base_sha,
               pr_number, pulls_json, labels_json, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record.id,
                record.job,
                record.context,
                record.type,
                refs.full_repo,
                refs.org,
                refs.repo,
                refs.base_ref,
                refs.base_sha,
                refs.pulls[0].number if refs.pulls else None,
                json.dumps([{"number": p.number, "author": p.author, "sha": p.sha} for p in refs.pulls]),
                json.dumps(record.labels),
                record.created_at,
            ),
        )
        self._conn.commit()
        logger.debug("SQLiteStore: stored job %s as %s.", record.job, record.id)
        return record.id

    def list_jobs(self, repo: str, pr_number: int | None = None) -> list[JobRecord]:
        if pr_number is not None:
            rows = self._conn.execute(
                "SELECT * FROM jobs WHERE repo=? AND pr_number=? ORDER BY created_at",
                (repo, pr_number),
            ).fetchall()
        else:
            rows = self._conn.execute(
                "SELECT * FROM jobs WHERE repo=? ORDER BY created_at",
                (repo,),
            ).fetchall()

        return [self._row_to_record(r) for r in rows]

    def close(self) -> None:
        self._conn.close()

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> JobRecord:
        pulls = [
            Pull(number=p.get("number", 0), author=p.get("author", ""), sha=p.get("sha", ""))
            for p in json.loads(row["pulls_json"] or "[]")
        ]
        return JobRecord(
            id=row["id"],
            job=row["job"],
            context=row["context"],
            type=row["type"],
            refs=Refs(
                org=row["org"],
                repo=row["name"],
                base_ref=row["base_ref"] or "",
                base_sha=row["base_sha"] or "",
                pulls=pulls,
            ),
            labels=json.loads(row["labels_json"] or "{}"),
            created_at=row["created_at"] or "",
        )
