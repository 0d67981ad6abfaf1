"""GistStore — zero-infrastructure job log via GitHub Gist.

Data format: a single JSON file named `prtrigger_jobs.json` inside the Gist,
holding a JSON array of JobRecord dicts with newest entries appended. Gist
ACLs follow GitHub accounts, so anyone on the team can inspect which jobs
were requested with `prtrigger jobs --repo owner/repo`.

Unlike a history log, a job request that cannot be written is a failed
submission: create() raises and the dispatcher reports it.
"""

from __future__ import annotations

import json
import logging
import uuid

from prtrigger_store.base import BaseJobStore
from prtrigger_store.models import JobRecord, Pull, Refs

logger = logging.getLogger(__name__)

_GIST_FILENAME = "prtrigger_jobs.json"


class GistContentError(RuntimeError):
    """The job log in the Gist cannot be read back in full."""


class GistStore(BaseJobStore):
    """Appends job requests to a GitHub Gist as a JSON array.

    list_jobs() reads the whole array and filters in memory, fine for
    hundreds or low thousands of jobs. Busier repos should use SQLiteStore.

    The Gist ID is stored in .prtrigger.yml under `gist_id`; `prtrigger init`
    creates the Gist and writes the ID automatically.
    """

    def __init__(self, gist_id: str, token: str):
        from github import Github

        self._gist_id = gist_id
        self._gh = Github(token)

    def _get_gist(self):
        return self._gh.get_gist(self._gist_id)

    def create(self, record: JobRecord) -> str:
        record.id = record.id or uuid.uuid4().hex
        gist = self._get_gist()
        existing = self._read_records(gist, strict=True)
        existing.append(self._to_dict(record))
        gist.edit(files={_GIST_FILENAME: {"content": json.dumps(existing, indent=2)}})
        logger.debug("GistStore: appended job %s as %s.", record.job, record.id)
        return record.id

    def list_jobs(self, repo: str, pr_number: int | None = None) -> list[JobRecord]:
        records = self._read_records(self._get_gist())
        results = [self._from_dict(r) for r in records if r.get("repo") == repo]
        if pr_number is not None:
            results = [r for r in results if any(p.number == pr_number for p in r.refs.pulls)]
        return results

    def _read_records(self, gist, strict: bool = False) -> list[dict]:
        """Read the current JSON array from the Gist file.

        A missing or empty file reads as []. Content that is truncated by the
        API or is not valid JSON raises GistContentError when ``strict``, and
        reads as [] otherwise.
        """
        file_obj = gist.files.get(_GIST_FILENAME)
        if file_obj is None:
            return []
        content = file_obj.content or ""
        if file_obj.size and len(content.encode("utf-8")) < file_obj.size:
            problem = f"is truncated ({file_obj.size} bytes)"
        elif not content.strip():
            return []
        else:
            try:
                return json.loads(content) or []
            except json.JSONDecodeError:
                problem = "is not valid JSON"

        if strict:
            raise GistContentError(f"{_GIST_FILENAME} in gist {self._gist_id} {problem}; refusing to overwrite it.")
        logger.warning("GistStore: %s in gist %s %s; ignoring it.", _GIST_FILENAME, self._gist_id, problem)
        return []

    @staticmethod
    def _to_dict(record: JobRecord) -> dict:
        refs = record.refs
        return {
            "id": record.id,
            "job": record.job,
            "context": record.context,
            "type": record.type,
            "repo": refs.full_repo,
            "org": refs.org,
            "name": refs.repo,
            "base_ref": refs.base_ref,
            "base_sha": refs.base_sha,
            "pulls": [{"number": p.number, "author": p.author, "sha": p.sha} for p in refs.pulls],
            "labels": record.labels,
            "created_at": record.created_at,
        }

    @staticmethod
    def _from_dict(d: dict) -> JobRecord:
        return JobRecord(
            id=d.get("id", ""),
            job=d.get("job", ""),
            context=d.get("context", ""),
            type=d.get("type", "presubmit"),
            refs=Refs(
                org=d.get("org", ""),
                repo=d.get("name", ""),
                base_ref=d.get("base_ref", ""),
                base_sha=d.get("base_sha", ""),
                pulls=[
                    Pull(number=p.get("number", 0), author=p.get("author", ""), sha=p.get("sha", ""))
                    for p in d.get("pulls", [])
                ],
            ),
            labels=d.get("labels", {}),
            created_at=d.get("created_at", ""),
        )
