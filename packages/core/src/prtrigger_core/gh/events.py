from __future__ import annotations

from prtrigger_core.models import CommentEvent


def comment_event_from_payload(payload: dict, guid: str = "") -> CommentEvent:
    """Decode a GitHub ``issue_comment`` webhook payload.

    ``guid`` is the ``X-GitHub-Delivery`` header; GitHub Actions does not
    expose it, so callers there usually pass the run id instead.
    """
    try:
        issue = payload["issue"]
        comment = payload["comment"]
        repository = payload["repository"]
        return CommentEvent(
            action=payload["action"],
            org=repository["owner"]["login"],
            repo=repository["name"],
            number=int(issue["number"]),
            author=comment["user"]["login"],
            body=comment.get("body") or "",
            is_pull_request=issue.get("pull_request") is not None,
            issue_state=issue.get("state", ""),
            issue_labels=frozenset(label["name"] for label in issue.get("labels") or []),
            html_url=comment.get("html_url", ""),
            guid=guid,
        )
    except (KeyError, TypeError) as e:
        raise ValueError(f"Not an issue_comment payload: missing {e}") from e
