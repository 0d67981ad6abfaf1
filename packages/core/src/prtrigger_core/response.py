"""Text of the comments the trigger posts back on pull requests."""

from __future__ import annotations

from prtrigger_core.models import CommentEvent

_ABOUT = (
    "Instructions for interacting with me using PR comments: "
    "`/ok-to-test` runs every default job, `/retest` reruns failed jobs and "
    "`/test <name>` runs a single job."
)


def denial_message(trusted_org: str, org: str) -> str:
    more = ""
    if org != trusted_org:
        more = f"or [{org}](https://github.com/orgs/{org}/people) "
    return (
        f"you can't request testing unless you are a "
        f"[{trusted_org}](https://github.com/orgs/{trusted_org}/people) {more}member."
    )


def format_response(event: CommentEvent, message: str) -> str:
    """Reply to ``event``'s author, quoting the comment that triggered the reply."""
    quoted = "\n".join(f">{line}" for line in event.body.splitlines())
    source = f"[this]({event.html_url})" if event.html_url else "this"
    return (
        f"@{event.author}: {message}\n\n"
        f"<details>\n\n"
        f"In response to {source}:\n\n"
        f"{quoted}\n\n"
        f"{_ABOUT}\n"
        f"</details>"
    )
