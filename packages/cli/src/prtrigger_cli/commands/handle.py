"""handle command — dispatch presubmits for one issue comment."""

from __future__ import annotations

import json

import click
from github import GithubException
from rich.console import Console

from prtrigger_core.gh.client import GitHubClient, ShadowGitHubClient
from prtrigger_core.gh.events import comment_event_from_payload
from prtrigger_core.jobs import JobCatalog
from prtrigger_core.models import DispatchResult
from prtrigger_core.trigger import DispatchError, handle_issue_comment

console = Console()


def _print_result(result: DispatchResult) -> None:
    if result.denied:
        console.print("[yellow]Comment author is not trusted; posted a denial comment.[/yellow]")
        return
    if result.label_removed:
        console.print("[green]Removed the needs-ok-to-test label.[/green]")
    for context in result.skipped:
        console.print(f"  Skipped: {context}")
    if result.started:
        console.print(f"[green]Started {len(result.started)} job(s).[/green]")
    elif result.is_noop:
        console.print("[dim]Nothing to do for this comment.[/dim]")


@click.command("handle")
@click.option(
    "--event",
    "event_path",
    required=True,
    envvar="GITHUB_EVENT_PATH",
    type=click.Path(exists=True, dir_okay=False),
    help="Path to an issue_comment webhook payload (defaults to $GITHUB_EVENT_PATH).",
)
@click.option(
    "--guid",
    default="",
    envvar="GITHUB_RUN_ID",
    help="Correlation id recorded on every started job.",
)
@click.option(
    "--shadow",
    "-s",
    is_flag=True,
    help="Dry-run mode: print the comments, labels, statuses and jobs without writing them.",
)
@click.pass_context
def handle_cmd(ctx, event_path: str, guid: str, shadow: bool):
    """Start the CI jobs an issue comment asks for.

    Understands `/ok-to-test`, `/retest` and each job's own trigger
    (`/test <name>` by default). Only members of the configured trusted_org
    (or of the repository's org) may start jobs.

    \b
    Required environment variables:
      GITHUB_TOKEN   GitHub token for the bot account (or use gh CLI)
    """
    from prtrigger_store.noop import NoOpStore

    config = ctx.obj["config"]
    token = config.get("github_token")
    if not token:
        raise click.UsageError(
            "No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.\n"
            "Create a token at https://github.com/settings/tokens"
        )
    trusted_org = config.get("trusted_org")
    if not trusted_org:
        raise click.UsageError("trusted_org is not set. Add it to .prtrigger.yml or run `prtrigger init`.")

    try:
        with open(event_path, encoding="utf-8") as f:
            event = comment_event_from_payload(json.load(f), guid=guid)
        catalog = JobCatalog.from_config(config)
    except (ValueError, json.JSONDecodeError) as e:
        raise click.UsageError(str(e))

    client = GitHubClient(token, bot_name=config.get("bot_name"))
    store = ctx.obj["store"]
    if shadow:
        client = ShadowGitHubClient(client)
        store = NoOpStore()

    console.print(f"Handling comment by [bold]{event.author}[/bold] on {event.full_repo}#{event.number}")
    try:
        result = handle_issue_comment(
            client,
            catalog,
            store,
            trusted_org,
            event,
            needs_ok_to_test=config.get("needs_ok_to_test_label") or "needs-ok-to-test",
        )
    except DispatchError as e:
        _print_result(e.result)
        for job, err in e.errors:
            console.print(f"[red]Could not start {job}: {err}[/red]")
        raise click.ClickException(str(e))
    except GithubException as e:
        raise click.ClickException(f"GitHub API error ({e.status}): {e.data}")

    _print_result(result)
