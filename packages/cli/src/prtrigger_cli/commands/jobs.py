"""jobs command — list job requests recorded by the store."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

console = Console()


def _require_store(ctx):
    from prtrigger_store.noop import NoOpStore

    store = ctx.obj.get("store") if ctx.obj else None
    if store is None or isinstance(store, NoOpStore):
        raise click.UsageError(
            "No store configured. Add 'store: sqlite' or 'store: gist' to .prtrigger.yml, "
            "or run `prtrigger init` to set one up."
        )
    return store


@click.command("jobs")
@click.option("--repo", required=True, help="GitHub repository (owner/name).")
@click.option("--pr", "pr_number", type=int, default=None, help="Filter by PR number.")
@click.option("--limit", default=20, show_default=True, help="Maximum number of jobs to show.")
@click.pass_context
def jobs_cmd(ctx, repo: str, pr_number: int | None, limit: int):
    """Show jobs started for a repository, newest first."""
    store = _require_store(ctx)

    records = store.list_jobs(repo, pr_number=pr_number)
    if not records:
        console.print("[yellow]No job records found.[/yellow]")
        return

    records = list(reversed(records))[:limit]

    table = Table(title=f"Jobs — {repo}", show_header=True, header_style="bold cyan")
    table.add_column("PR", style="bold", width=6)
    table.add_column("Job", max_width=30)
    table.add_column("Base", max_width=20)
    table.add_column("Head", width=8)
    table.add_column("Created At", width=16)

    for r in records:
        pull = r.refs.pulls[0] if r.refs.pulls else None
        table.add_row(
            f"#{pull.number}" if pull else "",
            r.job,
            f"{r.refs.base_ref}@{r.refs.base_sha[:7]}",
            pull.sha[:7] if pull else "",
            r.created_at[:16].replace("T", " "),
        )

    console.print(table)
