"""stats command — aggregate patterns across recorded jobs."""

from __future__ import annotations

from collections import Counter

import click
from rich.console import Console
from rich.table import Table

from prtrigger_cli.commands.jobs import _require_store

console = Console()


@click.command("stats")
@click.option("--repo", required=True, help="GitHub repository (owner/name).")
@click.option("--top", default=10, show_default=True, help="Number of top entries to show per category.")
@click.pass_context
def stats_cmd(ctx, repo: str, top: int):
    """Show which jobs and pull requests are tested most often.

    Frequently restarted jobs are usually flaky; pull requests with many runs
    are usually stuck.
    """
    store = _require_store(ctx)

    records = store.list_jobs(repo)
    if not records:
        console.print("[yellow]No job records found for this repository.[/yellow]")
        return

    job_counter: Counter[str] = Counter(r.job for r in records)
    pr_counter: Counter[int] = Counter(p.number for r in records for p in r.refs.pulls)
    pr_authors = {p.number: p.author for r in records for p in r.refs.pulls}

    console.print(f"\n[bold]Job stats for [cyan]{repo}[/cyan][/bold]")
    console.print(f"  Total jobs:    {len(records)}")
    console.print(f"  Distinct jobs: {len(job_counter)}")
    if pr_counter:
        console.print(f"  Avg per PR:    {len(records) / len(pr_counter):.1f}")

    job_table = Table(title=f"Top {top} Most Started Jobs", show_header=True)
    job_table.add_column("Job", style="bold")
    job_table.add_column("Runs", justify="right")
    for name, count in job_counter.most_common(top):
        job_table.add_row(name, str(count))
    console.print(job_table)

    if pr_counter:
        pr_table = Table(title=f"Top {top} Most Tested Pull Requests", show_header=True)
        pr_table.add_column("PR")
        pr_table.add_column("Author")
        pr_table.add_column("Runs", justify="right")
        for number, count in pr_counter.most_common(top):
            pr_table.add_row(f"#{number}", pr_authors.get(number, ""), str(count))
        console.print(pr_table)
