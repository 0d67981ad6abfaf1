"""CLI entry point for prtrigger.

Commands:
  handle   — dispatch presubmits for one issue_comment webhook payload
  jobs     — list job requests recorded by the configured store
  stats    — aggregate which jobs and pull requests get tested most
  init     — write .prtrigger.yml and an optional GitHub Actions workflow
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prtrigger_cli.commands.handle import handle_cmd
from prtrigger_cli.commands.init import init_cmd
from prtrigger_cli.commands.jobs import jobs_cmd
from prtrigger_cli.commands.stats import stats_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured job store from .prtrigger.yml settings.

    Store selection hierarchy:
      store: gist   → GistStore  (requires gist_id and github_token)
      store: sqlite → SQLiteStore (uses store_path, default .prtrigger.db)
      (default)     → NoOpStore  (jobs are logged, not persisted)
    """
    from prtrigger_store.noop import NoOpStore

    store_type = config.get("store", "noop")

    if store_type == "gist":
        from prtrigger_store.gist import GistStore

        gist_id = config.get("gist_id")
        token = config.get("github_token")
        if not gist_id or not token:
            console.print("[yellow]GistStore requires gist_id and a GitHub token. Falling back to no store.[/yellow]")
            return NoOpStore()
        return GistStore(gist_id=gist_id, token=token)

    if store_type == "sqlite":
        from prtrigger_store.sqlite import SQLiteStore

        db_path = config.get("store_path") or ".prtrigger.db"
        return SQLiteStore(db_path=db_path)

    return NoOpStore()


@click.group()
@click.version_option(
    version=importlib.metadata.version("prtrigger"),
    prog_name="prtrigger",
)
@click.option(
    "--config",
    "config_path",
    default=".prtrigger.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="PRTRIGGER_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every decision step.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Start CI jobs from pull request comments."""
    from prtrigger_cli.auth import resolve_github_token
    from prtrigger_core.config import load_config

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )

    ctx.ensure_object(dict)

    try:
        config = load_config(config_path)
    except ValueError as e:
        raise click.UsageError(str(e))

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    store = _build_store(config)
    ctx.obj["store"] = store
    ctx.obj["config"] = config
    ctx.call_on_close(store.close)


main.add_command(handle_cmd)
main.add_command(jobs_cmd)
main.add_command(stats_cmd)
main.add_command(init_cmd)
