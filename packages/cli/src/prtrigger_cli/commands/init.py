"""init command — interactive setup for a repository.

Writes .prtrigger.yml (trusted org, job store, an example presubmit) and can
generate a GitHub Actions workflow that runs `prtrigger handle` for every new
pull request comment.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path

import click
import yaml
from rich.console import Console

console = Console()
logger = logging.getLogger(__name__)

_CONFIG_PATH = Path(".prtrigger.yml")
_ACTIONS_BOT = "github-actions[bot]"

_WORKFLOW_TEMPLATE = """\
name: prtrigger

on:
  issue_comment:
    types: [created]

jobs:
  dispatch:
    if: ${{{{ github.event.issue.pull_request }}}}
    runs-on: ubuntu-latest
    permissions:
      issues: write
      pull-requests: write
      statuses: write

    steps:
      - uses: actions/checkout@v4

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: "3.12"

      - name: Install prtrigger
        run: pip install "prtrigger=={version}"

      - name: Dispatch presubmits
        env:
          GITHUB_TOKEN: ${{{{ secrets.{token_secret} }}}}{bot_env}
        run: prtrigger handle --event "$GITHUB_EVENT_PATH" --guid "${{{{ github.run_id }}}}"
"""


@click.command("init")
@click.option("--repo", default=None, help="GitHub repository (owner/name). Auto-detected from git remote.")
def init_cmd(repo: str | None):
    """Set up prtrigger for a repository.

    Creates .prtrigger.yml, optionally creates a Gist to record started jobs,
    and generates a GitHub Actions workflow.
    """
    console.print("\n[bold cyan]prtrigger init[/bold cyan] — repository setup\n")

    if repo is None:
        repo = _detect_repo_from_git()
        if repo:
            console.print(f"[dim]Detected repository: {repo}[/dim]")
        else:
            repo = click.prompt("GitHub repository (owner/name)")

    trusted_org = click.prompt("Organization whose members may start tests", default=repo.split("/")[0])

    console.print("\nJob store:")
    console.print("  [bold]none[/bold]    — log started jobs only (default)")
    console.print("  [bold]sqlite[/bold]  — local SQLite queue for a self-hosted runner")
    console.print("  [bold]gist[/bold]    — shared GitHub Gist, zero infrastructure")
    store_type = click.prompt(
        "Store backend",
        type=click.Choice(["none", "sqlite", "gist"]),
        default="none",
    )

    config: dict = {"trusted_org": trusted_org}

    if store_type == "sqlite":
        db_path = click.prompt("SQLite database path", default=".prtrigger.db")
        config["store"] = "sqlite"
        if db_path != ".prtrigger.db":
            config["store_path"] = db_path
        console.print(f"[green]SQLite store configured at {db_path}[/green]")

    elif store_type == "gist":
        gist_id = _create_jobs_gist(repo)
        if gist_id:
            console.print(f"[green]Created jobs Gist: {gist_id}[/green]")
            config["store"] = "gist"
            config["gist_id"] = gist_id
        else:
            console.print("[yellow]Gist creation failed — add gist_id manually to .prtrigger.yml[/yellow]")

    _write_config(config, repo)
    console.print(f"[green]Wrote {_CONFIG_PATH}[/green]")

    if click.confirm("\nGenerate .github/workflows/prtrigger.yml for GitHub Actions?", default=True):
        token_secret = "PRTRIGGER_GITHUB_TOKEN" if store_type == "gist" else "GITHUB_TOKEN"
        _write_workflow(token_secret)
        console.print("[green]Created .github/workflows/prtrigger.yml[/green]")
        if token_secret != "GITHUB_TOKEN":
            console.print(
                f"\n[yellow]Add a PAT with [bold]gist[/bold] scope as the [bold]{token_secret}[/bold] "
                "repository secret (Settings → Secrets → Actions).[/yellow]"
            )

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print(f"Add presubmits for {repo} under [bold]presubmits:[/bold] in {_CONFIG_PATH}.")


def _detect_repo_from_git() -> str | None:
    """Return ``owner/name`` from the origin remote, or None."""
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            capture_output=True,
            text=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    url = result.stdout.strip()
    # https://github.com/owner/repo.git and git@github.com:owner/repo.git
    if "github.com" not in url:
        return None
    slug = url.split("github.com")[-1].lstrip("/:").removesuffix(".git")
    return slug if "/" in slug else None


def _create_jobs_gist(repo: str) -> str | None:
    """Create a private Gist holding an empty prtrigger_jobs.json and return its ID."""
    tmp_dir = tempfile.mkdtemp()
    path = os.path.join(tmp_dir, "prtrigger_jobs.json")
    with open(path, "w") as f:
        f.write("[]")
    try:
        result = subprocess.run(
            ["gh", "gist", "create", "--public=false", "--desc", f"prtrigger jobs for {repo}", path],
            capture_output=True,
            text=True,
            timeout=15,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    finally:
        os.unlink(path)
        os.rmdir(tmp_dir)

    if result.returncode != 0:
        logger.warning("gh gist create failed: %s", result.stderr.strip())
        return None
    return result.stdout.strip().rstrip("/").split("/")[-1]


def _write_config(config: dict, repo: str) -> None:
    """Write or update .prtrigger.yml, preserving existing keys and presubmits."""
    existing: dict = {}
    if _CONFIG_PATH.exists():
        existing = yaml.safe_load(_CONFIG_PATH.read_text()) or {}
    existing.update(config)
    presubmits = existing.setdefault("presubmits", {})
    presubmits.setdefault(repo, [{"name": "unit-tests", "always_run": True}])
    _CONFIG_PATH.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))


def _get_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("prtrigger")
    except PackageNotFoundError:
        return "0.1.0"


def _write_workflow(token_secret: str) -> None:
    workflow_dir = Path(".github/workflows")
    workflow_dir.mkdir(parents=True, exist_ok=True)
    # The Actions installation token cannot look up its own login.
    bot_env = f"\n          PRTRIGGER_BOT_NAME: \"{_ACTIONS_BOT}\"" if token_secret == "GITHUB_TOKEN" else ""
    (workflow_dir / "prtrigger.yml").write_text(
        _WORKFLOW_TEMPLATE.format(version=_get_version(), token_secret=token_secret, bot_env=bot_env)
    )
