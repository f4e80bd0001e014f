"""
CLI commands for the recent-projects list.
"""

from __future__ import annotations

import json
import sys
import time
from pathlib import Path

import click

from rtos_provision.ui.cli.common import report_failure, resolve_store


@click.group()
def history() -> None:
    """History — recently created or opened projects."""


@history.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_projects(ctx: click.Context, as_json: bool) -> None:
    """List projects, most recent first."""
    config = resolve_store(ctx).load()

    if as_json:
        click.echo(json.dumps([p.model_dump() for p in config.projects], indent=2))
        return

    if not config.projects:
        click.echo("No recent projects.")
        return

    click.secho("🕘 Recent projects:", fg="cyan", bold=True)
    for p in config.projects:
        when = time.strftime("%Y-%m-%d %H:%M", time.localtime(p.last_opened))
        kind = f" [{p.project_type}]" if p.project_type else ""
        click.echo(f"   • {p.name}{kind}  {when}")
        click.echo(f"     {p.path}")


@history.command("add")
@click.argument("path", type=click.Path(file_okay=False))
@click.option("--name", default=None, help="Display name (default: directory name).")
@click.pass_context
def add(ctx: click.Context, path: str, name: str | None) -> None:
    """Record PATH as the most recently opened project."""
    key = Path(path).expanduser().absolute()
    config = resolve_store(ctx).update(lambda c: c.touch_project(key, name=name))
    click.secho(f"✅ {config.projects[0].name} → {key}", fg="green")


@history.command("remove")
@click.argument("path", type=click.Path(file_okay=False))
@click.option(
    "--delete-files",
    is_flag=True,
    help="Also delete the project directory from disk.",
)
@click.pass_context
def remove(ctx: click.Context, path: str, delete_files: bool) -> None:
    """Drop PATH from the history."""
    from rtos_provision.core.services.provisioning.orchestration.pipeline import PipelineError
    from rtos_provision.core.services.provisioning.orchestration.project import (
        delete_project_directory,
    )

    key = str(Path(path).expanduser().absolute())
    store = resolve_store(ctx)

    if store.load().get_project(key) is None:
        click.secho(f"❌ Not in history: {key}", fg="red")
        sys.exit(1)

    if delete_files:
        try:
            delete_project_directory(key)
        except PipelineError as e:
            report_failure(e)
            return
        click.secho(f"🗑️  Deleted directory {key}", fg="green")

    store.update(lambda c: c.remove_project(key))
    click.secho(f"🗑️  Removed {key}", fg="green")
