"""
CLI commands for user config and effective settings.
"""

from __future__ import annotations

import json
from pathlib import Path

import click

from rtos_provision.ui.cli.common import resolve_settings, resolve_store


@click.group()
def config() -> None:
    """Config — installation paths and effective settings."""


@config.command("show")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show(ctx: click.Context, as_json: bool) -> None:
    """Show the user config and the effective provisioning settings."""
    store = resolve_store(ctx)
    user = store.load()
    settings = resolve_settings(ctx)

    if as_json:
        click.echo(json.dumps({
            "config_file": str(store.path),
            "user": user.model_dump(),
            "settings": settings.model_dump(),
        }, indent=2))
        return

    click.secho(f"⚙️  User config ({store.path}):", fg="cyan", bold=True)
    click.echo(f"   venv_path: {user.venv_path or '—'}")
    click.echo(f"   sdk_base:  {user.sdk_base or '—'}")
    click.echo(f"   projects:  {len(user.projects)}")
    click.echo()
    click.secho("⚙️  Settings:", fg="cyan", bold=True)
    for key, value in settings.model_dump().items():
        click.echo(f"   {key}: {value if value is not None else '—'}")


@config.command("set-venv")
@click.argument("path", type=click.Path(file_okay=False))
@click.pass_context
def set_venv(ctx: click.Context, path: str) -> None:
    """Use the virtual environment at PATH."""
    venv = Path(path).expanduser().absolute()
    if not venv.is_dir():
        click.secho(f"⚠️  {venv} does not exist yet", fg="yellow")
    resolve_store(ctx).update(lambda c: c.set_venv_path(venv))
    click.secho(f"✅ venv_path = {venv}", fg="green")


@config.command("set-sdk")
@click.argument("path", type=click.Path(file_okay=False))
@click.pass_context
def set_sdk(ctx: click.Context, path: str) -> None:
    """Use the Zephyr tree at PATH as the SDK base."""
    base = Path(path).expanduser().absolute()
    if not base.is_dir():
        click.secho(f"⚠️  {base} does not exist yet", fg="yellow")
    resolve_store(ctx).update(lambda c: c.set_sdk_base(base))
    click.secho(f"✅ sdk_base = {base}", fg="green")
