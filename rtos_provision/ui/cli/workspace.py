"""
CLI commands for workspace provisioning and project creation.

Thin wrappers over ``rtos_provision.core.services.provisioning.orchestration``.
Child process output streams straight to the terminal.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from rtos_provision.ui.cli.common import report_failure, resolve_settings, resolve_store


@click.group()
def workspace() -> None:
    """Workspace — provision Zephyr, create projects."""


@workspace.command("install")
@click.argument("target", type=click.Path(file_okay=False))
@click.option(
    "--sdk-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Install the Zephyr SDK here (default: west's choice).",
)
@click.option("--shallow", is_flag=True, help="Blob-less clones (faster, less disk).")
@click.option("--crlf", is_flag=True, help="Terminate output lines with CRLF.")
@click.pass_context
def install(
    ctx: click.Context,
    target: str,
    sdk_dir: str | None,
    shallow: bool,
    crlf: bool,
) -> None:
    """Provision a Zephyr workspace in TARGET."""
    from rtos_provision.core.services.provisioning.execution.sink import ConsoleSink
    from rtos_provision.core.services.provisioning.orchestration.install import (
        ProvisionOptions,
        provision,
        workspace_venv,
        workspace_zephyr_base,
    )
    from rtos_provision.core.services.provisioning.orchestration.pipeline import PipelineError

    settings = resolve_settings(ctx)
    target_path = Path(target).expanduser().absolute()
    options = ProvisionOptions(
        sdk_destination=Path(sdk_dir).expanduser().absolute() if sdk_dir else None,
        shallow_clone=shallow,
    )

    try:
        provision(target_path, options, ConsoleSink(crlf=crlf), settings=settings)
    except PipelineError as e:
        report_failure(e)
        return

    venv = workspace_venv(target_path, settings)
    zephyr_base = workspace_zephyr_base(target_path, settings)

    def _record(config) -> None:
        config.set_venv_path(venv)
        config.set_sdk_base(zephyr_base)

    resolve_store(ctx).update(_record)

    click.echo()
    click.secho(f"✅ Workspace ready: {target_path}", fg="green", bold=True)
    click.echo(f"   venv:        {venv}")
    click.echo(f"   zephyr base: {zephyr_base}")


@workspace.command("create")
@click.argument("name")
@click.argument("path", type=click.Path(file_okay=False))
@click.option("--shallow", is_flag=True, help="Shallow clones (--depth).")
@click.pass_context
def create(ctx: click.Context, name: str, path: str, shallow: bool) -> None:
    """Create project NAME at PATH from the starter manifest."""
    from rtos_provision.core.services.provisioning.execution.sink import ConsoleSink
    from rtos_provision.core.services.provisioning.orchestration.pipeline import PipelineError
    from rtos_provision.core.services.provisioning.orchestration.project import create_project

    settings = resolve_settings(ctx)
    store = resolve_store(ctx)

    try:
        create_project(
            name,
            Path(path),
            shallow,
            ConsoleSink(),
            store=store,
            settings=settings,
        )
    except PipelineError as e:
        report_failure(e)
        return

    click.echo()
    click.secho(f"✅ Project '{name}' created", fg="green", bold=True)


@workspace.command(
    "west",
    context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False},
)
@click.option(
    "-w", "--workspace", "workspace_dir",
    type=click.Path(file_okay=False),
    default=".",
    show_default=True,
    help="Workspace directory to run in.",
)
@click.argument("args", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def west(ctx: click.Context, workspace_dir: str, args: tuple[str, ...]) -> None:
    """Run a west command in a workspace (rtosprov workspace west -- build -b BOARD)."""
    from rtos_provision.core.services.provisioning.execution.sink import ConsoleSink
    from rtos_provision.core.services.provisioning.orchestration.pipeline import PipelineError
    from rtos_provision.core.services.provisioning.orchestration.project import run_meta_tool

    settings = resolve_settings(ctx)
    config = resolve_store(ctx).load()
    if not config.venv_path:
        click.secho("❌ No virtual environment configured; run 'workspace install' first", fg="red")
        sys.exit(1)

    try:
        run_meta_tool(
            list(args),
            Path(workspace_dir),
            ConsoleSink(),
            venv=Path(config.venv_path),
            settings=settings,
        )
    except PipelineError as e:
        report_failure(e)
