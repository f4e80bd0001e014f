"""
rtos-provision — CLI entrypoint.

Usage:
    rtosprov --help
    rtosprov env check
    rtosprov workspace install ~/zephyrproject --shallow
    rtosprov workspace create demo ~/projects/demo
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from rtos_provision import __version__
from rtos_provision.core.observability.logging_config import level_from_flags, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="rtosprov")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to rtos-provision.yml (default: auto-detect).",
)
@click.option(
    "--state-file",
    "state_file",
    type=click.Path(exists=False),
    default=None,
    help="Path to the user config JSON (default: per-user config dir).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    state_file: str | None,
) -> None:
    """rtos-provision — set up Zephyr workspaces and projects."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["state_file"] = Path(state_file) if state_file else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=level_from_flags(debug=debug, verbose=verbose, quiet=quiet, environ=os.environ),
        log_file=os.environ.get("RTP_LOG_FILE"),
        log_file_level=os.environ.get("RTP_LOG_FILE_LEVEL"),
    )


# ── Register command groups ─────────────────────────────────────

from rtos_provision.ui.cli.config import config  # noqa: E402
from rtos_provision.ui.cli.env import env  # noqa: E402
from rtos_provision.ui.cli.history import history  # noqa: E402
from rtos_provision.ui.cli.workspace import workspace  # noqa: E402

cli.add_command(env)
cli.add_command(workspace)
cli.add_command(history)
cli.add_command(config)


if __name__ == "__main__":
    cli()
