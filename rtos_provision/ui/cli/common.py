"""
Shared helpers for CLI command groups.

Resolve settings and the user config store from the root group's
context object, and render pipeline failures consistently.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from rtos_provision.core.config.loader import ConfigError, find_settings_file, load_settings
from rtos_provision.core.models.settings import ProvisionSettings
from rtos_provision.core.persistence.user_config import ConfigStore, default_config_dir
from rtos_provision.core.services.provisioning.orchestration.pipeline import PipelineError


def resolve_settings(ctx: click.Context) -> ProvisionSettings:
    """Load settings from ``--config`` or the auto-detected file. Exits 1 on error."""
    obj = ctx.obj or {}
    path: Path | None = obj.get("config_path")
    if path is None:
        path = find_settings_file(Path.cwd(), default_config_dir())
    try:
        return load_settings(path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def resolve_store(ctx: click.Context) -> ConfigStore:
    obj = ctx.obj or {}
    return ConfigStore(obj.get("state_file"))


def report_failure(error: PipelineError, as_json: bool = False) -> None:
    """Print a pipeline failure and exit 1."""
    if as_json:
        click.echo(json.dumps(error.to_dict(), indent=2))
    else:
        click.secho(f"\n❌ {error.step} failed: {error.message}", fg="red", bold=True, err=True)
        if error.result is not None and error.result.tail:
            click.secho("   Last output:", fg="yellow", err=True)
            for line in error.result.tail[-10:]:
                click.echo(f"     {line}", err=True)
    sys.exit(1)
