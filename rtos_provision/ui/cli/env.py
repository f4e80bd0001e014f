"""
CLI commands for host environment checks.

Thin wrappers over ``rtos_provision.core.services.provisioning.detection``.
"""

from __future__ import annotations

import json
import sys

import click

from rtos_provision.ui.cli.common import report_failure, resolve_settings, resolve_store


@click.group()
def env() -> None:
    """Environment — readiness, dependency inventory, system packages."""


# ── Detect ──────────────────────────────────────────────────────


@env.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, as_json: bool) -> None:
    """Quick readiness check: git, interpreter, west, SDK."""
    from rtos_provision.core.services.provisioning.detection.dependencies import check_environment

    settings = resolve_settings(ctx)
    config = resolve_store(ctx).load()
    status = check_environment(config, settings)

    if as_json:
        click.echo(json.dumps({**status.model_dump(), "ready": status.ready}, indent=2))
        return

    click.secho("🔎 Environment:", fg="cyan", bold=True)
    for label, ok in (
        ("git", status.git),
        ("python", status.python),
        ("west", status.west),
        ("zephyr sdk", status.sdk),
    ):
        icon = "✅" if ok else "❌"
        click.echo(f"   {icon} {label}")

    click.echo()
    if status.ready:
        click.secho("✅ Ready", fg="green", bold=True)
    else:
        click.secho("⚠️  Not ready — run 'rtosprov workspace install'", fg="yellow")


@env.command("deps")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def deps(ctx: click.Context, as_json: bool) -> None:
    """Full dependency inventory for this OS."""
    from rtos_provision.core.services.provisioning.detection.dependencies import check_dependencies

    settings = resolve_settings(ctx)
    report = check_dependencies(timeout=settings.probe_timeout)

    if as_json:
        click.echo(json.dumps(report.model_dump(), indent=2))
        sys.exit(0 if report.all_satisfied else 1)
        return

    if not report.supported:
        click.secho("❌ Unsupported operating system", fg="red")
        sys.exit(1)

    distro = f" ({report.distro})" if report.distro else ""
    click.secho(f"📦 Dependencies — {report.os}{distro}:", fg="cyan", bold=True)
    for dep in report.dependencies:
        if dep.installed:
            version = f"  {dep.version}" if dep.version else ""
            click.echo(f"   ✅ {dep.name}{version}")
        else:
            suffix = "" if dep.critical else " (optional)"
            click.secho(f"   ❌ {dep.name}{suffix}", fg="red" if dep.critical else "yellow")

    click.echo()
    if report.all_satisfied:
        click.secho("✅ All dependencies installed", fg="green", bold=True)
    else:
        click.secho(
            f"⚠️  {len(report.missing)} missing — run 'rtosprov env install-deps'",
            fg="yellow",
        )
        sys.exit(1)


# ── Act ─────────────────────────────────────────────────────────


@env.command("install-deps")
@click.option(
    "--no-terminal",
    is_flag=True,
    help="Run the package manager here (sudo -n) instead of opening a terminal.",
)
@click.pass_context
def install_deps(ctx: click.Context, no_terminal: bool) -> None:
    """Install missing system packages."""
    from rtos_provision.core.services.provisioning.execution.sink import ConsoleSink
    from rtos_provision.core.services.provisioning.orchestration.pipeline import PipelineError
    from rtos_provision.core.services.provisioning.orchestration.system_packages import (
        install_dependencies,
    )

    settings = resolve_settings(ctx)
    try:
        plan = install_dependencies(
            ConsoleSink(),
            interactive=not no_terminal,
            settings=settings,
        )
    except PipelineError as e:
        report_failure(e)
        return

    if plan is None:
        click.secho("✅ Nothing to install", fg="green")
    elif plan.unmapped:
        click.secho(
            f"⚠️  Install manually: {', '.join(plan.unmapped)}", fg="yellow",
        )
