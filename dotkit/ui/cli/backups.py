"""
CLI commands for installer backups.

Thin wrappers over ``dotkit.core.services.backup`` and the per-run
install log.
"""

from __future__ import annotations

import json
import sys

import click

from dotkit.core.data.catalog import INSTALL_LOG_NAME
from dotkit.core.errors import ConfigError
from dotkit.core.persistence.install_log import InstallLog


def _settings(ctx: click.Context):
    from dotkit.core.config.loader import load_settings

    try:
        return load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"✗ {e}", fg="red", err=True)
        sys.exit(1)


@click.group()
def backups() -> None:
    """Inspect backup runs created by ``dotkit install``."""


@backups.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_runs(ctx: click.Context, as_json: bool) -> None:
    """List backup runs, newest first."""
    from dotkit.core.services.backup import list_backup_runs

    settings = _settings(ctx)
    runs = list_backup_runs(settings.backups)

    if as_json:
        click.echo(json.dumps({"backup_parent": str(settings.backups), "runs": runs}, indent=2))
        return

    if not runs:
        click.secho(f"No backups in {settings.backups}", fg="yellow")
        return

    click.secho(f"Backups in {settings.backups}:", bold=True)
    for run in runs:
        log = "" if run["has_log"] else "  (no log)"
        files = "unreadable" if run["files"] is None else f"{run['files']} file(s)"
        click.echo(f"  • {run['name']}  {files}{log}")


@backups.command("show")
@click.argument("run")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def show_run(ctx: click.Context, run: str, as_json: bool) -> None:
    """Show the install log of one backup RUN."""
    settings = _settings(ctx)
    run_dir = settings.backups / run
    if not run_dir.is_dir():
        click.secho(f"✗ No backup run named {run!r}", fg="red", err=True)
        sys.exit(1)

    entries = InstallLog(run_dir / INSTALL_LOG_NAME).read_all()

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.secho("No log entries.", fg="yellow")
        return

    colors = {"ok": "green", "skipped": "white", "warning": "yellow"}
    for entry in entries:
        click.echo(f"{entry.timestamp}  ", nl=False)
        click.secho(f"{entry.status:8}", fg=colors.get(entry.status, "red"), nl=False)
        target = entry.context.get("target") or entry.resource
        click.echo(f" {entry.event:14} {target}  {entry.message}".rstrip())
