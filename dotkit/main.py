"""
dotkit — CLI entrypoint.

Usage:
    dotkit --help
    dotkit install
    dotkit verify --skip-tmux
    dotkit backups list
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from dotkit import __version__
from dotkit.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="dotkit")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to dotkit.yml (default: <dotfiles>/dotkit.yml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """dotkit — install and verify a personal development environment."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    # Progress lines are rendered by the command itself, not the console log.
    setup_logging(
        level=resolve_level(
            debug=debug, verbose=verbose, quiet=quiet,
            env_level=os.environ.get("DOTKIT_LOG_LEVEL"),
        ),
        log_file=os.environ.get("DOTKIT_LOG_FILE"),
        log_file_level=os.environ.get("DOTKIT_LOG_FILE_LEVEL"),
        echo_progress=False,
    )


def _load(ctx: click.Context):
    """Settings, platform and runner for a command (tests may pre-seed ctx.obj)."""
    from dotkit.core.config.loader import load_settings
    from dotkit.core.errors import ConfigError
    from dotkit.core.services.platform import detect_platform
    from dotkit.core.services.subprocess_runner import run_command

    try:
        settings = load_settings(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"✗ {e}", fg="red", err=True)
        sys.exit(1)

    platform = ctx.obj.get("platform") or detect_platform()
    runner = ctx.obj.get("runner") or run_command
    return settings, platform, runner


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Answer yes to every prompt.")
@click.pass_context
def install(ctx: click.Context, yes: bool) -> None:
    """Install tools, plugins and configuration symlinks."""
    from dotkit.core.errors import InstallAbort, InstallDeclined
    from dotkit.core.services.installer import Installer
    from dotkit.ui.cli.render import ClickReporter

    settings, platform, runner = _load(ctx)
    reporter = ClickReporter(quiet=ctx.obj.get("quiet", False))

    reporter.header("Dotfiles Installation")
    reporter.info(f"Dotfiles: {settings.dotfiles}")
    reporter.info(f"Existing configuration is backed up under {settings.backups}")

    def confirm(question: str) -> bool:
        return yes or click.confirm(question, default=True)

    try:
        if not yes and not click.confirm("Continue with installation?", default=False):
            raise InstallDeclined("Installation aborted.")
        report = Installer(
            settings, platform, runner=runner, reporter=reporter, confirm=confirm,
        ).run()
    except InstallDeclined as e:
        reporter.warning(str(e))
        sys.exit(1)
    except InstallAbort as e:
        reporter.error(f"Installation failed: {e}")
        sys.exit(1)

    reporter.header("Installation Complete")
    if report.warnings:
        reporter.warning(f"{len(report.warnings)} step(s) need attention:")
        for step in report.warnings:
            reporter.info(f"• {step.label or step.resource}: {step.message}")
    if report.backed_up:
        reporter.info(f"Backed up {len(report.backed_up)} existing file(s) to {report.backup_root}")
    reporter.info("Next steps:")
    reporter.info("1. Restart your terminal or run: source ~/.zshrc")
    reporter.info("2. Start tmux and press prefix + I if plugins are missing")
    reporter.info("3. Open Neovim and let Packer finish installing plugins")
    reporter.info(f"Install log: {report.log_path}")


@cli.command()
@click.option("--skip-tmux", is_flag=True, help="Never invoke tmux; skip tmux and TPM checks.")
@click.option("--strict", is_flag=True, help="Exit 1 when anything is missing.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def verify(ctx: click.Context, skip_tmux: bool, strict: bool, as_json: bool) -> None:
    """Check what is installed. Read-only."""
    from dotkit.core.observability.reporter import Reporter
    from dotkit.core.services.verifier import Verifier, needs_path_fix
    from dotkit.ui.cli.render import ClickReporter

    settings, platform, runner = _load(ctx)
    strict = strict or settings.fail_on_missing

    if needs_path_fix(settings):
        # Keep stdout a clean JSON document in --json mode.
        err = as_json
        click.secho("! Your PATH doesn't include user directories.", fg="yellow", err=err)
        click.echo("  This is common in Docker environments. To fix it, run:", err=err)
        click.echo(f"    source {settings.dotfiles / 'docker_path_fix.sh'}", err=err)
        click.echo("    source ~/.zshrc", err=err)
        if not click.confirm("Continue anyway?", default=False, err=err):
            sys.exit(1)

    reporter = Reporter() if as_json else ClickReporter(quiet=ctx.obj.get("quiet", False))
    if not as_json:
        reporter.header("Dotfiles Installation Verification")

    report = Verifier(
        settings,
        platform,
        runner=runner,
        reporter=reporter,
        skip_tmux=skip_tmux or settings.skip_tmux_checks,
    ).run()

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    elif not report.all_ok:
        click.echo()
        click.echo("Run `dotkit install` again or install the missing tools manually.")

    if strict and not report.all_ok:
        sys.exit(1)


# ── Register sub-groups ─────────────────────────────────────────

from dotkit.ui.cli.backups import backups  # noqa: E402

cli.add_command(backups)


if __name__ == "__main__":
    cli()
