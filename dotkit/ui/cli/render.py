"""
Terminal rendering of progress messages.
"""

from __future__ import annotations

import click

from dotkit.core.observability.reporter import Reporter


class ClickReporter(Reporter):
    """Colored glyph output via ``click.secho``; also forwards to logging."""

    def __init__(self, quiet: bool = False):
        self.quiet = quiet

    def header(self, text: str) -> None:
        super().header(text)
        if not self.quiet:
            click.echo()
            click.secho(f"=== {text} ===", fg="blue", bold=True)

    def section(self, text: str) -> None:
        super().section(text)
        if not self.quiet:
            click.secho(f"→ {text}", fg="cyan")

    def success(self, text: str) -> None:
        super().success(text)
        if not self.quiet:
            click.secho(f"✓ {text}", fg="green")

    def warning(self, text: str) -> None:
        super().warning(text)
        click.secho(f"! {text}", fg="yellow")

    def error(self, text: str) -> None:
        super().error(text)
        click.secho(f"✗ {text}", fg="red", err=True)

    def info(self, text: str) -> None:
        super().info(text)
        if not self.quiet:
            click.echo(f"  {text}")
