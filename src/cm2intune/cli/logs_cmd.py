"""``cm2intune logs`` - Show the tail of the log file.

Exit Codes:
    0 - Log shown.
    2 - No log file configured, or it does not exist yet.
"""

from __future__ import annotations

import sys
from collections import deque
from pathlib import Path

import click

from cm2intune.cli.context import AppContext, pass_app


def tail(path: Path, lines: int) -> list[str]:
    """Return the last ``lines`` lines of ``path``."""
    with path.open(encoding="utf-8", errors="replace") as handle:
        return [line.rstrip("\n") for line in deque(handle, maxlen=lines)]


@click.command("logs")
@click.option("--lines", "-n", type=click.IntRange(min=1), default=50,
              help="Number of lines to show (default: 50).")
@pass_app
def logs_command(app: AppContext, lines: int) -> None:
    """Show the most recent log entries."""
    if not app.settings.log_file:
        click.echo("Error: No log file configured (set log_file or use --log-file)")
        sys.exit(2)
    path = Path(app.settings.log_file).expanduser()
    if not path.is_file():
        click.echo(f"Error: Log file not found: {path}")
        sys.exit(2)
    for line in tail(path, lines):
        click.echo(line)
    sys.exit(0)
