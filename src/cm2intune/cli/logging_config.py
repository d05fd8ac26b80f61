"""Root logger setup for the CLI.

A ``RichHandler`` writes to stderr; when a log file is configured, a plain
``FileHandler`` records everything at DEBUG as well.
"""

from __future__ import annotations

import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# Handlers installed by a previous invocation in the same process.
_installed_handlers: list[logging.Handler] = []


def configure_logging(verbose: bool = False, log_file: str | None = None) -> None:
    """Install the console handler and, when configured, a file handler."""
    root = logging.getLogger()
    for handler in _installed_handlers:
        root.removeHandler(handler)
        handler.close()
    _installed_handlers.clear()

    console = RichHandler(
        console=Console(stderr=True),
        level=logging.DEBUG if verbose else logging.INFO,
        show_path=False,
    )
    _installed_handlers.append(console)
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        _installed_handlers.append(file_handler)

    for handler in _installed_handlers:
        root.addHandler(handler)
    root.setLevel(logging.DEBUG)
