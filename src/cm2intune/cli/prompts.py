"""Console implementation of the operator prompt.

Questions use ``click.confirm``, file selection a rich table with a
numbered ``click.prompt`` (0 cancels) and manifest review opens the
manifest as YAML in the operator's editor via ``click.edit``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import click
import yaml
from rich.table import Table

from cm2intune.cli.output import console, format_size, print_manifest
from cm2intune.core.manifest import PackageManifest

logger = logging.getLogger(__name__)


class ConsolePrompt:
    """Asks the operator on the terminal."""

    def confirm(self, message: str) -> bool:
        return click.confirm(message, default=False)

    def choose_file(self, files: Sequence[Path]) -> Path | None:
        if not files:
            return None
        table = Table(title="Installer Files", show_header=True, header_style="bold")
        table.add_column("#", justify="right")
        table.add_column("File", style="bold")
        table.add_column("Size", justify="right")
        for index, file in enumerate(files, start=1):
            try:
                size = format_size(file.stat().st_size)
            except OSError:
                size = "?"
            table.add_row(str(index), file.name, size)
        console.print(table)

        choice = click.prompt(
            "Select the installer (0 to cancel)",
            type=click.IntRange(0, len(files)),
            default=0,
        )
        if choice == 0:
            return None
        return files[choice - 1]

    def review(self, manifest: PackageManifest) -> PackageManifest | None:
        """Show the manifest and optionally open it in an editor.

        Returns the edited manifest, the unchanged manifest when the
        operator keeps it, or None when the review is cancelled.
        """
        print_manifest(manifest)
        if not click.confirm("Edit the manifest before staging?", default=False):
            return manifest

        text = yaml.safe_dump(manifest.to_dict(), sort_keys=False, allow_unicode=True)
        edited = click.edit(text, extension=".yaml")
        if edited is None:
            if click.confirm("No changes were saved. Keep the manifest as built?", default=True):
                return manifest
            return None

        try:
            return PackageManifest.from_dict(yaml.safe_load(edited))
        except (yaml.YAMLError, ValueError) as exc:
            logger.warning("Edited manifest is invalid: %s", exc)
            click.echo(f"Invalid manifest: {exc}", err=True)
            return None
