"""``cm2intune package INSTALLER`` - Stage a loose installer file.

Builds a manifest for an installer that has no Configuration Manager
descriptor. Names and version default to the file's version metadata.

Exit Codes:
    0 - Staged.
    1 - Cancelled or failed.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from cm2intune.cli.context import AppContext, pass_app
from cm2intune.cli.output import copy_progress, print_manifest, print_outcome
from cm2intune.workflow import package_installer


@click.command("package")
@click.argument(
    "installer",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--publisher", default=None, help="Publisher name.")
@click.option("--name", default=None, help="Application name.")
@click.option("--version", "version", default=None, help="Application version.")
@click.option("--force", is_flag=True, help="Overwrite an existing staging directory.")
@click.option("--no-review", is_flag=True, help="Skip the manifest review.")
@pass_app
def package_command(
    app: AppContext,
    installer: Path,
    publisher: str | None,
    name: str | None,
    version: str | None,
    force: bool,
    no_review: bool,
) -> None:
    """Stage a package for the installer file INSTALLER."""
    with copy_progress() as on_progress:
        outcome, app.session = package_installer(
            app.session,
            installer,
            app.prompt(),
            publisher=publisher,
            name=name,
            version=version,
            force=force,
            review=not no_review,
            on_progress=on_progress,
        )
    print_outcome(outcome)
    if outcome.succeeded and outcome.manifest is not None:
        print_manifest(outcome.manifest)
    sys.exit(0 if outcome.succeeded else 1)
