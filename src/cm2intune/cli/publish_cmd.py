"""``cm2intune publish STAGED_DIR`` - Package and publish a staged app.

Builds the container from ``_Sourcefiles``, keeps a timestamped backup
under ``intunewin/``, authenticates against the tenant and creates the
application.

Exit Codes:
    0 - Published.
    1 - Packaging, authentication or publishing failed.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from cm2intune.cli.context import AppContext, pass_app
from cm2intune.cli.output import print_outcome
from cm2intune.workflow import publish_staged


def publish_and_report(app: AppContext, staged_dir: Path) -> bool:
    """Publish ``staged_dir`` and print the outcome. Returns success."""
    outcome, app.session = publish_staged(
        app.session, staged_dir, app.packager(), app.publisher(),
    )
    print_outcome(outcome)
    return outcome.succeeded


@click.command("publish")
@click.argument(
    "staged_dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@pass_app
def publish_command(app: AppContext, staged_dir: Path) -> None:
    """Package and publish the staged package in STAGED_DIR."""
    sys.exit(0 if publish_and_report(app, staged_dir) else 1)
