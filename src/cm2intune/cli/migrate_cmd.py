"""``cm2intune migrate NAME`` - Migrate one site application.

Parses and classifies the application, locates its installer, selects
the detection rule, builds the manifest, lets the operator review it and
stages the package. On success the staged package can be published
right away.

Exit Codes:
    0 - Staged (and published, when requested).
    1 - Not found, cancelled, or any step failed.
"""

from __future__ import annotations

import sys

import click

from cm2intune.cli.context import AppContext, pass_app
from cm2intune.cli.output import copy_progress, print_manifest, print_outcome
from cm2intune.cli.publish_cmd import publish_and_report
from cm2intune.exceptions import ExternalServiceError
from cm2intune.workflow import migrate_application


@click.command("migrate")
@click.argument("name")
@click.option("--force", is_flag=True, help="Overwrite an existing staging directory.")
@click.option("--yes", "-y", "assume_yes", is_flag=True,
              help="Continue without asking when the application is not migratable.")
@click.option("--no-review", is_flag=True, help="Skip the manifest review.")
@click.option("--publish/--no-publish", default=None,
              help="Publish after staging (default: ask).")
@pass_app
def migrate_command(
    app: AppContext,
    name: str,
    force: bool,
    assume_yes: bool,
    no_review: bool,
    publish: bool | None,
) -> None:
    """Migrate the Configuration Manager application NAME."""
    try:
        application = app.session.find_application(name) or app.site().get_application(name)
    except ExternalServiceError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    if application is None:
        click.echo(f"Error: Application not found: {name}")
        sys.exit(1)

    prompt = app.prompt()
    with copy_progress() as on_progress:
        outcome, app.session = migrate_application(
            app.session,
            application,
            prompt,
            force=force,
            allow_unsuitable=assume_yes,
            review=not no_review,
            on_progress=on_progress,
        )
    print_outcome(outcome)
    if not outcome.succeeded:
        sys.exit(1)
    if outcome.manifest is not None:
        print_manifest(outcome.manifest)

    staged = app.session.last_staged_path
    if publish is None:
        publish = prompt.confirm(f"Publish {outcome.manifest.display_name} to Intune now?")
    if publish and staged is not None:
        sys.exit(0 if publish_and_report(app, staged) else 1)
    sys.exit(0)
