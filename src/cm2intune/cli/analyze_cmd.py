"""``cm2intune analyze NAME`` - Classify one application.

Exit Codes:
    0 - The application can be migrated.
    1 - The application is not migratable, or the site query failed.
    2 - No application with that name exists.
"""

from __future__ import annotations

import json
import sys

import click

from cm2intune.cli.context import AppContext, pass_app
from cm2intune.exceptions import ExternalServiceError
from cm2intune.workflow import analyze_application


@click.command("analyze")
@click.argument("name")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@pass_app
def analyze_command(app: AppContext, name: str, output_format: str) -> None:
    """Show the migration verdict for the application NAME."""
    try:
        application = app.site().get_application(name)
    except ExternalServiceError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if application is None:
        if output_format == "json":
            click.echo(json.dumps({"error": f"Application not found: {name}"}))
        else:
            click.echo(f"Error: Application not found: {name}")
        sys.exit(2)

    verdict = analyze_application(application)
    if output_format == "json":
        from cm2intune.cli.output import verdict_to_json

        click.echo(json.dumps(verdict_to_json(application.name, verdict), indent=2))
    else:
        from cm2intune.cli.output import print_verdict

        print_verdict(application.name, verdict)
    sys.exit(0 if verdict.is_migratable else 1)
