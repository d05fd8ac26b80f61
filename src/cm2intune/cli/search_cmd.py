"""``cm2intune search PATTERN`` - Find site applications.

Queries the Configuration Manager site (``*`` wildcards allowed) and
shows every match with its readiness badge.

Exit Codes:
    0 - One or more applications found.
    1 - The site query failed.
    2 - No application matches the pattern.
"""

from __future__ import annotations

import json
import sys

import click

from cm2intune.cli.context import AppContext, pass_app
from cm2intune.exceptions import ExternalServiceError
from cm2intune.workflow import search_applications


@click.command("search")
@click.argument("pattern")
@click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)
@pass_app
def search_command(app: AppContext, pattern: str, output_format: str) -> None:
    """Search Configuration Manager applications matching PATTERN."""
    try:
        statuses, app.session = search_applications(app.session, app.site(), pattern)
    except ExternalServiceError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if not statuses:
        if output_format == "json":
            click.echo(json.dumps([]))
        else:
            click.echo(f"No applications match: {pattern}")
        sys.exit(2)

    if output_format == "json":
        from cm2intune.cli.output import applications_to_json

        click.echo(json.dumps(applications_to_json(statuses), indent=2))
    else:
        from cm2intune.cli.output import print_applications

        print_applications(statuses)
    sys.exit(0)
