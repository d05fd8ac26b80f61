"""cm2intune CLI: migrate Configuration Manager applications to Intune.

Entry point for the ``cm2intune`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    search   - Find site applications and show their readiness.
    analyze  - Classify one application for migration.
    migrate  - Locate sources, build the manifest and stage the package.
    package  - Stage a package for a loose installer file.
    publish  - Build the container and publish a staged package.
    logs     - Show the tail of the log file.

Usage::

    cm2intune search "Adobe*"
    cm2intune analyze "7-Zip 23.01"
    cm2intune migrate "7-Zip 23.01" --publish
    cm2intune package D:\\Downloads\\setup.msi --publisher Contoso
    cm2intune publish ~/IntuneMigration/Contoso/Widget/3.4.1
    cm2intune logs --lines 100
"""

from __future__ import annotations

from pathlib import Path

import click

from cm2intune import __version__
from cm2intune.cli.analyze_cmd import analyze_command
from cm2intune.cli.context import AppContext
from cm2intune.cli.logs_cmd import logs_command
from cm2intune.cli.migrate_cmd import migrate_command
from cm2intune.cli.package_cmd import package_command
from cm2intune.cli.publish_cmd import publish_command
from cm2intune.cli.search_cmd import search_command


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="YAML settings file (default: ./cm2intune.yaml).",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug details.")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Also write the log to this file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool, log_file: str | None) -> None:
    """cm2intune: migrate Configuration Manager applications to Intune.

    Settings come from the YAML config file and CM2INTUNE_<KEY>
    environment variables. The site code, site server and tenant
    credentials must be set before any command runs.
    """
    app = ctx.ensure_object(AppContext)
    app.configure(config_path=config_path, verbose=verbose, log_file=log_file)


# Register all subcommands
cli.add_command(search_command)
cli.add_command(analyze_command)
cli.add_command(migrate_command)
cli.add_command(package_command)
cli.add_command(publish_command)
cli.add_command(logs_command)
