"""Objects carried on the click context for every subcommand.

``AppContext`` holds the global options, the session and factories for
the external collaborators. The factories build the real adapters by
default; tests pass an ``AppContext`` with fakes as the click ``obj``.

Settings are loaded when a command first needs the session, so
``cm2intune <command> --help`` works without any configuration.
"""

from __future__ import annotations

import dataclasses
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import click

from cm2intune.cli.logging_config import configure_logging
from cm2intune.collaborators.base import OperatorPrompt, Packager, Publisher, SiteQuery
from cm2intune.config import Settings, load_settings
from cm2intune.exceptions import ConfigurationError
from cm2intune.session import MigrationSession


def _site(settings: Settings) -> SiteQuery:
    from cm2intune.collaborators.cm_site import CmSiteQuery

    return CmSiteQuery(settings.site_code, settings.site_server)


def _packager(settings: Settings) -> Packager:
    from cm2intune.collaborators.intunewin import IntuneWinPackager

    return IntuneWinPackager(tool=settings.intunewin_tool)


def _publisher(settings: Settings) -> Publisher:
    from cm2intune.collaborators.graph import GraphPublisher

    return GraphPublisher()


def _prompt() -> OperatorPrompt:
    from cm2intune.cli.prompts import ConsolePrompt

    return ConsolePrompt()


@dataclass
class AppContext:
    """Mutable holder passed between the group and its subcommands."""

    config_path: Path | None = None
    verbose: bool = False
    log_file: str | None = None
    site_factory: Callable[[Settings], SiteQuery] = _site
    packager_factory: Callable[[Settings], Packager] = _packager
    publisher_factory: Callable[[Settings], Publisher] = _publisher
    prompt_factory: Callable[[], OperatorPrompt] = _prompt
    _session: MigrationSession | None = field(default=None, repr=False)
    _prompt: OperatorPrompt | None = field(default=None, repr=False)

    def configure(self, config_path: Path | None, verbose: bool, log_file: str | None) -> None:
        """Record the global options; settings are loaded on first use."""
        self.config_path = config_path
        self.verbose = verbose
        self.log_file = log_file
        self._session = None

    @property
    def session(self) -> MigrationSession:
        """The session, created from validated settings on first access.

        Missing required settings are fatal: the error is printed and the
        process exits with status 1.
        """
        if self._session is None:
            self._session = MigrationSession(settings=self._load_settings())
        return self._session

    @session.setter
    def session(self, value: MigrationSession) -> None:
        self._session = value

    @property
    def settings(self) -> Settings:
        return self.session.settings

    def _load_settings(self) -> Settings:
        try:
            settings = load_settings(self.config_path).require()
        except ConfigurationError as exc:
            click.echo(f"Error: {exc}", err=True)
            sys.exit(1)
        if self.log_file:
            settings = dataclasses.replace(settings, log_file=self.log_file)
        configure_logging(self.verbose, settings.log_file or None)
        return settings

    def site(self) -> SiteQuery:
        return self.site_factory(self.settings)

    def packager(self) -> Packager:
        return self.packager_factory(self.settings)

    def publisher(self) -> Publisher:
        return self.publisher_factory(self.settings)

    def prompt(self) -> OperatorPrompt:
        if self._prompt is None:
            self._prompt = self.prompt_factory()
        return self._prompt


pass_app = click.make_pass_decorator(AppContext, ensure=True)
