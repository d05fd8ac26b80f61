"""Explicit per-run session state.

Replaces ambient globals: the site context, the last application search
and the last staged path travel in a ``MigrationSession`` that every
workflow call receives and returns (updated) to its caller.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path

from cm2intune.collaborators.base import LegacyApplication
from cm2intune.config import Settings


@dataclass(frozen=True)
class MigrationSession:
    """State of one operator session.

    Attributes:
        settings: Loaded configuration.
        applications: Result of the most recent application search.
        last_staged_path: Staging directory of the last successful
            migration, offered for a follow-up publish.
    """

    settings: Settings
    applications: tuple[LegacyApplication, ...] = ()
    last_staged_path: Path | None = None

    def with_applications(self, applications: list[LegacyApplication]) -> MigrationSession:
        return dataclasses.replace(self, applications=tuple(applications))

    def with_staged_path(self, path: Path | None) -> MigrationSession:
        return dataclasses.replace(self, last_staged_path=path)

    def find_application(self, name: str) -> LegacyApplication | None:
        """Return a previously discovered application by exact name."""
        for app in self.applications:
            if app.name == name:
                return app
        return None
