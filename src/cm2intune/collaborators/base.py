"""Contracts for the external collaborators the migration depends on.

The decision engine never talks to Configuration Manager, the operator,
the packaging tool or Microsoft Graph directly. It goes through these
protocols, so tests and alternative front ends can substitute their own
implementations.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:
    from cm2intune.core.manifest import PackageManifest


@dataclass(frozen=True)
class LegacyApplication:
    """An application record returned by the site query.

    Attributes:
        name: Localized display name.
        manufacturer: Manufacturer as declared in the console.
        version: Software version as declared in the console.
        deployment_count: Number of deployments of the application.
        deployment_type_count: Number of deployment types.
        sdm_package_xml: Raw descriptor XML digest.
    """

    name: str
    manufacturer: str = ""
    version: str = ""
    deployment_count: int = 0
    deployment_type_count: int = 0
    sdm_package_xml: str = ""


@dataclass(frozen=True)
class AuthSession:
    """An authenticated publishing session."""

    tenant_id: str
    access_token: str


class SiteQuery(Protocol):
    """Reads application records from the Configuration Manager site."""

    def find_applications(self, pattern: str) -> list[LegacyApplication]:
        """Return applications whose name matches ``pattern`` (``*`` wildcards)."""

    def get_application(self, name: str) -> LegacyApplication | None:
        """Return the application named exactly ``name``, or None."""


class OperatorPrompt(Protocol):
    """Interactive decisions delegated to the human operator."""

    def confirm(self, message: str) -> bool:
        """Ask a Yes/No question."""

    def choose_file(self, files: Sequence[Path]) -> Path | None:
        """Pick one file from ``files``; None means cancelled."""

    def review(self, manifest: PackageManifest) -> PackageManifest | None:
        """Let the operator edit the manifest; None means cancelled."""


class Packager(Protocol):
    """Builds the compressed container from a staged source directory."""

    def build(self, source_dir: Path, setup_file: str, output_dir: Path) -> Path:
        """Return the path of the produced container artifact.

        Raises:
            ExternalServiceError: If packaging fails.
        """


class Publisher(Protocol):
    """Authenticates against the tenant and publishes applications."""

    def authenticate(self, tenant_id: str, client_id: str, client_secret: str) -> AuthSession:
        """Return an authenticated session.

        Raises:
            ExternalServiceError: If authentication fails.
        """

    def publish(
        self,
        session: AuthSession,
        manifest: PackageManifest,
        artifact: Path,
        icon: Path | None = None,
    ) -> str:
        """Publish the application and return its identifier.

        Raises:
            ExternalServiceError: If publishing fails.
        """
