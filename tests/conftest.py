"""Shared fixtures for cm2intune tests."""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Callable

import pytest

from cm2intune.config import Settings
from cm2intune.core.detection import FileDetection, MsiDetection
from cm2intune.core.manifest import PackageManifest, build_manifest
from cm2intune.core.naming import NamePair
from cm2intune.discovery.models import VersionInfo
from cm2intune.session import MigrationSession
from tests.helpers import (
    PNG_PAYLOAD,
    WIDGET_GUID,
    deployment_type_xml,
    descriptor_xml,
    source_info,
    write_installer,
)


@pytest.fixture
def msi_descriptor() -> str:
    """A descriptor with one complete MSI deployment type and an icon."""
    return descriptor_xml(
        deployment_type_xml(uninstall=f"msiexec /x {WIDGET_GUID} /quiet"),
        icon=PNG_PAYLOAD,
    )


@pytest.fixture
def installer_dir(tmp_path: Path) -> Path:
    """A source directory with one MSI, a transform and a nested file."""
    source = tmp_path / "share" / "widget"
    write_installer(source, "widget.msi", b"\xd0\xcf\x11\xe0 msi")
    (source / "widget.mst").write_bytes(b"transform")
    write_installer(source / "support", "readme.txt", b"read me")
    return source


# ---------------------------------------------------------------------------
# Manifests
# ---------------------------------------------------------------------------


@pytest.fixture
def make_manifest(tmp_path: Path) -> Callable[..., PackageManifest]:
    """Factory building a manifest around a small EXE installer."""

    def _make(
        publisher: str = "Contoso",
        application: str = "Widget",
        version: str = "3.4.1",
        detection=None,
        file_name: str = "setup.exe",
    ) -> PackageManifest:
        installer = write_installer(tmp_path / "manifest-src", file_name)
        return build_manifest(
            NamePair(publisher, application),
            version,
            source_info(installer),
            detection or FileDetection("%ProgramFiles%\\Contoso", "Widget"),
            today=date(2024, 5, 1),
            actor="tester",
        )

    return _make


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Complete settings staging under a temporary directory."""
    return Settings(
        site_code="PS1",
        site_server="cm01.contoso.local",
        staging_base=str(tmp_path / "staging"),
        tenant_id="tenant",
        client_id="client",
        client_secret="secret",
        msi_helper="cm2intune-no-such-helper",
    )


@pytest.fixture
def session(settings: Settings) -> MigrationSession:
    return MigrationSession(settings=settings)


@pytest.fixture
def no_version_info(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make version extraction report nothing, whatever the platform."""
    monkeypatch.setattr("cm2intune.discovery.locator.extract_version", lambda path, helper=None: None)


@pytest.fixture
def widget_msi_info() -> VersionInfo:
    return VersionInfo(
        product_version="3.4.1",
        company_name="Contoso Ltd.",
        product_name="Contoso Widget 3.4.1",
        product_code=WIDGET_GUID,
    )


@pytest.fixture
def msi_detection() -> MsiDetection:
    return MsiDetection(WIDGET_GUID)
