"""Test helpers: descriptor XML builders, installer files and fake collaborators.

Imported by test modules as ``from tests.helpers import ...``.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Sequence
from xml.sax.saxutils import escape

from cm2intune.collaborators.base import AuthSession, LegacyApplication
from cm2intune.core.manifest import PackageManifest
from cm2intune.discovery.models import SourceFileInfo, VersionInfo
from cm2intune.exceptions import ExternalServiceError

DIGEST_NS = "http://schemas.microsoft.com/SystemCenterConfigurationManager/2009/AppMgmtDigest"
ADOBE_GUID = "{AC76BA86-7AD7-1033-7B44-AC0F074E4100}"
WIDGET_GUID = "{11111111-2222-3333-4444-555555555555}"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
PNG_PAYLOAD = base64.b64encode(PNG_BYTES).decode("ascii")


# ---------------------------------------------------------------------------
# Descriptor XML
# ---------------------------------------------------------------------------


def deployment_type_xml(
    title: str = "Widget - Windows Installer",
    technology: str = "MSI",
    install: str = 'msiexec /i "widget.msi" /quiet',
    uninstall: str = "",
    locations: Sequence[str] = ("\\\\srv\\share\\widget\\",),
    method_body: str = "<EnhancedDetectionMethod/>",
) -> str:
    """Render one ``DeploymentType`` element of an SDM package digest."""
    contents = "".join(
        f'<Content ContentId="Content_{i}" Version="1"><Location>{escape(loc)}</Location></Content>'
        for i, loc in enumerate(locations)
    )
    detect_args = ""
    if method_body:
        detect_args = f'<Arg Name="MethodBody" Type="String">{escape(method_body)}</Arg>'
    install_args = ""
    if install:
        install_args = f'<Arg Name="InstallCommandLine" Type="String">{escape(install)}</Arg>'
    uninstall_action = ""
    if uninstall:
        uninstall_action = (
            "<UninstallAction><Provider>Script</Provider><Args>"
            f'<Arg Name="InstallCommandLine" Type="String">{escape(uninstall)}</Arg>'
            "</Args></UninstallAction>"
        )
    return (
        '<DeploymentType AuthoringScopeId="ScopeId_1" LogicalName="DeploymentType_1" Version="1">'
        f"<Title>{escape(title)}</Title>"
        f'<Installer Technology="{technology}">'
        f"<Contents>{contents}</Contents>"
        f"<DetectAction><Provider>{technology}</Provider><Args>{detect_args}</Args></DetectAction>"
        f"<InstallAction><Provider>{technology}</Provider><Args>{install_args}</Args></InstallAction>"
        f"{uninstall_action}"
        "</Installer>"
        "</DeploymentType>"
    )


def descriptor_xml(*deployment_types: str, icon: str | None = None) -> str:
    """Wrap deployment types in an ``AppMgmtDigest`` document."""
    display_icon = f"<Icon Id=\"Icon_1\"><Data>{icon}</Data></Icon>" if icon else ""
    return (
        '<?xml version="1.0" encoding="utf-16"?>'
        f'<AppMgmtDigest xmlns="{DIGEST_NS}">'
        '<Application AuthoringScopeId="ScopeId_1" LogicalName="Application_1" Version="1">'
        f'<DisplayInfo DefaultLanguage="en-US"><Info Language="en-US"><Title>Widget</Title>{display_icon}</Info></DisplayInfo>'
        '<DeploymentTypes><DeploymentType AuthoringScopeId="ScopeId_1" LogicalName="DeploymentType_1" Version="1"/></DeploymentTypes>'
        "</Application>"
        f"{''.join(deployment_types)}"
        "</AppMgmtDigest>"
    )


# ---------------------------------------------------------------------------
# Installers on disk
# ---------------------------------------------------------------------------


def write_installer(directory: Path, name: str, content: bytes = b"MZ installer") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(content)
    return path


def source_info(
    path: Path,
    version_info: VersionInfo | None = None,
    siblings: Sequence[Path] | None = None,
) -> SourceFileInfo:
    """Describe an installer without touching version APIs."""
    files = tuple(siblings) if siblings is not None else (path,)
    return SourceFileInfo(
        path=path,
        size=path.stat().st_size if path.exists() else 0,
        origin_dir=path.parent,
        version_info=version_info,
        sibling_files=files,
        total_size=sum(f.stat().st_size for f in files if f.exists()),
    )


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------


@dataclass
class FakePrompt:
    """Scripted operator: answers come from queues, calls are recorded."""

    confirms: list[bool] = field(default_factory=list)
    choose_index: int | None = 0
    review_result: Callable[[PackageManifest], PackageManifest | None] | None = None
    questions: list[str] = field(default_factory=list)
    offered: list[list[Path]] = field(default_factory=list)
    reviewed: list[PackageManifest] = field(default_factory=list)

    def confirm(self, message: str) -> bool:
        self.questions.append(message)
        return self.confirms.pop(0) if self.confirms else False

    def choose_file(self, files: Sequence[Path]) -> Path | None:
        self.offered.append(list(files))
        if self.choose_index is None:
            return None
        return files[self.choose_index]

    def review(self, manifest: PackageManifest) -> PackageManifest | None:
        self.reviewed.append(manifest)
        if self.review_result is None:
            return manifest
        return self.review_result(manifest)


@dataclass
class FakeSite:
    """In-memory site query."""

    applications: list[LegacyApplication] = field(default_factory=list)
    error: str | None = None

    def find_applications(self, pattern: str) -> list[LegacyApplication]:
        if self.error:
            raise ExternalServiceError(self.error)
        if pattern in ("*", ""):
            return list(self.applications)
        prefix = pattern.rstrip("*")
        if pattern.endswith("*"):
            return [a for a in self.applications if a.name.startswith(prefix)]
        return [a for a in self.applications if a.name == pattern]

    def get_application(self, name: str) -> LegacyApplication | None:
        for app in self.find_applications(name):
            if app.name == name:
                return app
        return None


@dataclass
class FakePackager:
    """Writes a dummy container next to the requested output directory."""

    error: str | None = None
    calls: list[tuple[Path, str, Path]] = field(default_factory=list)

    def build(self, source_dir: Path, setup_file: str, output_dir: Path) -> Path:
        self.calls.append((source_dir, setup_file, output_dir))
        if self.error:
            raise ExternalServiceError(self.error)
        artifact = output_dir / f"{Path(setup_file).stem}.intunewin"
        artifact.write_bytes(b"container")
        return artifact


@dataclass
class FakePublisher:
    """Records published manifests and returns a fixed id."""

    app_id: str = "app-0001"
    auth_error: str | None = None
    published: list[tuple[PackageManifest, Path, Path | None]] = field(default_factory=list)

    def authenticate(self, tenant_id: str, client_id: str, client_secret: str) -> AuthSession:
        if self.auth_error:
            raise ExternalServiceError(self.auth_error)
        return AuthSession(tenant_id=tenant_id, access_token="token")

    def publish(
        self,
        session: AuthSession,
        manifest: PackageManifest,
        artifact: Path,
        icon: Path | None = None,
    ) -> str:
        self.published.append((manifest, artifact, icon))
        return self.app_id


