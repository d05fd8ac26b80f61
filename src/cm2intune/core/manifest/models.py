"""Package manifest data models.

The manifest is the single artifact handed to packaging and publishing.
Every class here is frozen: a manifest is built once and only ever
replaced wholesale (by the operator review step), never mutated.

Serialization lives on the classes (``to_dict``/``to_json``/``write``);
deserialization is attached from ``operations`` in ``__init__``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cm2intune.core.detection.models import DetectionRule

MANIFEST_VERSION = "1.0"
DEFAULT_ARCHITECTURE = "x64"
DEFAULT_MINIMUM_OS = "W10_1903"

ORIGIN_CONFIGMGR = "ConfigurationManager"
ORIGIN_FILESYSTEM = "Filesystem"


def compose_display_name(publisher: str, application: str, version: str) -> str:
    """Return ``"{publisher} - {application} - {version}"``."""
    return f"{publisher} - {application} - {version}"


@dataclass(frozen=True)
class Requirements:
    """Requirement rule: target architecture and minimum Windows release."""

    architecture: str = DEFAULT_ARCHITECTURE
    minimum_os: str = DEFAULT_MINIMUM_OS

    def to_dict(self) -> dict[str, Any]:
        return {"architecture": self.architecture, "minimum_os": self.minimum_os}


@dataclass(frozen=True)
class OriginInfo:
    """Where the manifest's data came from.

    Attributes:
        source: ``ConfigurationManager`` or ``Filesystem``.
        site_code: Configuration Manager site code, if any.
        application_name: Application name in the source system.
        deployment_type: Title of the deployment type used.
        technology: Installer technology of that deployment type.
        content_location: Declared content location, if any.
        source_path: Directory the installer was actually taken from.
    """

    source: str = ORIGIN_FILESYSTEM
    site_code: str = ""
    application_name: str = ""
    deployment_type: str = ""
    technology: str = ""
    content_location: str = ""
    source_path: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "site_code": self.site_code,
            "application_name": self.application_name,
            "deployment_type": self.deployment_type,
            "technology": self.technology,
            "content_location": self.content_location,
            "source_path": self.source_path,
        }


@dataclass(frozen=True)
class ManifestMetadata:
    """Descriptive and provenance block of the manifest.

    Dates are ISO calendar dates (``YYYY-MM-DD``). ``total_files`` and
    ``total_size`` come from the locator's sibling-file scan.
    """

    category: str = ""
    description: str = ""
    created_date: str = ""
    created_by: str = ""
    updated_date: str = ""
    updated_by: str = ""
    source_file_name: str = ""
    source_file_version: str = ""
    total_files: int = 0
    total_size: int = 0
    icon: str | None = None
    origin: OriginInfo = field(default_factory=OriginInfo)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "description": self.description,
            "created_date": self.created_date,
            "created_by": self.created_by,
            "updated_date": self.updated_date,
            "updated_by": self.updated_by,
            "source_file_name": self.source_file_name,
            "source_file_version": self.source_file_version,
            "total_files": self.total_files,
            "total_size": self.total_size,
            "icon": self.icon,
            "origin": self.origin.to_dict(),
        }


@dataclass(frozen=True)
class PackageManifest:
    """Normalised description of one Win32 package.

    Attributes:
        publisher: Sanitised publisher identifier.
        application_name: Sanitised application identifier.
        version: Application version.
        display_name: ``"{publisher} - {application_name} - {version}"``.
        install_command: Install command line.
        uninstall_command: Uninstall command line, possibly empty.
        detection: The single detection rule.
        requirements: Architecture and minimum OS.
        metadata: Category, description, provenance and file totals.
    """

    publisher: str
    application_name: str
    version: str
    display_name: str
    install_command: str
    uninstall_command: str
    detection: DetectionRule
    requirements: Requirements = field(default_factory=Requirements)
    metadata: ManifestMetadata = field(default_factory=ManifestMetadata)

    @property
    def setup_file(self) -> str:
        """Installer file name the package is built around."""
        return self.metadata.source_file_name

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        return {
            "manifest_version": MANIFEST_VERSION,
            "publisher": self.publisher,
            "application_name": self.application_name,
            "version": self.version,
            "display_name": self.display_name,
            "install_command": self.install_command,
            "uninstall_command": self.uninstall_command,
            "detection": self.detection.to_dict(),
            "requirements": self.requirements.to_dict(),
            "metadata": self.metadata.to_dict(),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    def write(self, path: Path) -> None:
        """Write the manifest as JSON, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")
