"""Assemble a ``PackageManifest`` from the decisions made upstream.

Command rules:

- Install: a descriptor's install command is used unchanged. For a
  freshly discovered file, ``msiexec /i "<file>" /quiet /norestart``
  (MSI) or ``"<file>" /S`` (anything else) is synthesised.
- Uninstall: the descriptor's uninstall command when it has one;
  otherwise ``msiexec /x "<product code>" /quiet /norestart`` for an MSI
  with a known product code; otherwise empty.
"""

from __future__ import annotations

import getpass
import logging
import os
from datetime import date

from cm2intune.core.classifier.models import (
    CATEGORY_EXE,
    CATEGORY_MSI,
    CATEGORY_WIN32,
)
from cm2intune.core.detection.models import DetectionRule
from cm2intune.core.manifest.models import (
    ManifestMetadata,
    OriginInfo,
    PackageManifest,
    Requirements,
    compose_display_name,
)
from cm2intune.core.naming import NamePair
from cm2intune.discovery.models import SourceFileInfo
from cm2intune.parsers.models import DeploymentTypeFacts

logger = logging.getLogger(__name__)


def current_actor() -> str:
    """Identify the operator running the migration."""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return os.environ.get("USERNAME") or os.environ.get("USER") or "unknown"


def msi_install_command(file_name: str) -> str:
    return f'msiexec /i "{file_name}" /quiet /norestart'


def exe_install_command(file_name: str) -> str:
    return f'"{file_name}" /S'


def msi_uninstall_command(product_code: str) -> str:
    return f'msiexec /x "{product_code}" /quiet /norestart'


def default_category(source: SourceFileInfo) -> str:
    """Category for a package built straight from an installer file."""
    if source.is_msi:
        return CATEGORY_MSI
    if source.extension == ".exe":
        return CATEGORY_EXE
    return CATEGORY_WIN32


def build_manifest(
    names: NamePair,
    version: str,
    source: SourceFileInfo,
    detection: DetectionRule,
    origin_facts: DeploymentTypeFacts | None = None,
    *,
    category: str | None = None,
    origin: OriginInfo | None = None,
    icon_reference: str | None = None,
    requirements: Requirements | None = None,
    today: date | None = None,
    actor: str | None = None,
) -> PackageManifest:
    """Build the manifest for one migration.

    Args:
        names: Publisher and application identifiers.
        version: Application version.
        source: The located installer and its siblings.
        detection: The selected detection rule.
        origin_facts: The deployment type the package comes from, or None
            for a freshly discovered installer.
        category: Migration category; derived from the file when None.
        origin: Provenance block; a filesystem origin when None.
        icon_reference: Relative path of the staged icon, if any.
        requirements: Requirement rule; defaults to x64 / W10_1903.
        today: Date stamp override.
        actor: Operator identity override.

    Returns:
        A new, immutable ``PackageManifest``.
    """
    stamp = (today or date.today()).isoformat()
    who = actor or current_actor()

    if origin_facts is None:
        install = (
            msi_install_command(source.name) if source.is_msi
            else exe_install_command(source.name)
        )
    else:
        install = origin_facts.install_command

    if origin_facts is not None and origin_facts.has_uninstall_command:
        uninstall = origin_facts.uninstall_command
    elif source.is_msi and source.product_code:
        uninstall = msi_uninstall_command(source.product_code)
    else:
        uninstall = ""

    info = source.version_info
    description = (info.file_description.strip() if info else "") or f"{names.application} installer"

    metadata = ManifestMetadata(
        category=category or default_category(source),
        description=description,
        created_date=stamp,
        created_by=who,
        updated_date=stamp,
        updated_by=who,
        source_file_name=source.name,
        source_file_version=info.version if info else "",
        total_files=source.total_files,
        total_size=source.total_size,
        icon=icon_reference,
        origin=origin or OriginInfo(source_path=str(source.origin_dir)),
    )

    manifest = PackageManifest(
        publisher=names.publisher,
        application_name=names.application,
        version=version,
        display_name=compose_display_name(names.publisher, names.application, version),
        install_command=install,
        uninstall_command=uninstall,
        detection=detection,
        requirements=requirements or Requirements(),
        metadata=metadata,
    )
    logger.info("Built manifest for %s", manifest.display_name)
    return manifest
