"""Choose the single detection rule for a package.

Priority, first match wins:

1. The installer is an MSI with a known product code -> ``MsiDetection``.
2. The uninstall command contains a braced GUID -> ``RegistryDetection``
   on the uninstall key named after that GUID.
3. Otherwise ``FileDetection`` under ``%ProgramFiles%`` (plus publisher
   folder when known). This step never fails.

The selector is deterministic: the same inputs always produce the same
rule.
"""

from __future__ import annotations

import logging
import ntpath
import re

from cm2intune.core.detection.models import (
    PROGRAM_FILES_TOKEN,
    UNINSTALL_REGISTRY_ROOT,
    DetectionRule,
    FileDetection,
    MsiDetection,
    RegistryDetection,
)
from cm2intune.core.naming import (
    derive_application_name,
    sanitize,
    strip_loose_version,
)
from cm2intune.discovery.models import SourceFileInfo

logger = logging.getLogger(__name__)

GUID_RE = re.compile(
    r"\{[0-9A-Fa-f]{8}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{4}-[0-9A-Fa-f]{12}\}"
)
_QUOTED_SEGMENT_RE = re.compile(r'"([^"]+)"')

FALLBACK_DETECTION_NAME = "Application"


def select_detection(
    source: SourceFileInfo | None,
    uninstall_command: str = "",
    publisher_hint: str | None = None,
    install_command_hint: str = "",
    display_name: str | None = None,
) -> DetectionRule:
    """Select the detection rule for a package.

    Args:
        source: The resolved installer, or None when unknown.
        uninstall_command: Uninstall command line (may be empty).
        publisher_hint: Publisher or manufacturer name, if known.
        install_command_hint: Install command line (may be empty).
        display_name: Application display name used as last-resort hint.

    Returns:
        Exactly one ``DetectionRule``.
    """
    if source is not None and source.is_msi and source.product_code:
        logger.info("Using MSI product code detection: %s", source.product_code)
        return MsiDetection(product_code=source.product_code)

    match = GUID_RE.search(uninstall_command or "")
    if match:
        guid = match.group(0)
        logger.info("Using registry detection for uninstall key %s", guid)
        return RegistryDetection(
            key_path=f"{UNINSTALL_REGISTRY_ROOT}\\{guid}",
            value_name="DisplayName",
        )

    rule = _file_detection(source, publisher_hint, install_command_hint, display_name)
    logger.info(
        "Using file detection: %s\\%s", rule.directory_path, rule.file_or_folder_name
    )
    return rule


def _file_detection(
    source: SourceFileInfo | None,
    publisher_hint: str | None,
    install_command_hint: str,
    display_name: str | None,
) -> FileDetection:
    version_info = source.version_info if source is not None else None

    name = _name_from_install_command(install_command_hint)
    if not name and version_info is not None and version_info.product_name:
        name = derive_application_name(version_info.product_name)
    if not name:
        raw = display_name or (source.stem if source is not None else "")
        name = sanitize(strip_loose_version(raw)).strip() if raw.strip() else ""
    if not name:
        name = FALLBACK_DETECTION_NAME

    publisher = (publisher_hint or "").strip()
    if not publisher and version_info is not None:
        publisher = (version_info.company_name or "").strip()
    directory = (
        ntpath.join(PROGRAM_FILES_TOKEN, sanitize(publisher))
        if publisher else PROGRAM_FILES_TOKEN
    )
    return FileDetection(directory_path=directory, file_or_folder_name=name)


def _name_from_install_command(command: str) -> str:
    """Return the stem of the first quoted path in an install command."""
    for segment in _QUOTED_SEGMENT_RE.findall(command or ""):
        stem = ntpath.splitext(ntpath.basename(segment.strip()))[0].strip()
        if stem:
            return sanitize(stem)
    return ""
