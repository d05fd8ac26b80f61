"""Installer source discovery.

Public API::

    from cm2intune.discovery import SourceLocator, SourceFileInfo

    locator = SourceLocator(prompt, alternate_base=base)
    source = locator.locate(locations, publisher, product, version)
"""

from __future__ import annotations

from cm2intune.discovery.locator import SourceLocator, build_source_info
from cm2intune.discovery.models import (
    INSTALLER_EXTENSIONS,
    CandidateDirectory,
    SourceFileInfo,
    VersionInfo,
)
from cm2intune.discovery.version_info import extract_version

__all__ = [
    "CandidateDirectory",
    "INSTALLER_EXTENSIONS",
    "SourceFileInfo",
    "SourceLocator",
    "VersionInfo",
    "build_source_info",
    "extract_version",
]
