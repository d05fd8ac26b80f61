"""Pure candidate generation and ranking for the source locator.

Nothing in this module talks to the operator. It produces the ordered
list of directories to try; ``locator.SourceLocator`` consumes that list
and asks for confirmations.

Smart path matching combines the alternate base path with sanitised
``publisher``/``product``/``version`` segments in four shapes, per
version string:

1. ``base/publisher/product/version``
2. ``base/publisher/product``
3. ``base/product/version``
4. ``base/product``

When no version is known, shapes 1 and 3 become wildcard candidates:
their parent is expanded to its subdirectories sorted by name,
descending.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from cm2intune.core.naming import sanitize
from cm2intune.discovery.models import INSTALLER_EXTENSIONS, CandidateDirectory

logger = logging.getLogger(__name__)

_TRAILING_ZERO_RE = re.compile(r"(?:\.0)+$")

SMART = "smart"
DECLARED = "declared"


def version_variants(version: str | None) -> list[str]:
    """Return the version strings to try for a declared version.

    ``"5.1.0.0"`` yields ``["5.1.0.0", "5.1"]``. Empty input yields an
    empty list (callers then fall back to wildcard candidates).
    """
    if not version or not version.strip():
        return []
    declared = version.strip()
    variants = [declared]
    trimmed = _TRAILING_ZERO_RE.sub("", declared)
    if trimmed and trimmed not in variants:
        variants.append(trimmed)
    return [sanitize(v) for v in variants]


def smart_candidates(
    base: Path,
    publisher: str | None,
    product: str | None,
    version: str | None,
) -> list[CandidateDirectory]:
    """Build the deduplicated smart-path candidates under ``base``."""
    if not product or not product.strip():
        return []
    product_dir = sanitize(product.strip())
    publisher_dir = sanitize(publisher.strip()) if publisher and publisher.strip() else ""

    candidates: list[CandidateDirectory] = []
    versions = version_variants(version)
    if versions:
        for ver in versions:
            if publisher_dir:
                candidates.append(CandidateDirectory(base / publisher_dir / product_dir / ver, SMART))
                candidates.append(CandidateDirectory(base / publisher_dir / product_dir, SMART))
            candidates.append(CandidateDirectory(base / product_dir / ver, SMART))
            candidates.append(CandidateDirectory(base / product_dir, SMART))
    else:
        if publisher_dir:
            candidates.append(CandidateDirectory(base / publisher_dir / product_dir, SMART, wildcard=True))
            candidates.append(CandidateDirectory(base / publisher_dir / product_dir, SMART))
        candidates.append(CandidateDirectory(base / product_dir, SMART, wildcard=True))
        candidates.append(CandidateDirectory(base / product_dir, SMART))
    return dedupe(candidates)


def declared_candidates(content_locations: Iterable[str | None]) -> list[CandidateDirectory]:
    """Turn descriptor content locations into candidates, skipping blanks."""
    candidates = [
        CandidateDirectory(Path(loc.strip()), DECLARED)
        for loc in content_locations
        if loc and loc.strip()
    ]
    return dedupe(candidates)


def dedupe(candidates: Iterable[CandidateDirectory]) -> list[CandidateDirectory]:
    """Drop repeated candidates, keeping the first occurrence."""
    return list(dict.fromkeys(candidates))


def expand_wildcard(parent: Path) -> list[Path]:
    """List subdirectories of ``parent``, sorted by name descending.

    Lexicographic order approximates "newest version first"; ``v9``
    sorts above ``v10``.
    """
    try:
        subdirs = [p for p in parent.iterdir() if p.is_dir()]
    except (PermissionError, OSError):
        return []
    return sorted(subdirs, key=lambda p: p.name, reverse=True)


def installer_files(directory: Path) -> list[Path]:
    """Return installer files directly inside ``directory``, sorted by name."""
    try:
        entries = list(directory.iterdir())
    except (PermissionError, OSError):
        logger.debug("Cannot list %s", directory)
        return []
    files: list[Path] = []
    for entry in entries:
        try:
            if entry.is_file() and entry.suffix.lower() in INSTALLER_EXTENSIONS:
                files.append(entry)
        except (PermissionError, OSError):
            continue
    return sorted(files, key=lambda p: p.name.lower())


def resolve_directories(candidate: CandidateDirectory) -> list[Path]:
    """Expand a candidate to the concrete directories to test, in order."""
    if candidate.wildcard:
        return expand_wildcard(candidate.path)
    try:
        return [candidate.path] if candidate.path.is_dir() else []
    except (PermissionError, OSError):
        return []
