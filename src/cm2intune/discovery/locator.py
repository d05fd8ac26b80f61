"""Resolve the installer file for a migration.

``SourceLocator`` walks the ranked candidate list from ``candidates``:
smart guesses under the alternate source base first (each confirmed by
the operator), then the content locations declared in the descriptor.
A directory qualifies when it directly contains at least one
``.exe``/``.msi``/``.msix``/``.appx`` file. One installer is picked
automatically; several are offered to the operator. Declining a
location or cancelling the choice moves on to the next directory.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from cm2intune.discovery.candidates import (
    declared_candidates,
    installer_files,
    resolve_directories,
    smart_candidates,
)
from cm2intune.discovery.models import CandidateDirectory, SourceFileInfo
from cm2intune.discovery.version_info import extract_version

if TYPE_CHECKING:
    from cm2intune.collaborators.base import OperatorPrompt

logger = logging.getLogger(__name__)


class SourceLocator:
    """Finds the installer file for an application.

    Usage::

        locator = SourceLocator(prompt, alternate_base=Path(r"\\\\srv\\sources"))
        source = locator.locate(facts.content_locations, "Contoso", "Widget", "3.4")
        if source is None:
            ...  # nothing found; the migration cannot continue
    """

    def __init__(
        self,
        prompt: OperatorPrompt,
        alternate_base: Path | None = None,
        msi_helper: str | None = "msiinfo",
    ) -> None:
        self.prompt = prompt
        self.alternate_base = alternate_base
        self.msi_helper = msi_helper

    def ranked_candidates(
        self,
        content_locations: Iterable[str | None],
        publisher_hint: str | None,
        product_hint: str | None,
        version_hint: str | None,
    ) -> list[CandidateDirectory]:
        """Return every candidate directory in the order it will be tried."""
        ranked: list[CandidateDirectory] = []
        if self._alternate_base_available():
            ranked.extend(smart_candidates(
                self.alternate_base, publisher_hint, product_hint, version_hint,
            ))
        ranked.extend(declared_candidates(content_locations))
        return ranked

    def locate(
        self,
        content_locations: Iterable[str | None],
        publisher_hint: str | None = None,
        product_hint: str | None = None,
        version_hint: str | None = None,
    ) -> SourceFileInfo | None:
        """Find and describe the installer to migrate.

        Returns:
            ``SourceFileInfo`` for the chosen installer, or None when no
            candidate produced one.
        """
        candidates = self.ranked_candidates(
            content_locations, publisher_hint, product_hint, version_hint,
        )
        tried: set[Path] = set()
        for candidate in candidates:
            for directory in resolve_directories(candidate):
                if directory in tried:
                    continue
                tried.add(directory)
                chosen = self._try_directory(directory, candidate)
                if chosen is not None:
                    logger.info("Installer selected: %s", chosen)
                    return build_source_info(chosen, self.msi_helper)

        logger.warning(
            "No installer found for %s (%d candidate location(s) tried)",
            product_hint or "<unknown>", len(tried),
        )
        return None

    def _alternate_base_available(self) -> bool:
        if self.alternate_base is None:
            return False
        try:
            return self.alternate_base.is_dir()
        except (PermissionError, OSError):
            return False

    def _try_directory(self, directory: Path, candidate: CandidateDirectory) -> Path | None:
        installers = installer_files(directory)
        if not installers:
            logger.debug("No installer files in %s", directory)
            return None

        if candidate.needs_confirmation:
            question = (
                f"Found {len(installers)} installer file(s) in {directory}. "
                "Use this location?"
            )
            if not self.prompt.confirm(question):
                logger.info("Operator declined %s", directory)
                return None

        if len(installers) == 1:
            return installers[0]

        chosen = self.prompt.choose_file(installers)
        if chosen is None:
            logger.info("No installer chosen in %s", directory)
        return chosen


def collect_siblings(directory: Path) -> tuple[tuple[Path, ...], int]:
    """Return every file under ``directory`` (recursively) and their total size."""
    files = sorted(p for p in directory.rglob("*") if p.is_file())
    total = sum(p.stat().st_size for p in files)
    return tuple(files), total


def build_source_info(path: Path, msi_helper: str | None = "msiinfo") -> SourceFileInfo:
    """Describe an installer file: size, version metadata and siblings."""
    origin = path.parent
    siblings, total = collect_siblings(origin)
    return SourceFileInfo(
        path=path,
        size=path.stat().st_size,
        origin_dir=origin,
        version_info=extract_version(path, msi_helper),
        sibling_files=siblings,
        total_size=total,
    )
