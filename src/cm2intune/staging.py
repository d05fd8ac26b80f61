"""Staging directory layout for a migrated package.

::

    <base>/<Publisher>/<Application>/<Version>/
        _Sourcefiles/                     copied installer and siblings
        Documents/PackageManifest.json    serialized manifest
        Icon/app_icon.<png|jpg|bmp|ico>   optional icon
        intunewin/                        timestamped container backups
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable

from cm2intune.core.manifest import PackageManifest
from cm2intune.core.naming import sanitize
from cm2intune.discovery.models import SourceFileInfo
from cm2intune.exceptions import StagingError
from cm2intune.parsers.icon import decode_icon, image_extension

logger = logging.getLogger(__name__)

SOURCE_DIR = "_Sourcefiles"
DOCUMENTS_DIR = "Documents"
ICON_DIR = "Icon"
CONTAINER_DIR = "intunewin"
MANIFEST_FILE = "PackageManifest.json"
ICON_STEM = "app_icon"

ProgressCallback = Callable[[int, int, Path], None]


@dataclass(frozen=True)
class StagingLayout:
    """Paths of one package's staging directory."""

    root: Path

    @classmethod
    def for_package(cls, base: Path, publisher: str, application: str, version: str) -> StagingLayout:
        return cls(base / sanitize(publisher) / sanitize(application) / sanitize(version))

    @property
    def sources(self) -> Path:
        return self.root / SOURCE_DIR

    @property
    def documents(self) -> Path:
        return self.root / DOCUMENTS_DIR

    @property
    def manifest_path(self) -> Path:
        return self.documents / MANIFEST_FILE

    @property
    def icon_dir(self) -> Path:
        return self.root / ICON_DIR

    @property
    def containers(self) -> Path:
        return self.root / CONTAINER_DIR

    def find_icon(self) -> Path | None:
        """Return the staged icon file, if one was written."""
        if not self.icon_dir.is_dir():
            return None
        for candidate in sorted(self.icon_dir.glob(f"{ICON_STEM}.*")):
            return candidate
        return None

    def prepare(self, force: bool = False) -> bool:
        """Create the directory tree.

        Args:
            force: Replace an existing staging directory.

        Returns:
            True when the root directory was created by this call.

        Raises:
            StagingError: If the directory already holds files and
                ``force`` is not set.
        """
        existed = self.root.exists()
        if existed and any(self.root.iterdir()):
            if not force:
                raise StagingError(
                    f"Staging directory already exists: {self.root} (use --force to overwrite)"
                )
            logger.warning("Overwriting staging directory %s", self.root)
            self._clear_except_containers()
        for directory in (self.sources, self.documents, self.containers):
            directory.mkdir(parents=True, exist_ok=True)
        return not existed

    def _clear_except_containers(self) -> None:
        """Delete everything in the root except the container backups."""
        for child in self.root.iterdir():
            if child == self.containers:
                continue
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child)
            else:
                child.unlink()

    def copy_sources(
        self,
        source: SourceFileInfo,
        on_progress: ProgressCallback | None = None,
    ) -> int:
        """Copy the installer and its siblings, preserving relative paths.

        Returns:
            Number of files copied.

        Raises:
            StagingError: If a file cannot be copied.
        """
        total = len(source.sibling_files)
        for index, file in enumerate(source.sibling_files, start=1):
            relative = file.relative_to(source.origin_dir)
            target = self.sources / relative
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(file, target)
            except OSError as exc:
                raise StagingError(f"Failed to copy {file}: {exc}") from exc
            if on_progress is not None:
                on_progress(index, total, relative)
        logger.info("Copied %d file(s) to %s", total, self.sources)
        return total

    def write_icon(self, payload: str | None) -> Path | None:
        """Decode and store the descriptor icon. Returns its path or None."""
        if not payload:
            return None
        data = decode_icon(payload)
        if data is None:
            return None
        self.icon_dir.mkdir(parents=True, exist_ok=True)
        path = self.icon_dir / f"{ICON_STEM}.{image_extension(data)}"
        path.write_bytes(data)
        logger.info("Icon written to %s", path)
        return path

    def write_manifest(self, manifest: PackageManifest) -> Path:
        manifest.write(self.manifest_path)
        logger.info("Manifest written to %s", self.manifest_path)
        return self.manifest_path

    def read_manifest(self) -> PackageManifest:
        """Load the staged manifest.

        Raises:
            StagingError: If it is missing or invalid.
        """
        try:
            return PackageManifest.read(self.manifest_path)
        except FileNotFoundError as exc:
            raise StagingError(f"No manifest found at {self.manifest_path}") from exc
        except ValueError as exc:
            raise StagingError(f"Invalid manifest at {self.manifest_path}: {exc}") from exc

    def backup_container(self, artifact: Path, now: datetime | None = None) -> Path:
        """Copy a produced container into ``intunewin/`` with a timestamp."""
        stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
        self.containers.mkdir(parents=True, exist_ok=True)
        target = self.containers / f"{artifact.stem}_{stamp}{artifact.suffix}"
        shutil.copy2(artifact, target)
        logger.info("Container backed up to %s", target)
        return target

    def remove(self) -> None:
        """Delete the whole staging directory."""
        shutil.rmtree(self.root, ignore_errors=True)


def icon_reference(payload: str | None) -> str | None:
    """Relative path the manifest records for an icon payload."""
    if not payload:
        return None
    data = decode_icon(payload)
    if data is None:
        return None
    return f"{ICON_DIR}/{ICON_STEM}.{image_extension(data)}"
