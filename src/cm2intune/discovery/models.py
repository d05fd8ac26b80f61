"""Data models for the source locator.

``SourceFileInfo`` is created once per migration attempt and never
modified; the detection selector and manifest builder only read it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

INSTALLER_EXTENSIONS: frozenset[str] = frozenset({".exe", ".msi", ".msix", ".appx"})


@dataclass(frozen=True)
class VersionInfo:
    """Version resource (EXE) or property table (MSI) values.

    Attributes:
        file_version: FileVersion string, EXE only.
        product_version: ProductVersion string.
        company_name: CompanyName (EXE) or Manufacturer (MSI).
        product_name: ProductName.
        file_description: FileDescription, EXE only.
        product_code: MSI ProductCode GUID, braced, or None.
    """

    file_version: str = ""
    product_version: str = ""
    company_name: str = ""
    product_name: str = ""
    file_description: str = ""
    product_code: str | None = None

    @property
    def version(self) -> str:
        """Return the most specific version string available."""
        return (self.product_version or self.file_version).strip()


@dataclass(frozen=True)
class SourceFileInfo:
    """The installer chosen for a migration and its surroundings.

    Attributes:
        path: Absolute path to the installer file.
        size: Installer size in bytes.
        origin_dir: Directory the installer was found in.
        version_info: Extracted metadata, or None when unavailable.
        sibling_files: Every file under ``origin_dir`` (the installer
            included), copied as a whole into staging.
        total_size: Sum of the sizes of ``sibling_files``.
    """

    path: Path
    size: int
    origin_dir: Path
    version_info: VersionInfo | None = None
    sibling_files: tuple[Path, ...] = field(default_factory=tuple)
    total_size: int = 0

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def extension(self) -> str:
        return self.path.suffix.lower()

    @property
    def is_msi(self) -> bool:
        return self.extension == ".msi"

    @property
    def product_code(self) -> str | None:
        if self.version_info is None:
            return None
        return self.version_info.product_code or None

    @property
    def total_files(self) -> int:
        return len(self.sibling_files)


@dataclass(frozen=True)
class CandidateDirectory:
    """A directory the locator may search for installers.

    Attributes:
        path: Directory path. For wildcard candidates, the parent whose
            subdirectories are expanded.
        origin: ``"smart"`` for guessed paths under the alternate base,
            ``"declared"`` for descriptor content locations.
        wildcard: True when ``path`` must be expanded to its
            subdirectories, newest-looking name first.
    """

    path: Path
    origin: str
    wildcard: bool = False

    @property
    def needs_confirmation(self) -> bool:
        """Smart guesses must be confirmed by the operator."""
        return self.origin == "smart"
