"""Detection rule variants.

Exactly one rule is attached to every manifest. The variants are frozen
dataclasses sharing a ``kind`` discriminator used for serialization.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Union

UNINSTALL_REGISTRY_ROOT = r"HKEY_LOCAL_MACHINE\SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"
PROGRAM_FILES_TOKEN = "%ProgramFiles%"


@dataclass(frozen=True)
class MsiDetection:
    """Detect by Windows Installer product code."""

    product_code: str
    kind: ClassVar[str] = "msi"

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "product_code": self.product_code}


@dataclass(frozen=True)
class RegistryDetection:
    """Detect by existence of an uninstall registry key value."""

    key_path: str
    value_name: str = "DisplayName"
    kind: ClassVar[str] = "registry"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "key_path": self.key_path,
            "value_name": self.value_name,
        }


@dataclass(frozen=True)
class FileDetection:
    """Detect by existence of a file or folder."""

    directory_path: str
    file_or_folder_name: str
    kind: ClassVar[str] = "file"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.kind,
            "path": self.directory_path,
            "file_or_folder_name": self.file_or_folder_name,
        }


DetectionRule = Union[MsiDetection, RegistryDetection, FileDetection]

DETECTION_KINDS: tuple[str, ...] = ("msi", "registry", "file")


def detection_from_dict(data: dict[str, Any]) -> DetectionRule:
    """Rebuild a detection rule from its ``to_dict`` form.

    Raises:
        ValueError: If ``type`` is missing or not a known kind, or a
            required field is absent.
    """
    kind = str(data.get("type", "")).lower()
    try:
        if kind == "msi":
            return MsiDetection(product_code=str(data["product_code"]))
        if kind == "registry":
            return RegistryDetection(
                key_path=str(data["key_path"]),
                value_name=str(data.get("value_name", "DisplayName")),
            )
        if kind == "file":
            return FileDetection(
                directory_path=str(data["path"]),
                file_or_folder_name=str(data["file_or_folder_name"]),
            )
    except KeyError as exc:
        raise ValueError(f"Detection rule of type {kind!r} is missing {exc.args[0]!r}") from None
    raise ValueError(f"Unknown detection rule type: {data.get('type')!r}")
