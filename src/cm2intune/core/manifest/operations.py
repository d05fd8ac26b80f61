"""Manifest deserialization.

Attached to ``PackageManifest`` as classmethods in ``__init__`` so callers
use ``PackageManifest.from_dict`` / ``from_json`` / ``read``.
Missing optional fields take their defaults; a missing or unknown
detection rule raises ``ValueError``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from cm2intune.core.detection.models import detection_from_dict
from cm2intune.core.manifest.models import (
    DEFAULT_ARCHITECTURE,
    DEFAULT_MINIMUM_OS,
    ORIGIN_FILESYSTEM,
    ManifestMetadata,
    OriginInfo,
    Requirements,
    compose_display_name,
)


def _str(data: dict[str, Any], key: str, default: str = "") -> str:
    value = data.get(key)
    return default if value is None else str(value)


def _int(data: dict[str, Any], key: str) -> int:
    try:
        return int(data.get(key) or 0)
    except (TypeError, ValueError):
        return 0


def _origin_from_dict(data: dict[str, Any]) -> OriginInfo:
    return OriginInfo(
        source=_str(data, "source", ORIGIN_FILESYSTEM),
        site_code=_str(data, "site_code"),
        application_name=_str(data, "application_name"),
        deployment_type=_str(data, "deployment_type"),
        technology=_str(data, "technology"),
        content_location=_str(data, "content_location"),
        source_path=_str(data, "source_path"),
    )


def _metadata_from_dict(data: dict[str, Any]) -> ManifestMetadata:
    icon = data.get("icon")
    return ManifestMetadata(
        category=_str(data, "category"),
        description=_str(data, "description"),
        created_date=_str(data, "created_date"),
        created_by=_str(data, "created_by"),
        updated_date=_str(data, "updated_date"),
        updated_by=_str(data, "updated_by"),
        source_file_name=_str(data, "source_file_name"),
        source_file_version=_str(data, "source_file_version"),
        total_files=_int(data, "total_files"),
        total_size=_int(data, "total_size"),
        icon=None if icon is None else str(icon),
        origin=_origin_from_dict(data.get("origin") or {}),
    )


def _from_dict(cls: type, data: dict[str, Any]) -> Any:
    """Rebuild a manifest from the dict produced by ``to_dict``.

    Raises:
        ValueError: If ``data`` is not a mapping or the detection rule
            is missing or invalid.
    """
    if not isinstance(data, dict):
        raise ValueError("Manifest document must be a mapping")
    detection = data.get("detection")
    if not isinstance(detection, dict):
        raise ValueError("Manifest has no detection rule")

    publisher = _str(data, "publisher")
    application = _str(data, "application_name")
    version = _str(data, "version")
    requirements = data.get("requirements") or {}
    return cls(
        publisher=publisher,
        application_name=application,
        version=version,
        display_name=_str(
            data, "display_name", compose_display_name(publisher, application, version)
        ),
        install_command=_str(data, "install_command"),
        uninstall_command=_str(data, "uninstall_command"),
        detection=detection_from_dict(detection),
        requirements=Requirements(
            architecture=_str(requirements, "architecture", DEFAULT_ARCHITECTURE),
            minimum_os=_str(requirements, "minimum_os", DEFAULT_MINIMUM_OS),
        ),
        metadata=_metadata_from_dict(data.get("metadata") or {}),
    )


def _from_json(cls: type, json_str: str) -> Any:
    """Deserialize from a JSON string.

    Raises:
        json.JSONDecodeError: If the string is not valid JSON.
    """
    return cls.from_dict(json.loads(json_str))


def _read(cls: type, path: Path) -> Any:
    """Read a manifest written by ``PackageManifest.write``."""
    return cls.from_json(path.read_text(encoding="utf-8"))
