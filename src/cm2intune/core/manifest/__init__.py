"""Package manifest: models, builder, serialization and review.

Deserialization functions from ``operations`` are attached to
``PackageManifest`` here so callers only ever import the class::

    from cm2intune.core.manifest import PackageManifest

    manifest = PackageManifest.read(path)
"""

from cm2intune.core.manifest.models import (
    DEFAULT_ARCHITECTURE,
    DEFAULT_MINIMUM_OS,
    ORIGIN_CONFIGMGR,
    ORIGIN_FILESYSTEM,
    ManifestMetadata,
    OriginInfo,
    PackageManifest,
    Requirements,
    compose_display_name,
)
from cm2intune.core.manifest import operations as _ops

PackageManifest.from_dict = classmethod(_ops._from_dict)
PackageManifest.from_json = classmethod(_ops._from_json)
PackageManifest.read = classmethod(_ops._read)

from cm2intune.core.manifest.builder import build_manifest  # noqa: E402
from cm2intune.core.manifest.review import ReviewRejected, apply_review  # noqa: E402

__all__ = [
    "DEFAULT_ARCHITECTURE",
    "DEFAULT_MINIMUM_OS",
    "ManifestMetadata",
    "ORIGIN_CONFIGMGR",
    "ORIGIN_FILESYSTEM",
    "OriginInfo",
    "PackageManifest",
    "Requirements",
    "ReviewRejected",
    "apply_review",
    "build_manifest",
    "compose_display_name",
]
