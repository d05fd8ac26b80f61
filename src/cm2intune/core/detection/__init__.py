"""Detection strategy selection.

Public API::

    from cm2intune.core.detection import select_detection

    rule = select_detection(source, uninstall_command, publisher, install_command)
"""

from cm2intune.core.detection.models import (
    DETECTION_KINDS,
    PROGRAM_FILES_TOKEN,
    UNINSTALL_REGISTRY_ROOT,
    DetectionRule,
    FileDetection,
    MsiDetection,
    RegistryDetection,
    detection_from_dict,
)
from cm2intune.core.detection.selector import GUID_RE, select_detection

__all__ = [
    "DETECTION_KINDS",
    "DetectionRule",
    "FileDetection",
    "GUID_RE",
    "MsiDetection",
    "PROGRAM_FILES_TOKEN",
    "RegistryDetection",
    "UNINSTALL_REGISTRY_ROOT",
    "detection_from_dict",
    "select_detection",
]
