"""Readiness badge for application lists.

A cheaper companion to the classifier, meant for rendering many
applications at once: only the first deployment type is examined and no
category is computed.

- technology containing ``MSIX`` (any case)  -> NOT_READY
- install command, content and detection all present -> READY
- some but not all present                          -> CHECK
- none present (or no deployment types)             -> NOT_READY
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from cm2intune.parsers.models import DeploymentTypeFacts


class ReadinessStatus(Enum):
    """Three-valued readiness shown next to each application."""

    READY = "Ready"
    CHECK = "Check"
    NOT_READY = "Not Ready"


def evaluate_status(facts: Sequence[DeploymentTypeFacts]) -> ReadinessStatus:
    """Compute the readiness badge from the first deployment type."""
    if not facts:
        return ReadinessStatus.NOT_READY

    first = facts[0]
    if "msix" in first.technology.lower():
        return ReadinessStatus.NOT_READY

    present = sum((
        first.has_install_command,
        first.has_content,
        first.has_detection_method,
    ))
    if present == 3:
        return ReadinessStatus.READY
    if present > 0:
        return ReadinessStatus.CHECK
    return ReadinessStatus.NOT_READY
