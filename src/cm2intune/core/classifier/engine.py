"""Rules deciding whether an application can become an Intune Win32 app.

The classifier takes the first deployment type that has an install
command, a content location and a detection method, and ignores the
rest. A later deployment type that would classify differently never
changes the verdict.

Category priority for the qualifying deployment type:

1. technology ``MSI``                              -> Win32 (MSI)
2. install command mentions ``.msi`` or ``msiexec`` -> Win32 (MSI)
3. technology ``Script``                           -> Win32 (Script)
4. install command mentions ``.exe``               -> Win32 (EXE)
5. anything else                                   -> Win32
"""

from __future__ import annotations

import logging
import re
from typing import Sequence

from cm2intune.core.classifier.models import (
    CATEGORY_EXE,
    CATEGORY_MSI,
    CATEGORY_NOT_SUITABLE,
    CATEGORY_SCRIPT,
    CATEGORY_UNKNOWN,
    CATEGORY_WIN32,
    REASON_NO_CONTENT,
    REASON_NO_DATA,
    REASON_NO_DETECTION,
    REASON_NO_INSTALL,
    REASON_NO_SINGLE_MATCH,
    REASON_SEPARATOR,
    MigratabilityVerdict,
)
from cm2intune.parsers.models import DeploymentTypeFacts

logger = logging.getLogger(__name__)

_MSI_COMMAND_RE = re.compile(r"\.msi|msiexec", re.IGNORECASE)
_EXE_COMMAND_RE = re.compile(r"\.exe", re.IGNORECASE)


def qualifies(facts: DeploymentTypeFacts) -> bool:
    """Return True when a deployment type meets every migration requirement."""
    return facts.has_install_command and facts.has_content and facts.has_detection_method


def categorize(facts: DeploymentTypeFacts) -> str:
    """Pick the migration category for a qualifying deployment type."""
    if facts.technology == "MSI":
        return CATEGORY_MSI
    if _MSI_COMMAND_RE.search(facts.install_command):
        return CATEGORY_MSI
    if facts.technology == "Script":
        return CATEGORY_SCRIPT
    if _EXE_COMMAND_RE.search(facts.install_command):
        return CATEGORY_EXE
    return CATEGORY_WIN32


def missing_requirements(facts: Sequence[DeploymentTypeFacts]) -> list[str]:
    """List the requirements that no deployment type satisfies.

    Each requirement is tested independently across all deployment
    types. Uninstall commands are not a requirement and never appear.
    """
    reasons: list[str] = []
    if not any(f.has_install_command for f in facts):
        reasons.append(REASON_NO_INSTALL)
    if not any(f.has_content for f in facts):
        reasons.append(REASON_NO_CONTENT)
    if not any(f.has_detection_method for f in facts):
        reasons.append(REASON_NO_DETECTION)
    return reasons


def classify(facts: Sequence[DeploymentTypeFacts]) -> MigratabilityVerdict:
    """Classify an application's deployment types.

    Args:
        facts: Deployment types in descriptor order.

    Returns:
        A ``MigratabilityVerdict``. Empty input yields category
        ``Unknown``; no qualifying deployment type yields
        ``Not Suitable``.
    """
    examined = tuple(facts)
    if not examined:
        return MigratabilityVerdict(
            is_migratable=False,
            reason=REASON_NO_DATA,
            category=CATEGORY_UNKNOWN,
        )

    for index, candidate in enumerate(examined):
        if qualifies(candidate):
            category = categorize(candidate)
            logger.debug("Deployment type %d qualifies as %s", index, category)
            return MigratabilityVerdict(
                is_migratable=True,
                reason=f"Deployment type '{candidate.name or index}' meets all requirements",
                category=category,
                facts=examined,
                selected_index=index,
            )

    reasons = missing_requirements(examined) or [REASON_NO_SINGLE_MATCH]
    return MigratabilityVerdict(
        is_migratable=False,
        reason=REASON_SEPARATOR.join(reasons),
        category=CATEGORY_NOT_SUITABLE,
        facts=examined,
    )
