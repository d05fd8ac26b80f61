"""Migratability classifier.

Public API::

    from cm2intune.core.classifier import classify, MigratabilityVerdict

    verdict = classify(facts)
    if verdict.is_migratable:
        print(verdict.category)
"""

from cm2intune.core.classifier.engine import (
    categorize,
    classify,
    missing_requirements,
    qualifies,
)
from cm2intune.core.classifier.models import (
    CATEGORY_EXE,
    CATEGORY_MSI,
    CATEGORY_NOT_SUITABLE,
    CATEGORY_SCRIPT,
    CATEGORY_UNKNOWN,
    CATEGORY_WIN32,
    MIGRATABLE_CATEGORIES,
    REASON_NO_CONTENT,
    REASON_NO_DATA,
    REASON_NO_DETECTION,
    REASON_NO_INSTALL,
    REASON_NO_SINGLE_MATCH,
    REASON_SEPARATOR,
    MigratabilityVerdict,
)

__all__ = [
    "CATEGORY_EXE",
    "CATEGORY_MSI",
    "CATEGORY_NOT_SUITABLE",
    "CATEGORY_SCRIPT",
    "CATEGORY_UNKNOWN",
    "CATEGORY_WIN32",
    "MIGRATABLE_CATEGORIES",
    "MigratabilityVerdict",
    "REASON_NO_CONTENT",
    "REASON_NO_DATA",
    "REASON_NO_DETECTION",
    "REASON_NO_INSTALL",
    "REASON_NO_SINGLE_MATCH",
    "REASON_SEPARATOR",
    "categorize",
    "classify",
    "missing_requirements",
    "qualifies",
]
