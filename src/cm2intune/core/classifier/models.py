"""Data models for the migratability classifier.

Kept apart from the engine so the CLI renderers and the manifest builder
can import the verdict type and category constants without the rules.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from cm2intune.parsers.models import DeploymentTypeFacts

# ---------------------------------------------------------------------------
# Migration categories
# ---------------------------------------------------------------------------

CATEGORY_WIN32 = "Win32"
CATEGORY_MSI = "Win32 (MSI)"
CATEGORY_SCRIPT = "Win32 (Script)"
CATEGORY_EXE = "Win32 (EXE)"
CATEGORY_NOT_SUITABLE = "Not Suitable"
CATEGORY_UNKNOWN = "Unknown"

MIGRATABLE_CATEGORIES: frozenset[str] = frozenset({
    CATEGORY_WIN32,
    CATEGORY_MSI,
    CATEGORY_SCRIPT,
    CATEGORY_EXE,
})

# ---------------------------------------------------------------------------
# Reason fragments
# ---------------------------------------------------------------------------

REASON_NO_DATA = "No deployment type data"
REASON_NO_INSTALL = "No install command"
REASON_NO_CONTENT = "No content location"
REASON_NO_DETECTION = "No detection method"
REASON_NO_SINGLE_MATCH = "No single deployment type has install command, content location and detection method"
REASON_SEPARATOR = "; "


@dataclass(frozen=True)
class MigratabilityVerdict:
    """Outcome of classifying one application's deployment types.

    Attributes:
        is_migratable: True when some deployment type qualifies.
        reason: Human-readable explanation. When not migratable, the
            missing requirements joined with ``"; "``.
        category: One of the ``CATEGORY_*`` constants. Meaningful only
            when migratable, except ``Not Suitable`` / ``Unknown``.
        facts: Every deployment type examined, in descriptor order.
        selected_index: Index into ``facts`` of the qualifying deployment
            type, or None.
    """

    is_migratable: bool
    reason: str
    category: str
    facts: tuple[DeploymentTypeFacts, ...] = field(default_factory=tuple)
    selected_index: int | None = None

    @property
    def selected(self) -> DeploymentTypeFacts | None:
        """Return the qualifying deployment type, if any."""
        if self.selected_index is None:
            return None
        return self.facts[self.selected_index]
