"""Operator review of a built manifest.

The operator may edit every field. The detection rule may be switched
between the MSI and File variants; a Registry rule is accepted only when
it is exactly the rule the selector chose. The display name is always
recomposed from the edited publisher, application and version, and the
``updated_*`` stamps are refreshed.
"""

from __future__ import annotations

import dataclasses
from datetime import date

from cm2intune.core.detection.models import RegistryDetection
from cm2intune.core.manifest.builder import current_actor
from cm2intune.core.manifest.models import PackageManifest, compose_display_name

REVIEWABLE_DETECTION_KINDS: tuple[str, ...] = ("msi", "file")


class ReviewRejected(ValueError):
    """Raised when an edited manifest violates the review rules."""


def apply_review(
    original: PackageManifest,
    edited: PackageManifest,
    *,
    today: date | None = None,
    actor: str | None = None,
) -> PackageManifest:
    """Validate an operator-edited manifest and return its final form.

    Raises:
        ReviewRejected: If a field required for packaging is blank or the
            detection rule was changed to a Registry rule.
    """
    if isinstance(edited.detection, RegistryDetection) and edited.detection != original.detection:
        raise ReviewRejected(
            "Registry detection cannot be edited; choose an MSI or File rule"
        )
    for label, value in (
        ("publisher", edited.publisher),
        ("application_name", edited.application_name),
        ("version", edited.version),
        ("install_command", edited.install_command),
    ):
        if not value.strip():
            raise ReviewRejected(f"{label} must not be empty")

    stamp = (today or date.today()).isoformat()
    metadata = dataclasses.replace(
        edited.metadata,
        updated_date=stamp,
        updated_by=actor or current_actor(),
    )
    return dataclasses.replace(
        edited,
        display_name=compose_display_name(
            edited.publisher, edited.application_name, edited.version
        ),
        metadata=metadata,
    )
