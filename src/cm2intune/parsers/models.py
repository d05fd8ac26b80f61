"""Data model produced by the descriptor parser.

``DeploymentTypeFacts`` is the intermediate representation every decision
component (classifier, status evaluator, locator, manifest builder) works
from. It carries only the facts those components consult, never the raw
descriptor XML.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DeploymentTypeFacts:
    """Facts extracted from one deployment type of an application descriptor.

    Attributes:
        install_command: Install command line. Empty when not declared.
        uninstall_command: Uninstall command line. Empty when not declared.
        content_locations: Content source paths in descriptor order.
        has_detection_method: True when a non-empty detection method body
            was declared. The body itself is never interpreted.
        detection_details: Free-text description of the detection method.
        technology: Installer technology as declared ("MSI", "Script",
            "MSIX", ...). Compared case-sensitively against known literals.
        icon_payload: Base64 icon data shared by every deployment type of
            the same descriptor, or None.
        name: Deployment type title, used for diagnostics only.
    """

    install_command: str = ""
    uninstall_command: str = ""
    content_locations: tuple[str, ...] = ()
    has_detection_method: bool = False
    detection_details: str = ""
    technology: str = ""
    icon_payload: str | None = None
    name: str = ""

    @property
    def has_install_command(self) -> bool:
        return bool(self.install_command.strip())

    @property
    def has_uninstall_command(self) -> bool:
        return bool(self.uninstall_command.strip())

    @property
    def has_content(self) -> bool:
        return any(loc.strip() for loc in self.content_locations)

    @property
    def primary_location(self) -> str | None:
        """Return the first non-empty content location, or None."""
        for loc in self.content_locations:
            if loc.strip():
                return loc.strip()
        return None

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "technology": self.technology,
            "install_command": self.install_command,
            "uninstall_command": self.uninstall_command,
            "content_locations": list(self.content_locations),
            "has_detection_method": self.has_detection_method,
            "detection_details": self.detection_details,
            "has_icon": self.icon_payload is not None,
        }
