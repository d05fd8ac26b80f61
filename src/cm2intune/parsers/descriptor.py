"""Parser for Configuration Manager application descriptors (SDM package XML).

The descriptor is the ``SDMPackageXML`` digest the site returns for an
application. Its schema varies across console versions, so the parser
matches elements by local name only and never assumes a fixed nesting
beyond what is described below.

Per deployment type the parser extracts:

- **install_command**: the ``Arg`` named ``InstallCommandLine`` (the one
  under ``InstallAction`` when present).
- **uninstall_command**: an ``Arg`` named ``UninstallCommandLine``, or
  the ``InstallCommandLine`` argument of the ``UninstallAction``.
- **content_locations**: every ``Content/Location`` value, in order.
- **has_detection_method**: True iff an ``Arg`` named ``MethodBody``
  exists with non-empty text. The body is never interpreted.
- **technology**: the ``Technology`` attribute of the ``Installer``.

The icon is extracted once per descriptor (see ``parsers.icon``) and
attached to every deployment type.

Failures (empty input, malformed XML, no deployment types) are logged at
WARNING and produce an empty list. Nothing is raised.
"""

from __future__ import annotations

import logging
import re
from xml.etree.ElementTree import Element, ParseError, fromstring

from cm2intune.parsers.icon import (
    children_named,
    descendants_named,
    extract_icon,
    local_name,
)
from cm2intune.parsers.models import DeploymentTypeFacts

logger = logging.getLogger(__name__)

_XML_DECLARATION_RE = re.compile(r"^\s*<\?xml[^>]*\?>", re.IGNORECASE)

INSTALL_ARG = "InstallCommandLine"
UNINSTALL_ARG = "UninstallCommandLine"
METHOD_BODY_ARG = "MethodBody"


def parse_descriptor(descriptor_xml: str | None, app_name: str = "") -> list[DeploymentTypeFacts]:
    """Extract deployment-type facts from a descriptor XML string.

    Args:
        descriptor_xml: Raw SDM package XML. May be empty or None.
        app_name: Application name, used only in log messages.

    Returns:
        One ``DeploymentTypeFacts`` per deployment type, in document
        order. Empty when the input is empty, malformed, or declares no
        deployment types.
    """
    label = app_name or "<unnamed>"
    if descriptor_xml is None or not descriptor_xml.strip():
        logger.warning("Empty descriptor for application %s", label)
        return []

    root = _parse_xml(descriptor_xml, label)
    if root is None:
        return []

    deployment_types = [
        dt for dt in descendants_named(root, "DeploymentType") if len(dt) > 0
    ]
    if not deployment_types:
        logger.warning("No deployment types found for application %s", label)
        return []

    icon = extract_icon(root)
    facts = [_facts_from_deployment_type(dt, icon) for dt in deployment_types]
    logger.debug("Parsed %d deployment type(s) for %s", len(facts), label)
    return facts


def _parse_xml(text: str, label: str) -> Element | None:
    cleaned = _XML_DECLARATION_RE.sub("", text.lstrip("\ufeff"), count=1)
    try:
        return fromstring(cleaned)
    except ParseError as exc:
        logger.warning("Malformed descriptor XML for %s: %s", label, exc)
        return None


def _arg_values(scope: Element, arg_name: str) -> list[str]:
    """Return the stripped text of every ``Arg`` named ``arg_name``."""
    values: list[str] = []
    for arg in descendants_named(scope, "Arg"):
        if arg.get("Name") == arg_name:
            values.append((arg.text or "").strip())
    return values


def _first_arg(scope: Element, arg_name: str) -> str:
    for value in _arg_values(scope, arg_name):
        if value:
            return value
    return ""


def _install_command(installer: Element) -> str:
    for action in descendants_named(installer, "InstallAction"):
        value = _first_arg(action, INSTALL_ARG)
        if value:
            return value
    # Older digests keep the arguments directly under the installer.
    for arg in descendants_named(installer, "Arg"):
        if arg.get("Name") != INSTALL_ARG:
            continue
        if _inside_uninstall_action(installer, arg):
            continue
        value = (arg.text or "").strip()
        if value:
            return value
    return ""


def _inside_uninstall_action(installer: Element, target: Element) -> bool:
    for action in descendants_named(installer, "UninstallAction"):
        if any(node is target for node in action.iter()):
            return True
    return False


def _uninstall_command(installer: Element) -> str:
    value = _first_arg(installer, UNINSTALL_ARG)
    if value:
        return value
    for action in descendants_named(installer, "UninstallAction"):
        value = _first_arg(action, INSTALL_ARG)
        if value:
            return value
    return ""


def _content_locations(installer: Element) -> tuple[str, ...]:
    locations: list[str] = []
    for content in descendants_named(installer, "Content"):
        for location in children_named(content, "Location"):
            locations.append((location.text or "").strip())
    return tuple(locations)


def _detection_details(scope: Element) -> str:
    for action in descendants_named(scope, "DetectAction"):
        provider = ""
        for node in children_named(action, "Provider"):
            provider = (node.text or "").strip()
            break
        product_code = _first_arg(action, "ProductCode")
        if provider and product_code:
            return f"{provider} detection ({product_code})"
        if provider:
            return f"{provider} detection"
    return ""


def _title(deployment_type: Element) -> str:
    for title in children_named(deployment_type, "Title"):
        return (title.text or "").strip()
    return ""


def _facts_from_deployment_type(deployment_type: Element, icon: str | None) -> DeploymentTypeFacts:
    installers = list(descendants_named(deployment_type, "Installer"))
    installer = installers[0] if installers else deployment_type
    technology = installer.get("Technology") or deployment_type.get("Technology") or ""
    method_bodies = _arg_values(deployment_type, METHOD_BODY_ARG)

    return DeploymentTypeFacts(
        install_command=_install_command(installer),
        uninstall_command=_uninstall_command(installer),
        content_locations=_content_locations(installer),
        has_detection_method=any(method_bodies),
        detection_details=_detection_details(deployment_type),
        technology=technology,
        icon_payload=icon,
        name=_title(deployment_type) or local_name(deployment_type.tag),
    )
