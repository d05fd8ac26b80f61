"""Icon extraction from application descriptors.

Descriptors store the application icon in more than one shape depending
on the console version that authored them. Extraction is an ordered list
of strategies, each a plain function ``(root) -> str | None``, tried in
sequence until one yields a non-empty payload:

1. ``Resources/Icon`` directly under the digest root.
2. ``Application/DisplayInfo/.../Icon``.
3. Any element named ``Icon`` anywhere in the document.

Element names are compared without their XML namespace.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Callable, Iterator
from xml.etree.ElementTree import Element

logger = logging.getLogger(__name__)

IconStrategy = Callable[[Element], "str | None"]

# Magic-byte prefixes for the image formats the staging layout recognises.
_IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b"\x89PNG\r\n\x1a\n", "png"),
    (b"\xff\xd8\xff", "jpg"),
    (b"BM", "bmp"),
    (b"\x00\x00\x01\x00", "ico"),
)

DEFAULT_IMAGE_EXTENSION = "png"


def local_name(tag: str) -> str:
    """Strip a ``{namespace}`` prefix from an element tag."""
    return tag.rsplit("}", 1)[-1] if "}" in tag else tag


def children_named(element: Element, name: str) -> Iterator[Element]:
    """Yield direct children whose local name equals ``name``."""
    for child in element:
        if local_name(child.tag) == name:
            yield child


def descendants_named(element: Element, name: str) -> Iterator[Element]:
    """Yield all descendants (and the element itself) named ``name``."""
    for node in element.iter():
        if local_name(node.tag) == name:
            yield node


def _icon_text(icon: Element) -> str | None:
    text = "".join(icon.itertext()).strip()
    return text or None


def _from_resources(root: Element) -> str | None:
    for resources in children_named(root, "Resources"):
        for icon in children_named(resources, "Icon"):
            text = _icon_text(icon)
            if text:
                return text
    return None


def _from_display_info(root: Element) -> str | None:
    applications = list(children_named(root, "Application"))
    if local_name(root.tag) == "Application":
        applications.insert(0, root)
    for application in applications:
        for display_info in children_named(application, "DisplayInfo"):
            for icon in descendants_named(display_info, "Icon"):
                text = _icon_text(icon)
                if text:
                    return text
    return None


def _from_anywhere(root: Element) -> str | None:
    for icon in descendants_named(root, "Icon"):
        text = _icon_text(icon)
        if text:
            return text
    return None


ICON_STRATEGIES: tuple[IconStrategy, ...] = (
    _from_resources,
    _from_display_info,
    _from_anywhere,
)


def extract_icon(root: Element, strategies: tuple[IconStrategy, ...] = ICON_STRATEGIES) -> str | None:
    """Run the icon strategies in order and return the first payload found.

    Args:
        root: Root element of the parsed descriptor.
        strategies: Ordered extraction strategies.

    Returns:
        Whitespace-stripped icon text, or None when no strategy matched.
    """
    for strategy in strategies:
        payload = strategy(root)
        if payload:
            logger.debug("Icon found by %s", strategy.__name__)
            return payload
    return None


def decode_icon(payload: str) -> bytes | None:
    """Decode a base64 icon payload. Returns None for invalid data."""
    try:
        data = base64.b64decode("".join(payload.split()), validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Icon payload is not valid base64; skipping icon")
        return None
    return data or None


def image_extension(data: bytes) -> str:
    """Infer the image file extension from its leading magic bytes.

    Unknown signatures fall back to ``png``.
    """
    for signature, ext in _IMAGE_SIGNATURES:
        if data.startswith(signature):
            return ext
    return DEFAULT_IMAGE_EXTENSION
