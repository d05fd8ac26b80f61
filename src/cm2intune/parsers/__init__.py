"""Descriptor parsing: SDM package XML to per-deployment-type facts.

Public API::

    from cm2intune.parsers import parse_descriptor, DeploymentTypeFacts

    facts = parse_descriptor(app.sdm_package_xml, app.name)
"""

from __future__ import annotations

from cm2intune.parsers.descriptor import parse_descriptor
from cm2intune.parsers.icon import decode_icon, extract_icon, image_extension
from cm2intune.parsers.models import DeploymentTypeFacts

__all__ = [
    "DeploymentTypeFacts",
    "decode_icon",
    "extract_icon",
    "image_extension",
    "parse_descriptor",
]
