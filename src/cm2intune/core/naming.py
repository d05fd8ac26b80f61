"""Publisher and product name normalisation.

Two building blocks, composed when a new application identifier is
derived from installer metadata:

- ``sanitize`` makes a string safe as a path segment and display name by
  replacing each of ``\\ / : * ? " < > |`` with an underscore.
- ``strip_version_suffix`` removes a trailing version from a product
  name. It never returns an empty string for non-empty input.

Publisher identifiers only go through ``sanitize``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_UNSAFE_CHARS_RE = re.compile(r'[\\/:*?"<>|]')

# Applied in order, each once, each anchored at end of string.
_VERSION_SUFFIX_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\s+\d+(?:\.\d+)+$"),                              # 1.2.3
    re.compile(r"\s+v\d+(?:\.\d+)*$", re.IGNORECASE),              # v1.2
    re.compile(r"\s+\d{4}$"),                                      # 2019
    re.compile(r"\s*\(\d+(?:\.\d+)*\)$"),                          # (1.2)
    re.compile(r"\s+(?:version|ver\.)\s*\d+(?:\.\d+)*$", re.IGNORECASE),  # Version 2
)

# Looser trailing-token pattern used for detection folder hints.
_LOOSE_VERSION_TOKEN_RE = re.compile(
    r"(?:\s+|^)(?:v?\d+(?:[._-]\d+)*[a-z]?|\(\d+\))$", re.IGNORECASE
)

UNKNOWN_NAME = "Unknown"


def sanitize(raw: str) -> str:
    """Replace characters that are invalid in Windows paths with ``_``."""
    return _UNSAFE_CHARS_RE.sub("_", raw)


def strip_version_suffix(product_name: str) -> str:
    """Remove a trailing version from a product name.

    Examples::

        strip_version_suffix("Contoso Widget 3.4.1")   -> "Contoso Widget"
        strip_version_suffix("Tool v2.1")              -> "Tool"
        strip_version_suffix("Suite 2019")             -> "Suite"
        strip_version_suffix("Editor (12)")            -> "Editor"
        strip_version_suffix("Reader Version 11")      -> "Reader"

    If nothing remains after stripping, the sanitised original is
    returned instead.
    """
    cleaned = product_name
    for pattern in _VERSION_SUFFIX_PATTERNS:
        cleaned = pattern.sub("", cleaned)
    cleaned = cleaned.strip()
    if not cleaned:
        return sanitize(product_name)
    return cleaned


def strip_loose_version(display_name: str) -> str:
    """Repeatedly strip trailing version-like tokens from a display name.

    Removes number sequences (``12``, ``1.2.3``, ``4_5``), ``v``-prefixed
    versions and parenthesised counts. Falls back to the sanitised input
    when everything would be removed.
    """
    cleaned = display_name.strip()
    while True:
        stripped = _LOOSE_VERSION_TOKEN_RE.sub("", cleaned).rstrip(" -_")
        if stripped == cleaned:
            break
        cleaned = stripped
    if not cleaned:
        return sanitize(display_name.strip()) or sanitize(display_name)
    return cleaned


def derive_application_name(product_name: str | None, fallback: str = UNKNOWN_NAME) -> str:
    """Build an application identifier from discovered product metadata."""
    if not product_name or not product_name.strip():
        return sanitize(fallback)
    return sanitize(strip_version_suffix(product_name.strip()))


def derive_publisher_name(publisher: str | None) -> str:
    """Build a publisher identifier; ``Unknown`` when none is known."""
    if not publisher or not publisher.strip():
        return UNKNOWN_NAME
    return sanitize(publisher.strip())


@dataclass(frozen=True)
class NamePair:
    """Sanitised publisher and application identifiers."""

    publisher: str
    application: str

    @classmethod
    def from_application(cls, manufacturer: str | None, name: str | None) -> NamePair:
        """Names for an application coming from the site, kept as declared."""
        application = sanitize(name.strip()) if name and name.strip() else UNKNOWN_NAME
        return cls(derive_publisher_name(manufacturer), application)

    @classmethod
    def from_file_metadata(
        cls,
        company_name: str | None,
        product_name: str | None,
        file_stem: str,
    ) -> NamePair:
        """Names for a freshly discovered installer.

        The product name loses its version suffix; the file stem stands
        in when no product name is known.
        """
        return cls(
            derive_publisher_name(company_name),
            derive_application_name(product_name, fallback=file_stem or UNKNOWN_NAME),
        )
