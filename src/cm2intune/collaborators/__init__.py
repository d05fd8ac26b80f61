"""External collaborators: site query, operator, packaging, publishing.

Protocols live in ``base``; the concrete adapters are imported from
their own modules so that importing the protocols never pulls in
``httpx``.
"""

from __future__ import annotations

from cm2intune.collaborators.base import (
    AuthSession,
    LegacyApplication,
    OperatorPrompt,
    Packager,
    Publisher,
    SiteQuery,
)

__all__ = [
    "AuthSession",
    "LegacyApplication",
    "OperatorPrompt",
    "Packager",
    "Publisher",
    "SiteQuery",
]
