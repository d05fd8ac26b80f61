"""cm2intune: Migrate Configuration Manager applications to Intune Win32 apps."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
