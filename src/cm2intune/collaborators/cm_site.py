"""Configuration Manager site query through the ConfigurationManager module.

Runs ``Get-CMApplication`` in a non-interactive PowerShell process on the
site's PSDrive and reads the result as JSON. PowerShell emits a single
object for one match and an array for several; both are accepted.
"""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any

from cm2intune.collaborators.base import LegacyApplication
from cm2intune.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

DEFAULT_POWERSHELL = "powershell.exe"
QUERY_TIMEOUT = 300

_SELECTED_PROPERTIES = (
    "LocalizedDisplayName",
    "Manufacturer",
    "SoftwareVersion",
    "NumberOfDeployments",
    "NumberOfDeploymentTypes",
    "SDMPackageXML",
)

_SCRIPT_TEMPLATE = """\
$ErrorActionPreference = 'Stop'
Import-Module (Join-Path (Split-Path $env:SMS_ADMIN_UI_PATH -Parent) 'ConfigurationManager.psd1')
if (-not (Get-PSDrive -Name '{site}' -PSProvider CMSite -ErrorAction SilentlyContinue)) {{
    New-PSDrive -Name '{site}' -PSProvider CMSite -Root '{server}' | Out-Null
}}
Set-Location '{site}:'
@(Get-CMApplication -Name '{pattern}' | Select-Object {properties}) | ConvertTo-Json -Depth 3 -Compress
"""


def _ps_quote(value: str) -> str:
    """Escape a value for a single-quoted PowerShell string."""
    return value.replace("'", "''")


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def application_from_json(data: dict[str, Any]) -> LegacyApplication:
    """Map one ``Get-CMApplication`` JSON object to a ``LegacyApplication``."""
    return LegacyApplication(
        name=str(data.get("LocalizedDisplayName") or ""),
        manufacturer=str(data.get("Manufacturer") or ""),
        version=str(data.get("SoftwareVersion") or ""),
        deployment_count=_as_int(data.get("NumberOfDeployments")),
        deployment_type_count=_as_int(data.get("NumberOfDeploymentTypes")),
        sdm_package_xml=str(data.get("SDMPackageXML") or ""),
    )


def parse_query_output(text: str) -> list[LegacyApplication]:
    """Parse the JSON printed by the query script.

    Raises:
        ExternalServiceError: If the output is not JSON.
    """
    if not text.strip():
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExternalServiceError(f"Site query returned invalid JSON: {exc}") from exc
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ExternalServiceError("Site query returned an unexpected JSON document")
    return [application_from_json(item) for item in data if isinstance(item, dict)]


class CmSiteQuery:
    """``SiteQuery`` backed by the ConfigurationManager PowerShell module."""

    def __init__(
        self,
        site_code: str,
        site_server: str,
        powershell: str = DEFAULT_POWERSHELL,
        timeout: int = QUERY_TIMEOUT,
    ) -> None:
        self.site_code = site_code
        self.site_server = site_server
        self.powershell = powershell
        self.timeout = timeout

    def build_script(self, pattern: str) -> str:
        return _SCRIPT_TEMPLATE.format(
            site=_ps_quote(self.site_code),
            server=_ps_quote(self.site_server),
            pattern=_ps_quote(pattern),
            properties=", ".join(_SELECTED_PROPERTIES),
        )

    def _run(self, script: str) -> str:
        command = [self.powershell, "-NoProfile", "-NonInteractive", "-Command", script]
        try:
            result = subprocess.run(
                command, capture_output=True, text=True, timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise ExternalServiceError(f"PowerShell not found: {self.powershell}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ExternalServiceError(
                f"Site query timed out after {self.timeout}s"
            ) from exc
        if result.returncode != 0:
            raise ExternalServiceError(
                f"Site query failed ({result.returncode}): {result.stderr.strip()}"
            )
        return result.stdout

    def find_applications(self, pattern: str) -> list[LegacyApplication]:
        logger.info("Querying site %s for applications matching %r", self.site_code, pattern)
        apps = parse_query_output(self._run(self.build_script(pattern)))
        logger.info("Site returned %d application(s)", len(apps))
        return apps

    def get_application(self, name: str) -> LegacyApplication | None:
        for app in self.find_applications(name):
            if app.name == name:
                return app
        return None
