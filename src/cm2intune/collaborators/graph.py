"""Microsoft Graph publisher for Win32 line-of-business apps.

Authenticates with the client-credentials flow and creates the
``win32LobApp`` record carrying the manifest's commands, detection rule
and requirement rule. Uploading the encrypted container content to the
app's content version is handled by the packaging service and is not
part of this client.

All HTTP failures are converted to ``ExternalServiceError``.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Any

import httpx

from cm2intune.collaborators.base import AuthSession
from cm2intune.core.detection.models import (
    DetectionRule,
    FileDetection,
    MsiDetection,
    RegistryDetection,
)
from cm2intune.core.manifest import PackageManifest
from cm2intune.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT: float = 60.0
USER_AGENT: str = "cm2intune/0.1"
LOGIN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/v2.0/token"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"
MOBILE_APPS_URL = "https://graph.microsoft.com/beta/deviceAppManagement/mobileApps"

_ARCHITECTURES = {"x64": "x64", "x86": "x86", "both": "x86,x64", "x86,x64": "x86,x64"}


def detection_rule_body(rule: DetectionRule) -> dict[str, Any]:
    """Map a detection rule to its Graph ``win32LobApp*Detection`` body."""
    if isinstance(rule, MsiDetection):
        return {
            "@odata.type": "#microsoft.graph.win32LobAppProductCodeDetection",
            "productCode": rule.product_code,
            "productVersionOperator": "notConfigured",
            "productVersion": None,
        }
    if isinstance(rule, RegistryDetection):
        return {
            "@odata.type": "#microsoft.graph.win32LobAppRegistryDetection",
            "check32BitOn64System": False,
            "keyPath": rule.key_path,
            "valueName": rule.value_name,
            "detectionType": "exists",
            "operator": "notConfigured",
            "detectionValue": None,
        }
    if isinstance(rule, FileDetection):
        return {
            "@odata.type": "#microsoft.graph.win32LobAppFileSystemDetection",
            "check32BitOn64System": False,
            "path": rule.directory_path,
            "fileOrFolderName": rule.file_or_folder_name,
            "detectionType": "exists",
            "operator": "notConfigured",
            "detectionValue": None,
        }
    raise TypeError(f"Unsupported detection rule: {rule!r}")


def _icon_body(icon: Path) -> dict[str, Any]:
    mime = mimetypes.guess_type(icon.name)[0] or "image/png"
    return {
        "@odata.type": "#microsoft.graph.mimeContent",
        "type": mime,
        "value": base64.b64encode(icon.read_bytes()).decode("ascii"),
    }


def win32_app_body(
    manifest: PackageManifest,
    artifact: Path,
    icon: Path | None = None,
) -> dict[str, Any]:
    """Build the ``win32LobApp`` creation body for a manifest."""
    body: dict[str, Any] = {
        "@odata.type": "#microsoft.graph.win32LobApp",
        "displayName": manifest.display_name,
        "description": manifest.metadata.description,
        "publisher": manifest.publisher,
        "displayVersion": manifest.version,
        "fileName": artifact.name,
        "setupFilePath": manifest.setup_file,
        "installCommandLine": manifest.install_command,
        "uninstallCommandLine": manifest.uninstall_command,
        "applicableArchitectures": _ARCHITECTURES.get(
            manifest.requirements.architecture.lower(), manifest.requirements.architecture
        ),
        "minimumSupportedWindowsRelease": manifest.requirements.minimum_os,
        "installExperience": {
            "runAsAccount": "system",
            "deviceRestartBehavior": "suppress",
        },
        "detectionRules": [detection_rule_body(manifest.detection)],
        "notes": f"Migrated by cm2intune from {manifest.metadata.origin.source}",
    }
    if isinstance(manifest.detection, MsiDetection):
        body["msiInformation"] = {
            "productCode": manifest.detection.product_code,
            "productVersion": manifest.version,
            "publisher": manifest.publisher,
            "productName": manifest.application_name,
            "packageType": "perMachine",
            "requiresReboot": False,
        }
    if icon is not None and icon.is_file():
        body["largeIcon"] = _icon_body(icon)
    return body


class GraphPublisher:
    """``Publisher`` talking to Microsoft Graph with ``httpx``."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self.timeout,
            headers={"User-Agent": USER_AGENT},
            transport=self.transport,
        )

    def authenticate(self, tenant_id: str, client_id: str, client_secret: str) -> AuthSession:
        url = LOGIN_URL.format(tenant=tenant_id)
        form = {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
            "scope": GRAPH_SCOPE,
        }
        try:
            with self._client() as client:
                resp = client.post(url, data=form)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.TimeoutException as exc:
            raise ExternalServiceError("Authentication timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                f"Authentication failed: HTTP {exc.response.status_code}"
            ) from exc
        except (httpx.RequestError, ValueError) as exc:
            raise ExternalServiceError(f"Authentication failed: {exc}") from exc

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise ExternalServiceError("Authentication response contained no access token")
        logger.info("Authenticated against tenant %s", tenant_id)
        return AuthSession(tenant_id=tenant_id, access_token=token)

    def publish(
        self,
        session: AuthSession,
        manifest: PackageManifest,
        artifact: Path,
        icon: Path | None = None,
    ) -> str:
        body = win32_app_body(manifest, artifact, icon)
        headers = {"Authorization": f"Bearer {session.access_token}"}
        try:
            with self._client() as client:
                resp = client.post(MOBILE_APPS_URL, json=body, headers=headers)
                resp.raise_for_status()
                payload = resp.json()
        except httpx.TimeoutException as exc:
            raise ExternalServiceError("Publishing timed out") from exc
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                f"Publishing failed: HTTP {exc.response.status_code} {exc.response.text[:200]}"
            ) from exc
        except (httpx.RequestError, ValueError) as exc:
            raise ExternalServiceError(f"Publishing failed: {exc}") from exc

        app_id = payload.get("id") if isinstance(payload, dict) else None
        if not app_id:
            raise ExternalServiceError("Publishing response contained no application id")
        logger.info("Published %s as %s", manifest.display_name, app_id)
        return str(app_id)
