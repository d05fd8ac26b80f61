"""Tests for the Microsoft Graph publisher.

Uses ``httpx.MockTransport`` so no request leaves the process.
"""

from __future__ import annotations

import json
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

from cm2intune.collaborators.base import AuthSession
from cm2intune.collaborators.graph import (
    GRAPH_SCOPE,
    MOBILE_APPS_URL,
    GraphPublisher,
    detection_rule_body,
    win32_app_body,
)
from cm2intune.core.detection import FileDetection, MsiDetection, RegistryDetection
from cm2intune.exceptions import ExternalServiceError
from tests.helpers import PNG_BYTES, WIDGET_GUID


def _publisher(handler) -> GraphPublisher:
    return GraphPublisher(transport=httpx.MockTransport(handler))


class TestDetectionRuleBody:
    """Tests for detection rule mapping."""

    def test_msi(self) -> None:
        body = detection_rule_body(MsiDetection(WIDGET_GUID))
        assert body["@odata.type"] == "#microsoft.graph.win32LobAppProductCodeDetection"
        assert body["productCode"] == WIDGET_GUID

    def test_registry(self) -> None:
        body = detection_rule_body(RegistryDetection("HKLM\\X\\{A}"))
        assert body["@odata.type"] == "#microsoft.graph.win32LobAppRegistryDetection"
        assert body["keyPath"] == "HKLM\\X\\{A}"
        assert body["detectionType"] == "exists"

    def test_file(self) -> None:
        body = detection_rule_body(FileDetection("%ProgramFiles%\\Contoso", "Widget"))
        assert body["@odata.type"] == "#microsoft.graph.win32LobAppFileSystemDetection"
        assert body["path"] == "%ProgramFiles%\\Contoso"
        assert body["fileOrFolderName"] == "Widget"
        assert body["detectionType"] == "exists"


class TestWin32AppBody:
    """Tests for the app creation body."""

    def test_fields(self, make_manifest, tmp_path: Path) -> None:
        """Commands, requirements and detection are carried over."""
        manifest = make_manifest()
        body = win32_app_body(manifest, tmp_path / "setup.intunewin")
        assert body["@odata.type"] == "#microsoft.graph.win32LobApp"
        assert body["displayName"] == "Contoso - Widget - 3.4.1"
        assert body["publisher"] == "Contoso"
        assert body["setupFilePath"] == "setup.exe"
        assert body["fileName"] == "setup.intunewin"
        assert body["installCommandLine"] == '"setup.exe" /S'
        assert body["applicableArchitectures"] == "x64"
        assert body["minimumSupportedWindowsRelease"] == "W10_1903"
        assert len(body["detectionRules"]) == 1
        assert "largeIcon" not in body
        assert "msiInformation" not in body

    def test_msi_information(self, make_manifest, tmp_path: Path) -> None:
        """MSI detection adds the msiInformation block."""
        manifest = make_manifest(detection=MsiDetection(WIDGET_GUID))
        body = win32_app_body(manifest, tmp_path / "x.intunewin")
        assert body["msiInformation"]["productCode"] == WIDGET_GUID

    def test_icon(self, make_manifest, tmp_path: Path) -> None:
        """An icon file becomes a base64 largeIcon."""
        icon = tmp_path / "app_icon.png"
        icon.write_bytes(PNG_BYTES)
        body = win32_app_body(make_manifest(), tmp_path / "x.intunewin", icon)
        assert body["largeIcon"]["type"] == "image/png"
        assert body["largeIcon"]["value"]


class TestAuthenticate:
    """Tests for the client-credentials token request."""

    def test_success(self) -> None:
        """A token response gives an AuthSession."""
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"access_token": "abc", "token_type": "Bearer"})

        auth = _publisher(handler).authenticate("tenant-1", "client", "secret")
        assert auth == AuthSession(tenant_id="tenant-1", access_token="abc")
        assert requests[0].url.path == "/tenant-1/oauth2/v2.0/token"
        form = parse_qs(requests[0].content.decode())
        assert form["grant_type"] == ["client_credentials"]
        assert form["scope"] == [GRAPH_SCOPE]

    def test_http_error(self) -> None:
        """A 401 raises ExternalServiceError."""
        publisher = _publisher(lambda request: httpx.Response(401, json={"error": "invalid_client"}))
        with pytest.raises(ExternalServiceError, match="HTTP 401"):
            publisher.authenticate("t", "c", "s")

    def test_no_token(self) -> None:
        """A response without a token raises ExternalServiceError."""
        publisher = _publisher(lambda request: httpx.Response(200, json={}))
        with pytest.raises(ExternalServiceError, match="no access token"):
            publisher.authenticate("t", "c", "s")

    def test_connection_error(self) -> None:
        """Transport errors raise ExternalServiceError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(ExternalServiceError, match="Authentication failed"):
            _publisher(handler).authenticate("t", "c", "s")


class TestPublish:
    """Tests for app creation."""

    def test_success(self, make_manifest, tmp_path: Path) -> None:
        """The created app id is returned."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"id": "app-42"})

        session = AuthSession("t", "token-1")
        app_id = _publisher(handler).publish(session, make_manifest(), tmp_path / "x.intunewin")
        assert app_id == "app-42"
        assert str(seen[0].url) == MOBILE_APPS_URL
        assert seen[0].headers["Authorization"] == "Bearer token-1"
        assert json.loads(seen[0].content)["displayName"] == "Contoso - Widget - 3.4.1"

    def test_failure(self, make_manifest, tmp_path: Path) -> None:
        """A server error raises ExternalServiceError."""
        publisher = _publisher(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(ExternalServiceError, match="HTTP 500"):
            publisher.publish(AuthSession("t", "x"), make_manifest(), tmp_path / "x.intunewin")

    def test_missing_id(self, make_manifest, tmp_path: Path) -> None:
        """A response without an id raises ExternalServiceError."""
        publisher = _publisher(lambda request: httpx.Response(201, json={}))
        with pytest.raises(ExternalServiceError, match="no application id"):
            publisher.publish(AuthSession("t", "x"), make_manifest(), tmp_path / "x.intunewin")
