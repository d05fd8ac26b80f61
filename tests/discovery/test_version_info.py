"""Tests for installer version extraction.

The Windows API paths are exercised only through monkeypatched helpers;
no test calls version.dll or msi.dll.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from cm2intune.discovery import version_info
from cm2intune.discovery.models import VersionInfo
from cm2intune.discovery.version_info import (
    extract_version,
    parse_property_table,
    read_msi_properties_with_helper,
    read_msi_version,
)
from tests.helpers import WIDGET_GUID

PROPERTY_EXPORT = (
    "Property\tValue\n"
    "s72\tl0\n"
    "Property\tProperty\n"
    "Manufacturer\tContoso Ltd.\n"
    "ProductCode\t" + WIDGET_GUID + "\n"
    "ProductLanguage\t1033\n"
    "ProductName\tContoso Widget 3.4.1\n"
    "ProductVersion\t3.4.1\n"
)


class TestParsePropertyTable:
    """Tests for IDT export parsing."""

    def test_wanted_properties(self) -> None:
        """Only the four interesting properties are kept."""
        assert parse_property_table(PROPERTY_EXPORT) == {
            "Manufacturer": "Contoso Ltd.",
            "ProductCode": WIDGET_GUID,
            "ProductName": "Contoso Widget 3.4.1",
            "ProductVersion": "3.4.1",
        }

    def test_header_lines_skipped(self) -> None:
        """Rows inside the three header lines are ignored."""
        assert parse_property_table("ProductName\tHeader\nx\ny\n") == {}


class TestMsiHelper:
    """Tests for the msiinfo helper path."""

    def test_helper_missing(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """A helper that is not on PATH yields no properties."""
        monkeypatch.setattr(version_info.shutil, "which", lambda name: None)
        assert read_msi_properties_with_helper(tmp_path / "a.msi", "msiinfo") == {}

    def test_helper_output_parsed(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """The helper's export is parsed."""
        calls: list[list[str]] = []

        def fake_run(command, **kwargs):
            calls.append(command)
            return subprocess.CompletedProcess(command, 0, stdout=PROPERTY_EXPORT, stderr="")

        monkeypatch.setattr(version_info.shutil, "which", lambda name: "/usr/bin/msiinfo")
        monkeypatch.setattr(version_info.subprocess, "run", fake_run)
        props = read_msi_properties_with_helper(tmp_path / "a.msi", "msiinfo")
        assert props["ProductCode"] == WIDGET_GUID
        assert calls[0] == ["/usr/bin/msiinfo", "export", str(tmp_path / "a.msi"), "Property"]

    def test_helper_failure(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """A failing helper yields no properties."""
        monkeypatch.setattr(version_info.shutil, "which", lambda name: "/usr/bin/msiinfo")
        monkeypatch.setattr(
            version_info.subprocess, "run",
            lambda command, **kw: subprocess.CompletedProcess(command, 1, stdout="", stderr="bad"),
        )
        assert read_msi_properties_with_helper(tmp_path / "a.msi", "msiinfo") == {}


class TestReadMsiVersion:
    """Tests for combining the helper and the database."""

    def test_helper_result(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Helper properties become a VersionInfo."""
        monkeypatch.setattr(
            version_info, "read_msi_properties_with_helper",
            lambda path, helper: parse_property_table(PROPERTY_EXPORT),
        )
        info = read_msi_version(tmp_path / "a.msi")
        assert info == VersionInfo(
            product_version="3.4.1",
            company_name="Contoso Ltd.",
            product_name="Contoso Widget 3.4.1",
            product_code=WIDGET_GUID,
        )

    def test_database_fallback(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Without a product code from the helper the database is read."""
        monkeypatch.setattr(
            version_info, "read_msi_properties_with_helper",
            lambda path, helper: {"ProductName": "Partial"},
        )
        monkeypatch.setattr(
            version_info, "read_msi_properties_from_database",
            lambda path: {"ProductName": "Widget", "ProductCode": WIDGET_GUID},
        )
        info = read_msi_version(tmp_path / "a.msi")
        assert info.product_name == "Widget"
        assert info.product_code == WIDGET_GUID

    def test_helper_kept_when_database_empty(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Partial helper data survives an unavailable database."""
        monkeypatch.setattr(
            version_info, "read_msi_properties_with_helper",
            lambda path, helper: {"ProductName": "Partial"},
        )
        monkeypatch.setattr(version_info, "read_msi_properties_from_database", lambda path: {})
        info = read_msi_version(tmp_path / "a.msi")
        assert info.product_name == "Partial"
        assert info.product_code is None

    def test_nothing_readable(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """No properties at all yields None."""
        monkeypatch.setattr(version_info, "read_msi_properties_with_helper", lambda path, helper: {})
        monkeypatch.setattr(version_info, "read_msi_properties_from_database", lambda path: {})
        assert read_msi_version(tmp_path / "a.msi") is None


class TestExtractVersion:
    """Tests for the dispatching entry point."""

    def test_unsupported_extension(self, tmp_path: Path) -> None:
        """Files other than EXE and MSI have no reader."""
        assert extract_version(tmp_path / "app.msix") is None

    def test_reader_errors_become_none(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """OS errors from a reader are logged, not raised."""

        def boom(path):
            raise OSError("locked")

        monkeypatch.setattr(version_info, "read_exe_version", boom)
        assert extract_version(tmp_path / "setup.exe") is None

    def test_exe_without_windows_api(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Without version.dll an EXE reports nothing."""
        monkeypatch.setattr(version_info, "_windll", lambda name: None)
        assert extract_version(tmp_path / "setup.exe") is None

    def test_dispatch_to_msi(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """MSI files go to the MSI reader with the configured helper."""
        seen: list[str | None] = []

        def fake(path, helper):
            seen.append(helper)
            return VersionInfo(product_name="X")

        monkeypatch.setattr(version_info, "read_msi_version", fake)
        assert extract_version(tmp_path / "a.MSI", "custom-helper").product_name == "X"
        assert seen == ["custom-helper"]
