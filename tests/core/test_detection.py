"""Tests for detection rule selection and (de)serialization.

Verifies:
    - MSI product code beats a GUID in the uninstall command.
    - A braced GUID in the uninstall command selects Registry detection.
    - File detection is always produced when no other signal exists,
      with the documented name and folder hints.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from cm2intune.core.detection import (
    UNINSTALL_REGISTRY_ROOT,
    FileDetection,
    MsiDetection,
    RegistryDetection,
    detection_from_dict,
    select_detection,
)
from cm2intune.discovery.models import VersionInfo
from tests.helpers import ADOBE_GUID, WIDGET_GUID, source_info, write_installer


@pytest.fixture
def exe_source(tmp_path: Path):
    return source_info(write_installer(tmp_path, "AcroRdr_Setup.exe"))


class TestPriority:
    """Tests for the first-match-wins order."""

    def test_msi_with_product_code(self, tmp_path: Path, widget_msi_info: VersionInfo) -> None:
        """An MSI with a product code gets MSI detection."""
        source = source_info(write_installer(tmp_path, "widget.msi"), widget_msi_info)
        assert select_detection(source) == MsiDetection(WIDGET_GUID)

    def test_msi_beats_registry(self, tmp_path: Path, widget_msi_info: VersionInfo) -> None:
        """A product code wins over a GUID in the uninstall command."""
        source = source_info(write_installer(tmp_path, "widget.msi"), widget_msi_info)
        rule = select_detection(source, f"msiexec /x {ADOBE_GUID} /qn")
        assert isinstance(rule, MsiDetection)

    def test_registry_from_uninstall_guid(self, exe_source) -> None:
        """A braced GUID in the uninstall command selects the uninstall key."""
        rule = select_detection(exe_source, f"MsiExec.exe /X{ADOBE_GUID} /qn")
        assert rule == RegistryDetection(
            key_path=f"{UNINSTALL_REGISTRY_ROOT}\\{ADOBE_GUID}",
            value_name="DisplayName",
        )
        assert ADOBE_GUID in rule.key_path

    def test_product_code_ignored_for_exe(self, tmp_path: Path) -> None:
        """Only MSI files use product-code detection."""
        info = VersionInfo(product_code=WIDGET_GUID)
        source = source_info(write_installer(tmp_path, "setup.exe"), info)
        assert isinstance(select_detection(source), FileDetection)

    def test_unbraced_guid_is_not_used(self, exe_source) -> None:
        """A GUID without braces does not select Registry detection."""
        rule = select_detection(exe_source, "uninstall.exe AC76BA86-7AD7-1033-7B44-AC0F074E4100")
        assert isinstance(rule, FileDetection)


class TestFileDetection:
    """Tests for the file-existence fallback."""

    def test_name_from_quoted_install_command(self, exe_source) -> None:
        """The first quoted path in the install command names the file."""
        rule = select_detection(
            exe_source,
            publisher_hint="Adobe",
            install_command_hint='"C:\\Program Files\\Adobe\\Reader.exe" /sAll',
        )
        assert rule == FileDetection("%ProgramFiles%\\Adobe", "Reader")

    def test_name_from_product_name(self, tmp_path: Path) -> None:
        """The product name without its version names the file."""
        info = VersionInfo(product_name="Contoso Widget 3.4.1", company_name="Contoso")
        source = source_info(write_installer(tmp_path, "setup.exe"), info)
        rule = select_detection(source)
        assert rule == FileDetection("%ProgramFiles%\\Contoso", "Contoso Widget")

    def test_name_from_display_name(self, exe_source) -> None:
        """The display name loses loose version tokens."""
        rule = select_detection(exe_source, display_name="Reader DC 2023.1")
        assert rule.file_or_folder_name == "Reader DC"

    def test_name_from_file_stem(self, exe_source) -> None:
        """Without other hints the installer stem is used."""
        assert select_detection(exe_source).file_or_folder_name == "AcroRdr_Setup"

    def test_nothing_known(self) -> None:
        """Even with no source at all a File rule comes back."""
        rule = select_detection(None)
        assert rule == FileDetection("%ProgramFiles%", "Application")

    def test_publisher_is_sanitised(self, exe_source) -> None:
        """Unsafe characters in the publisher folder are replaced."""
        rule = select_detection(exe_source, publisher_hint="Contoso/Fabrikam")
        assert rule.directory_path == "%ProgramFiles%\\Contoso_Fabrikam"

    def test_msi_without_product_code(self, tmp_path: Path) -> None:
        """An MSI with no product code falls through to File detection."""
        source = source_info(write_installer(tmp_path, "widget.msi"))
        assert isinstance(select_detection(source, "msiexec /x widget.msi"), FileDetection)

    def test_deterministic(self, exe_source) -> None:
        """Identical inputs give identical rules."""
        assert select_detection(exe_source, "", "Adobe") == select_detection(exe_source, "", "Adobe")


class TestDetectionSerialization:
    """Tests for ``to_dict`` / ``detection_from_dict``."""

    @pytest.mark.parametrize(
        "rule",
        [
            MsiDetection(WIDGET_GUID),
            RegistryDetection(f"{UNINSTALL_REGISTRY_ROOT}\\{ADOBE_GUID}"),
            FileDetection("%ProgramFiles%\\Contoso", "Widget"),
        ],
    )
    def test_round_trip(self, rule) -> None:
        """Every variant survives to_dict / from_dict."""
        assert detection_from_dict(rule.to_dict()) == rule

    def test_type_discriminator(self) -> None:
        """The dict form carries the variant kind."""
        assert FileDetection("a", "b").to_dict()["type"] == "file"

    def test_unknown_type(self) -> None:
        """Unknown kinds raise ValueError."""
        with pytest.raises(ValueError, match="Unknown detection rule type"):
            detection_from_dict({"type": "script"})

    def test_missing_field(self) -> None:
        """A known kind with a missing field raises ValueError."""
        with pytest.raises(ValueError, match="product_code"):
            detection_from_dict({"type": "msi"})
