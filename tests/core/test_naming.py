"""Tests for publisher and product name normalisation."""

from __future__ import annotations

import pytest

from cm2intune.core.naming import (
    NamePair,
    derive_application_name,
    derive_publisher_name,
    sanitize,
    strip_loose_version,
    strip_version_suffix,
)


class TestSanitize:
    """Tests for path-unsafe character replacement."""

    def test_replaces_every_unsafe_character(self) -> None:
        """Each of the nine characters becomes an underscore."""
        assert sanitize('a\\b/c:d*e?f"g<h>i|j') == "a_b_c_d_e_f_g_h_i_j"

    def test_keeps_safe_text(self) -> None:
        """Letters, digits, spaces and dots are untouched."""
        assert sanitize("Contoso Widget 3.4") == "Contoso Widget 3.4"

    def test_empty(self) -> None:
        """Empty input stays empty."""
        assert sanitize("") == ""


class TestStripVersionSuffix:
    """Tests for trailing version removal."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Contoso Widget 3.4.1", "Contoso Widget"),
            ("Tool v2.1", "Tool"),
            ("Tool V3", "Tool"),
            ("Office Suite 2019", "Office Suite"),
            ("Editor (12)", "Editor"),
            ("Editor(1.5)", "Editor"),
            ("Reader Version 11", "Reader"),
            ("Reader ver. 9", "Reader"),
            ("Plain Name", "Plain Name"),
        ],
    )
    def test_patterns(self, raw: str, expected: str) -> None:
        """Each supported suffix shape is removed."""
        assert strip_version_suffix(raw) == expected

    def test_patterns_apply_in_order(self) -> None:
        """The dotted-version pattern runs before the word pattern."""
        assert strip_version_suffix("Reader Version 11.0") == "Reader Version"

    def test_single_number_kept(self) -> None:
        """A lone number without a dot is not a version suffix."""
        assert strip_version_suffix("Studio 8") == "Studio 8"

    def test_never_empty(self) -> None:
        """A name that is only a version falls back to the sanitised input."""
        assert strip_version_suffix(" 2019") == " 2019"
        assert strip_version_suffix("(1.0)") == "(1.0)"


class TestLooseVersion:
    """Tests for repeated trailing-token stripping."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("7-Zip 23.01 x64", "7-Zip 23.01 x64"),
            ("Notepad++ 8.6.2", "Notepad++"),
            ("Widget v2 (3)", "Widget"),
            ("Agent 5_1_0", "Agent"),
            ("Tool 1.2 3", "Tool"),
        ],
    )
    def test_strip(self, raw: str, expected: str) -> None:
        """Trailing version tokens are removed repeatedly."""
        assert strip_loose_version(raw) == expected

    def test_all_numbers_falls_back(self) -> None:
        """Nothing left means the input is returned."""
        assert strip_loose_version("2024") == "2024"


class TestDerivedNames:
    """Tests for application and publisher identifiers."""

    def test_application_from_product(self) -> None:
        """Product names lose their version and unsafe characters."""
        assert derive_application_name("Contoso: Widget 3.4.1") == "Contoso_ Widget"

    def test_application_fallback(self) -> None:
        """Blank product names use the fallback."""
        assert derive_application_name("  ", fallback="setup") == "setup"
        assert derive_application_name(None) == "Unknown"

    def test_publisher(self) -> None:
        """Publishers are only sanitised."""
        assert derive_publisher_name("Contoso/Fabrikam 2.0") == "Contoso_Fabrikam 2.0"
        assert derive_publisher_name("") == "Unknown"


class TestNamePair:
    """Tests for the combined identifiers."""

    def test_from_application_keeps_version(self) -> None:
        """Site application names are kept as declared, sanitised."""
        names = NamePair.from_application("Adobe", "Reader DC 2023")
        assert names == NamePair("Adobe", "Reader DC 2023")

    def test_from_application_unknown(self) -> None:
        """Missing names become Unknown."""
        assert NamePair.from_application(None, "") == NamePair("Unknown", "Unknown")

    def test_from_file_metadata(self) -> None:
        """File metadata names lose their version suffix."""
        names = NamePair.from_file_metadata("Contoso Ltd.", "Contoso Widget 3.4.1", "widget")
        assert names == NamePair("Contoso Ltd.", "Contoso Widget")

    def test_from_file_metadata_uses_stem(self) -> None:
        """The file stem stands in for a missing product name."""
        assert NamePair.from_file_metadata("", None, "setup_x64").application == "setup_x64"
