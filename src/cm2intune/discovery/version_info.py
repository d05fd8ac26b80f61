"""Read version metadata from installer files.

- ``.exe``: the file's version resource, through ``version.dll``.
- ``.msi``: the ``msiinfo`` helper (msitools) when it is on ``PATH`` and
  yields a product code; otherwise the Property table is queried
  directly through ``msi.dll``.

Both Windows APIs are reached with ``ctypes``; on other platforms those
paths simply report nothing. Every failure is logged and turned into a
None result so the caller can carry on without metadata.
"""

from __future__ import annotations

import ctypes
import logging
import shutil
import struct
import subprocess
from pathlib import Path

from cm2intune.discovery.models import VersionInfo

logger = logging.getLogger(__name__)

MSI_PROPERTIES: tuple[str, ...] = ("ProductVersion", "ProductName", "Manufacturer", "ProductCode")

_EXE_STRING_FIELDS: tuple[str, ...] = (
    "FileVersion",
    "ProductVersion",
    "CompanyName",
    "ProductName",
    "FileDescription",
)

_DEFAULT_TRANSLATION = (0x0409, 0x04B0)
_HELPER_TIMEOUT = 60
_ERROR_SUCCESS = 0
_ERROR_MORE_DATA = 234


def extract_version(path: Path, msi_helper: str | None = "msiinfo") -> VersionInfo | None:
    """Extract version metadata from an installer file.

    Args:
        path: Installer path.
        msi_helper: Name or path of the MSI metadata helper tool. None
            disables the helper and goes straight to the database.

    Returns:
        A ``VersionInfo``, or None when nothing could be read.
    """
    ext = path.suffix.lower()
    try:
        if ext == ".exe":
            return read_exe_version(path)
        if ext == ".msi":
            return read_msi_version(path, msi_helper)
    except (OSError, ValueError, subprocess.SubprocessError) as exc:
        logger.warning("Could not read version info from %s: %s", path, exc)
        return None
    logger.debug("No version reader for %s", path.name)
    return None


def _windll(name: str):
    windll = getattr(ctypes, "windll", None)
    if windll is None:
        return None
    return getattr(windll, name)


# -- EXE version resource ---------------------------------------------------


def read_exe_version(path: Path) -> VersionInfo | None:
    """Read the string table of an executable's version resource."""
    version_dll = _windll("version")
    if version_dll is None:
        logger.debug("version.dll unavailable; skipping %s", path.name)
        return None

    size = version_dll.GetFileVersionInfoSizeW(str(path), None)
    if not size:
        logger.info("No version resource in %s", path.name)
        return None
    buffer = ctypes.create_string_buffer(size)
    if not version_dll.GetFileVersionInfoW(str(path), 0, size, buffer):
        return None

    value = ctypes.c_void_p()
    length = ctypes.c_uint()

    lang, codepage = _DEFAULT_TRANSLATION
    if version_dll.VerQueryValueW(
        buffer, "\\VarFileInfo\\Translation", ctypes.byref(value), ctypes.byref(length)
    ) and length.value >= 4:
        lang, codepage = struct.unpack("<HH", ctypes.string_at(value.value, 4))

    strings: dict[str, str] = {}
    for name in _EXE_STRING_FIELDS:
        sub_block = f"\\StringFileInfo\\{lang:04x}{codepage:04x}\\{name}"
        if version_dll.VerQueryValueW(
            buffer, sub_block, ctypes.byref(value), ctypes.byref(length)
        ) and length.value:
            strings[name] = ctypes.wstring_at(value.value, length.value).rstrip("\x00").strip()

    if not any(strings.values()):
        return None
    return VersionInfo(
        file_version=strings.get("FileVersion", ""),
        product_version=strings.get("ProductVersion", ""),
        company_name=strings.get("CompanyName", ""),
        product_name=strings.get("ProductName", ""),
        file_description=strings.get("FileDescription", ""),
    )


# -- MSI property table -----------------------------------------------------


def read_msi_version(path: Path, msi_helper: str | None = "msiinfo") -> VersionInfo | None:
    """Read ProductVersion, ProductName, Manufacturer and ProductCode."""
    properties: dict[str, str] = {}
    if msi_helper:
        properties = read_msi_properties_with_helper(path, msi_helper)
    if not properties.get("ProductCode"):
        logger.debug("Helper gave no product code for %s; opening database", path.name)
        properties = read_msi_properties_from_database(path) or properties
    if not properties:
        logger.warning("No MSI properties could be read from %s", path)
        return None
    return _msi_version_info(properties)


def _msi_version_info(properties: dict[str, str]) -> VersionInfo:
    return VersionInfo(
        product_version=properties.get("ProductVersion", ""),
        company_name=properties.get("Manufacturer", ""),
        product_name=properties.get("ProductName", ""),
        product_code=properties.get("ProductCode") or None,
    )


def read_msi_properties_with_helper(path: Path, helper: str) -> dict[str, str]:
    """Export the Property table with ``msiinfo export <file> Property``."""
    executable = shutil.which(helper)
    if executable is None:
        logger.debug("MSI helper %s not found on PATH", helper)
        return {}
    result = subprocess.run(
        [executable, "export", str(path), "Property"],
        capture_output=True,
        text=True,
        timeout=_HELPER_TIMEOUT,
    )
    if result.returncode != 0:
        logger.warning("%s failed for %s: %s", helper, path.name, result.stderr.strip())
        return {}
    return parse_property_table(result.stdout)


def parse_property_table(text: str) -> dict[str, str]:
    """Parse an IDT export of the Property table into the wanted keys.

    The first three lines of an IDT file are column names, column types
    and the table name; data rows follow as ``Property<TAB>Value``.
    """
    lines = text.splitlines()
    properties: dict[str, str] = {}
    for line in lines[3:]:
        if "\t" not in line:
            continue
        key, value = line.split("\t", 1)
        if key in MSI_PROPERTIES:
            properties[key] = value.strip()
    return properties


def read_msi_properties_from_database(path: Path) -> dict[str, str]:
    """Query the Property table through ``msi.dll``."""
    msi = _windll("msi")
    if msi is None:
        logger.debug("msi.dll unavailable; cannot open %s", path.name)
        return {}

    database = ctypes.c_ulong()
    # MSIDBOPEN_READONLY is the null persist-mode pointer.
    if msi.MsiOpenDatabaseW(str(path), None, ctypes.byref(database)) != _ERROR_SUCCESS:
        logger.warning("MsiOpenDatabase failed for %s", path)
        return {}
    try:
        properties: dict[str, str] = {}
        for name in MSI_PROPERTIES:
            value = _query_property(msi, database, name)
            if value:
                properties[name] = value
        return properties
    finally:
        msi.MsiCloseHandle(database)


def _query_property(msi, database: ctypes.c_ulong, name: str) -> str:
    view = ctypes.c_ulong()
    query = f"SELECT `Value` FROM `Property` WHERE `Property`='{name}'"
    if msi.MsiDatabaseOpenViewW(database, query, ctypes.byref(view)) != _ERROR_SUCCESS:
        return ""
    try:
        if msi.MsiViewExecute(view, 0) != _ERROR_SUCCESS:
            return ""
        record = ctypes.c_ulong()
        if msi.MsiViewFetch(view, ctypes.byref(record)) != _ERROR_SUCCESS:
            return ""
        try:
            size = ctypes.c_ulong(256)
            buffer = ctypes.create_unicode_buffer(size.value)
            status = msi.MsiRecordGetStringW(record, 1, buffer, ctypes.byref(size))
            if status == _ERROR_MORE_DATA:
                size.value += 1
                buffer = ctypes.create_unicode_buffer(size.value)
                status = msi.MsiRecordGetStringW(record, 1, buffer, ctypes.byref(size))
            return buffer.value.strip() if status == _ERROR_SUCCESS else ""
        finally:
            msi.MsiCloseHandle(record)
    finally:
        msi.MsiViewClose(view)
        msi.MsiCloseHandle(view)
