"""Settings for a cm2intune run.

Settings come from a YAML file (``cm2intune.yaml`` in the working
directory unless another path is given) and are then overridden by
environment variables named ``CM2INTUNE_<KEY>``, e.g.::

    CM2INTUNE_SITE_CODE=PS1
    CM2INTUNE_CLIENT_SECRET=...

Example file::

    site_code: PS1
    site_server: cm01.contoso.local
    staging_base: D:\\IntuneMigration
    alternate_source_base: \\\\fs01\\sources
    tenant_id: 00000000-0000-0000-0000-000000000000
    client_id: 00000000-0000-0000-0000-000000000000
    client_secret: ...

The settings are read-only once loaded.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from cm2intune.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "cm2intune.yaml"
ENV_PREFIX = "CM2INTUNE_"

REQUIRED_KEYS: tuple[str, ...] = (
    "site_code",
    "site_server",
    "tenant_id",
    "client_id",
    "client_secret",
)


def default_staging_base() -> str:
    return str(Path.home() / "IntuneMigration")


@dataclass(frozen=True)
class Settings:
    """Configuration consumed by the migration workflow."""

    site_code: str = ""
    site_server: str = ""
    staging_base: str = dataclasses.field(default_factory=default_staging_base)
    alternate_source_base: str = ""
    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = dataclasses.field(default="", repr=False)
    intunewin_tool: str = "IntuneWinAppUtil.exe"
    msi_helper: str = "msiinfo"
    log_file: str = ""

    @property
    def staging_path(self) -> Path:
        return Path(self.staging_base).expanduser()

    @property
    def alternate_source_path(self) -> Path | None:
        return Path(self.alternate_source_base).expanduser() if self.alternate_source_base else None

    def missing(self, *keys: str) -> list[str]:
        """Return the given keys whose values are blank."""
        return [key for key in keys if not str(getattr(self, key, "")).strip()]

    def require(self, *keys: str) -> Settings:
        """Ensure every given key is set.

        Raises:
            ConfigurationError: Naming every missing key.
        """
        absent = self.missing(*(keys or REQUIRED_KEYS))
        if absent:
            names = ", ".join(absent)
            env = ", ".join(ENV_PREFIX + key.upper() for key in absent)
            raise ConfigurationError(
                f"Missing required settings: {names} (set them in the config file or via {env})"
            )
        return self


_FIELD_NAMES: tuple[str, ...] = tuple(f.name for f in dataclasses.fields(Settings))


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
        data = yaml.safe_load(raw)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    return data


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from YAML and environment overrides.

    Args:
        path: Config file. When None, ``cm2intune.yaml`` in the working
            directory is used if it exists.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        The loaded ``Settings``. Required keys are not checked here; call
        ``Settings.require``.

    Raises:
        ConfigurationError: If an explicit file is missing or any file
            is unreadable or not a mapping.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = {}

    if path is not None:
        if not path.is_file():
            raise ConfigurationError(f"Config file not found: {path}")
        values.update(_read_yaml(path))
    else:
        default = Path(DEFAULT_CONFIG_FILE)
        if default.is_file():
            values.update(_read_yaml(default))

    for key in _FIELD_NAMES:
        override = env.get(ENV_PREFIX + key.upper())
        if override is not None:
            values[key] = override

    unknown = sorted(set(values) - set(_FIELD_NAMES))
    if unknown:
        logger.debug("Ignoring unknown config keys: %s", ", ".join(unknown))

    known = {
        key: "" if values[key] is None else str(values[key])
        for key in _FIELD_NAMES if key in values
    }
    return Settings(**known)
