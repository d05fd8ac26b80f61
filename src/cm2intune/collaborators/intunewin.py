"""Container packaging with the Microsoft Win32 Content Prep Tool."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from cm2intune.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)

DEFAULT_TOOL = "IntuneWinAppUtil.exe"
PACKAGE_TIMEOUT = 3600
CONTAINER_EXTENSION = ".intunewin"


class IntuneWinPackager:
    """``Packager`` running ``IntuneWinAppUtil -c <src> -s <setup> -o <out> -q``."""

    def __init__(self, tool: str = DEFAULT_TOOL, timeout: int = PACKAGE_TIMEOUT) -> None:
        self.tool = tool
        self.timeout = timeout

    def build(self, source_dir: Path, setup_file: str, output_dir: Path) -> Path:
        output_dir.mkdir(parents=True, exist_ok=True)
        command = [
            self.tool,
            "-c", str(source_dir),
            "-s", setup_file,
            "-o", str(output_dir),
            "-q",
        ]
        logger.info("Packaging %s from %s", setup_file, source_dir)
        try:
            result = subprocess.run(
                command, capture_output=True, text=True, timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise ExternalServiceError(f"Packaging tool not found: {self.tool}") from exc
        except subprocess.TimeoutExpired as exc:
            raise ExternalServiceError("Packaging timed out") from exc

        if result.returncode != 0:
            raise ExternalServiceError(
                f"Packaging failed ({result.returncode}): "
                f"{(result.stderr or result.stdout).strip()}"
            )
        artifact = output_dir / f"{Path(setup_file).stem}{CONTAINER_EXTENSION}"
        if not artifact.is_file():
            raise ExternalServiceError(f"Packaging produced no container at {artifact}")
        return artifact
