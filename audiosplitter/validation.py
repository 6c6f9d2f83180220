"""
audiosplitter.validation - Dependency checks and input validation.

Validates the external toolchain and the file handed over by the
download step before any splitting happens.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Any

from audiosplitter.exceptions import DependencyError, ValidationError

INSTALL_HINT = "Install with: brew install ffmpeg (macOS) or apt install ffmpeg (Linux)"


def _tool_version(path: str) -> str:
    try:
        proc = subprocess.run(
            [path, "-version"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        version_line = proc.stdout.split("\n")[0]
        return version_line.split()[2] if version_line else "unknown"
    except (subprocess.TimeoutExpired, IndexError):
        return "unknown"


def check_ffmpeg(ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe") -> dict[str, str]:
    """Check if FFmpeg and FFprobe are installed and get versions.

    Args:
        ffmpeg: ffmpeg executable name or path
        ffprobe: ffprobe executable name or path

    Returns:
        Dict with 'ffmpeg_version' and 'ffprobe_version'

    Raises:
        DependencyError: If FFmpeg or FFprobe not found
    """
    result = {}

    ffmpeg_path = shutil.which(ffmpeg)
    if not ffmpeg_path:
        raise DependencyError("ffmpeg", "FFmpeg not found in PATH", INSTALL_HINT)
    result["ffmpeg_version"] = _tool_version(ffmpeg_path)

    ffprobe_path = shutil.which(ffprobe)
    if not ffprobe_path:
        raise DependencyError("ffprobe", "FFprobe not found in PATH", INSTALL_HINT)
    result["ffprobe_version"] = _tool_version(ffprobe_path)

    return result


def validate_media_file(path: Path) -> dict[str, Any]:
    """Validate that the downloaded media file exists and is a regular file.

    Args:
        path: Path to the media file

    Returns:
        Dict with validation results

    Raises:
        ValidationError: If file doesn't exist or is not a file
    """
    if not path.exists():
        raise ValidationError(f"File not found: {path}")

    if not path.is_file():
        raise ValidationError(f"Not a file: {path}")

    if not path.suffix:
        raise ValidationError(f"File has no extension: {path}")

    return {
        "path": str(path),
        "exists": True,
        "size_bytes": path.stat().st_size,
    }


def parse_positive_int(
    value: str | int | None,
    default: int,
    name: str = "segment length",
) -> tuple[int, str | None]:
    """Parse a positive integer option leniently.

    Args:
        value: Raw value from the command line
        default: Value to use when the raw value is missing or invalid
        name: Option name used in warning messages

    Returns:
        Tuple of (value, warning message or None)
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return default, None
    try:
        number = int(str(value).strip())
    except ValueError:
        return default, f"Invalid {name} {value!r}, using {default}"
    if number <= 0:
        return default, f"{name.capitalize()} must be positive, got {number}, using {default}"
    return number, None
