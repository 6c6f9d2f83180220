"""
audiosplitter.config - YAML config loading and validation.

Handles locating audiosplitter.yaml next to (or above) the downloaded
file, merging command-line overrides, and validating all parameters.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from audiosplitter.exceptions import ConfigError

CONFIG_FILENAME = "audiosplitter.yaml"


class SplitterConfig(BaseModel):
    """Resolved configuration for a split run."""

    bitrate_kbps: int = Field(default=160, gt=0)
    segment_seconds: int = Field(default=180, gt=0)

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    chapter_decoder: str = "auto"

    config_path: Path | None = None

    @field_validator("chapter_decoder")
    @classmethod
    def validate_chapter_decoder(cls, v: str) -> str:
        valid = {"auto", "json", "csv"}
        if v not in valid:
            raise ValueError(f"chapter_decoder must be one of: {valid}")
        return v


def find_config_file(start: Path) -> Path | None:
    """Find audiosplitter.yaml in start or any of its parents."""
    current = start if start.is_dir() else start.parent
    current = current.resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def merge_config(file_config: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Merge file config with overrides. Non-None overrides take precedence."""
    merged = file_config.copy()
    for key, value in overrides.items():
        if value is not None:
            merged[key] = value
    return merged


def load_config(
    config_file: Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> SplitterConfig:
    """Load and validate configuration.

    Args:
        config_file: Path to a YAML config file, or None for defaults only
        overrides: Values that take precedence over the file (e.g. CLI flags)

    Returns:
        Validated SplitterConfig

    Raises:
        ConfigError: If the file cannot be read or a value is invalid
    """
    raw_config: dict[str, Any] = {}
    if config_file is not None:
        try:
            with open(config_file, encoding="utf-8") as f:
                raw_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot read {config_file}: {e}") from e
        if not isinstance(raw_config, dict):
            raise ConfigError(f"{config_file} must contain a mapping")

    merged = merge_config(raw_config, overrides or {})
    if config_file is not None:
        merged["config_path"] = config_file

    try:
        return SplitterConfig(**merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def create_default_config() -> dict[str, Any]:
    """Create a default config for a new download root."""
    defaults = SplitterConfig()
    return defaults.model_dump(exclude={"config_path"})


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
