"""
speechwav.config - YAML config loading and validation.

Handles loading speechwav.yaml from a working directory. Only the mechanics
of extraction are tunable; the output format is fixed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from speechwav.exceptions import ConfigError

CONFIG_FILENAME = "speechwav.yaml"


class ExtractionConfig(BaseModel):
    """Resolved configuration for an extraction run."""

    dequeue_timeout_us: int = Field(default=10_000, gt=0)
    decoder_input_slots: int = Field(default=4, ge=1)
    overwrite: bool = True
    verbose: bool = False

    @field_validator("dequeue_timeout_us")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v > 5_000_000:
            raise ValueError("dequeue_timeout_us must be at most 5 seconds")
        return v


def load_config(config_dir: Path | None = None) -> ExtractionConfig:
    """Load configuration from a directory, falling back to defaults.

    A missing speechwav.yaml is not an error; an invalid one is.
    """
    if config_dir is None:
        return ExtractionConfig()

    config_file = config_dir / CONFIG_FILENAME
    if not config_file.exists():
        return ExtractionConfig()

    try:
        with open(config_file) as f:
            raw_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if not isinstance(raw_config, dict):
        raise ConfigError(f"{config_file} must contain a mapping")

    try:
        return ExtractionConfig(**raw_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e


def create_default_config() -> dict[str, Any]:
    """Create a default config dict suitable for writing to disk."""
    return ExtractionConfig().model_dump()


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
