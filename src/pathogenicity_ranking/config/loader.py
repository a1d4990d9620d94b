"""Read pipeline configuration from YAML."""

from pathlib import Path
from typing import Any

import pydantic_yaml
import yaml

from .schema import PipelineConfig


def _read_text(config_path: Path | str) -> str:
    config_path = Path(config_path)
    if not config_path.is_file():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return config_path.read_text()


def _set_dotted(data: dict, key: str, value: Any) -> None:
    """Assign value at a dotted key such as ``annotator.genome_build``."""
    *sections, leaf = key.split(".")
    target = data
    for section in sections:
        if target.get(section) is None:
            raise KeyError(f"Cannot override '{key}': section '{section}' is not configured")
        target = target[section]
    target[leaf] = value


def load_config(config_path: Path | str) -> PipelineConfig:
    """
    Parse and validate a configuration file.

    Raises:
        FileNotFoundError: If config_path is not a file
        pydantic.ValidationError: On invalid values (unknown anchor,
            protocol/operation length mismatch, unrecognised missing-value
            token, ...)
    """
    return pydantic_yaml.parse_yaml_raw_as(PipelineConfig, _read_text(config_path))


def load_config_with_overrides(
    config_path: Path | str,
    overrides: dict[str, Any],
) -> PipelineConfig:
    """
    Parse a configuration file, apply CLI overrides, then validate once.

    Keys may address nested sections with dots, e.g.
    ``{"annotator.timeout_seconds": 600, "output_dir": "out"}``.

    Raises:
        FileNotFoundError: If config_path is not a file
        KeyError: If a dotted key addresses a section absent from the file
        pydantic.ValidationError: If the overridden config is invalid
    """
    data = yaml.safe_load(_read_text(config_path)) or {}
    for key, value in overrides.items():
        _set_dotted(data, key, value)
    return PipelineConfig.model_validate(data)
