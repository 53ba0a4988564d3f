# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Config loader — reads YAML from disk and produces a validated, frozen BenchConfig.

The loading pipeline is deliberately simple and linear:
  1. Read raw text from the file (or start from an empty mapping)
  2. Parse as YAML into a plain dict
  3. Hand the dict to pydantic for schema validation
  4. Return the frozen, immutable config object

Overrides (environment, CLI flags) never mutate a config. They go through
`override_config`, which rebuilds and revalidates the whole tree, so a bad
override fails exactly like a bad file would.
"""

from pathlib import Path
from typing import Any, Mapping, Optional

import yaml
from pydantic import ValidationError

from bendbench.config.exceptions import ConfigLoadError, ConfigValidationError
from bendbench.config.schema import BenchConfig


def _read_yaml_file(config_path: Path) -> dict[str, Any]:
    """
    Read a YAML file and return the parsed dict.

    An empty file is accepted and treated as an empty mapping, since every
    section has defaults.

    Raises:
        ConfigLoadError: If the file doesn't exist, isn't readable, or isn't valid YAML.
    """
    if not config_path.exists():
        raise ConfigLoadError(f"Config file not found: {config_path}")

    if not config_path.is_file():
        raise ConfigLoadError(f"Config path is not a file: {config_path}")

    try:
        raw_text = config_path.read_text(encoding="utf-8")
    except OSError as err:
        raise ConfigLoadError(f"Cannot read config file {config_path}: {err}") from err

    try:
        parsed = yaml.safe_load(raw_text)
    except yaml.YAMLError as err:
        raise ConfigLoadError(f"Invalid YAML in {config_path}: {err}") from err

    if parsed is None:
        return {}

    if not isinstance(parsed, dict):
        raise ConfigLoadError(
            f"Config file must contain a YAML mapping (dict), got {type(parsed).__name__}"
        )

    return parsed


def _validate(raw_data: Mapping[str, Any], origin: str) -> BenchConfig:
    try:
        return BenchConfig.model_validate(dict(raw_data))
    except ValidationError as err:
        raise ConfigValidationError(f"Config validation failed for {origin}:\n{err}") from err


def load_config(config_path: Optional[Path] = None) -> BenchConfig:
    """
    Load, validate, and freeze a config file into a BenchConfig object.

    With no path, returns the all-defaults configuration.

    Raises:
        ConfigLoadError: File I/O or YAML parse failures.
        ConfigValidationError: Schema violations (wrong types, unknown keys,
            min_runs greater than max_runs, ...).
    """
    if config_path is None:
        return _validate({}, "defaults")

    raw_data = _read_yaml_file(config_path)
    return _validate(raw_data, str(config_path))


def override_config(
    config: BenchConfig,
    overrides: Mapping[str, Mapping[str, Any]],
    origin: str,
) -> BenchConfig:
    """
    Return a new config with per-section values replaced.

    `overrides` maps a section name ("sampling", "tools", "runner", "global")
    to the fields to replace. Sections or fields not mentioned are kept.
    """
    data = config.model_dump(by_alias=True)
    for section, values in overrides.items():
        if not values:
            continue
        merged = dict(data.get(section) or {})
        merged.update(values)
        data[section] = merged
    return _validate(data, origin)
