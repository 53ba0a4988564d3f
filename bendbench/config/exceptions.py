# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Custom exceptions for the configuration system.

We keep these separate so that the CLI can catch config-specific failures
without importing the entire config machinery. Every one of them is fatal at
startup: nothing gets spawned with a broken configuration.
"""


class ConfigError(Exception):
    """Base for all configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a config file cannot be read from disk or parsed as YAML."""


class ConfigValidationError(ConfigError):
    """
    Raised when configuration parses fine but fails validation.
    This covers schema violations in the YAML file, out-of-range values,
    min_runs > max_runs, and malformed environment overrides.
    """
