# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Environment validation and diagnostics.

Checks that the interpreter is new enough before any benchmark starts, and
collects the host and toolchain facts that `bendbench info` prints and that
go into the report header.
"""

import platform
import sys
from typing import NamedTuple, Optional

from bendbench.config.schema import ToolsConfig
from bendbench.errors import CommandNotFoundError
from bendbench.utils.commands import resolve_command

MINIMUM_PYTHON_MAJOR = 3
MINIMUM_PYTHON_MINOR = 11


class SystemInfo(NamedTuple):
    """Snapshot of the current system environment."""

    python_version: str
    platform: str
    architecture: str
    hostname: str


def get_python_version() -> tuple[int, int, int]:
    """Return the current Python version as a (major, minor, micro) tuple."""
    return sys.version_info[:3]


def check_minimum_python() -> None:
    """
    Verify we're running Python 3.11+.

    Raises:
        RuntimeError: If Python version is below 3.11.
    """
    major, minor, _ = get_python_version()
    if major < MINIMUM_PYTHON_MAJOR or (
        major == MINIMUM_PYTHON_MAJOR and minor < MINIMUM_PYTHON_MINOR
    ):
        raise RuntimeError(
            f"bendbench requires Python >= {MINIMUM_PYTHON_MAJOR}.{MINIMUM_PYTHON_MINOR}, "
            f"but you're running {major}.{minor}."
        )


def get_system_info() -> SystemInfo:
    """Collect basic system information for logging and diagnostics."""
    return SystemInfo(
        python_version=platform.python_version(),
        platform=platform.system(),
        architecture=platform.machine(),
        hostname=platform.node(),
    )


def resolve_tools(tools: ToolsConfig) -> dict[str, Optional[str]]:
    """Map each configured tool command to its resolved path, or None when missing."""
    commands = {
        "bend": tools.bend_cmd,
        "newbend": tools.new_bend_cmd,
        "hvm": tools.hvm_cmd,
        "bun": tools.bun_cmd,
        "node": tools.node_cmd,
    }
    resolved: dict[str, Optional[str]] = {}
    for name, command in commands.items():
        try:
            resolved[name] = str(resolve_command(command))
        except CommandNotFoundError:
            resolved[name] = None
    return resolved
