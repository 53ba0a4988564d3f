# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Resolving tool commands to executable files.

A command containing a path separator is taken relative to the current
directory; a bare name is searched on $PATH. Either way the result is the
real (symlink-free) absolute path, which is what the Node-entry logic needs to
tell a script wrapper from a native binary.
"""

import os
from pathlib import Path
from typing import Mapping, Optional

from bendbench.errors import CommandNotFoundError


def is_executable(path: Path) -> bool:
    try:
        return path.is_file() and os.access(path, os.X_OK)
    except OSError:
        return False


def resolve_command(command: str, environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Raises:
        CommandNotFoundError: Not executable, or not found on $PATH.
    """
    if "/" in command or os.sep in command:
        candidate = Path(command).resolve()
        if not is_executable(candidate):
            raise CommandNotFoundError(f"command is not executable: {candidate}")
        return candidate.resolve(strict=True)

    env = os.environ if environ is None else environ
    for directory in env.get("PATH", "").split(os.pathsep):
        if not directory:
            continue
        candidate = Path(directory) / command
        if is_executable(candidate):
            return candidate.resolve(strict=True)

    raise CommandNotFoundError(f"command not found in $PATH: {command}")
