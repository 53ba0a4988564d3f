# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Atomic file writes.

Generated artifacts (compiled .hvm text, stripped JS modules, runner scripts)
and report files are written through a temp file in the target directory and
renamed into place. Rename on the same filesystem is atomic on POSIX, so a
crash or an interrupt mid-write leaves either the old file or nothing, never a
half-written module that a later run would try to import.
"""

import os
import tempfile
from pathlib import Path


def atomic_write(target_path: Path, content: str, encoding: str = "utf-8") -> Path:
    """
    Write `content` to `target_path` atomically and return the path.

    Raises:
        OSError: If the write or rename fails.
    """
    target_path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(
        dir=str(target_path.parent),
        prefix=f".{target_path.name}.",
        suffix=".tmp",
    )
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "w", encoding=encoding) as handle:
            handle.write(content)
        temp_path.replace(target_path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise

    return target_path
