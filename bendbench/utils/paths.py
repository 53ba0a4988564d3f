# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Per-run scratch directory.

Compiled binaries, generated .hvm/.mjs files and the JS runner scripts all
live under one temp directory created at startup and removed at shutdown.
File names are derived deterministically from their ingredients, so the same
(flow, threads, benchmark) always maps to the same file within a run.
"""

import re
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Optional

from bendbench.logging.logger import get_logger

logger = get_logger(__name__)

_NON_TOKEN = re.compile(r"[^a-z0-9]+")


def tmp_token(text: str) -> str:
    """Lowercase, runs of anything but [a-z0-9] collapsed to '-', never empty."""
    token = _NON_TOKEN.sub("-", text.lower()).strip("-")
    return token or "tmp"


class WorkDir:
    """Owns the run's temp directory. `cleanup` is idempotent."""

    def __init__(self, parent: Optional[Path] = None, prefix: str = "bendbench.") -> None:
        if parent is not None:
            parent.mkdir(parents=True, exist_ok=True)
        self.path = Path(tempfile.mkdtemp(prefix=prefix, dir=str(parent) if parent else None))
        logger.debug("Work directory created", extra={"path": str(self.path)})

    def file(self, parts: Iterable[str], ext: str) -> Path:
        name = "-".join(tmp_token(p) for p in parts) or "tmp"
        return self.path / (name + ext)

    def cleanup(self) -> None:
        if self.path.exists():
            shutil.rmtree(self.path, ignore_errors=True)
            logger.debug("Work directory removed", extra={"path": str(self.path)})
