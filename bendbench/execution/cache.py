# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Artifact cache — memoizes one-time build steps for the lifetime of a run.

Compilation is the most expensive thing the harness does, and several modes
(or thread-count variants of one mode) often need the very same artifact.
The cache maps a build key to the artifact path and guarantees at most one
successful build per key.

Only successes are remembered. A build that raises leaves no entry, so the
next request for that key tries again. Nothing is evicted and nothing is
persisted; the cache dies with the process.
"""

import asyncio
import inspect
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Union

from bendbench.logging.logger import get_logger

logger = get_logger(__name__)

BuildFn = Callable[[], Union[Path, Awaitable[Path]]]


def build_key(tool: str, flags: Iterable[str], input_path: Union[Path, str]) -> str:
    """Compose a key from tool identity, invocation flags and the canonical input path."""
    canonical = Path(input_path).resolve()
    return "|".join([tool, " ".join(flags), str(canonical)])


class ArtifactCache:
    """
    Key → artifact path, built lazily.

    A per-key lock serializes concurrent requests for the same key, so even if
    two callers arrive together only one build runs; the second caller waits
    and receives the stored path.
    """

    def __init__(self, name: str = "artifacts") -> None:
        self.name = name
        self._entries: dict[str, Path] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Path | None:
        return self._entries.get(key)

    async def get_or_build(self, key: str, build: BuildFn) -> Path:
        cached = self._entries.get(key)
        if cached is not None:
            return cached

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            cached = self._entries.get(key)
            if cached is not None:
                return cached

            try:
                result = build()
                if inspect.isawaitable(result):
                    result = await result
            except Exception as err:
                logger.warning(
                    "Artifact build failed",
                    extra={"cache": self.name, "key": key, "error": str(err)},
                )
                raise

            artifact = Path(result)
            self._entries[key] = artifact
            logger.debug(
                "Artifact built",
                extra={"cache": self.name, "key": key, "path": str(artifact)},
            )
            return artifact
