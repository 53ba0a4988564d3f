# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Interrupt and exit handling.

The first SIGINT or SIGTERM kills every registered process group, removes the
work directory and exits with 128 + signal number (130 for SIGINT, 143 for
SIGTERM). Later signals are ignored while that is in progress. The same
cleanup is registered with atexit, so a normal exit or an uncaught exception
also leaves no children and no temp files behind. Cleanup runs at most once
whichever path reaches it first.
"""

import atexit
import signal
import threading
from types import FrameType
from typing import Any, Optional

from bendbench.execution.processes import ActiveProcessRegistry
from bendbench.logging.logger import get_logger
from bendbench.utils.paths import WorkDir

logger = get_logger(__name__)

HANDLED_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


def exit_code_for(signum: int) -> int:
    return 128 + int(signum)


class ShutdownGuard:
    """
    Owns process-wide cleanup for one benchmark run.

    Args:
        registry: Pids of commands that are still running.
        work_dir: Scratch directory to delete, if any.
    """

    def __init__(self, registry: ActiveProcessRegistry, work_dir: Optional[WorkDir] = None) -> None:
        self.registry = registry
        self.work_dir = work_dir
        self._lock = threading.Lock()
        self._done = False
        self._signalled = False
        self._previous: dict[int, Any] = {}
        self._installed = False

    @property
    def done(self) -> bool:
        return self._done

    def shutdown(self) -> bool:
        """Kill active process groups and remove the work directory. True on the first call only."""
        with self._lock:
            if self._done:
                return False
            self._done = True

        killed = self.registry.kill_all()
        if self.work_dir is not None:
            self.work_dir.cleanup()
        logger.debug("Shutdown complete", extra={"killed": killed})
        return True

    def handle_signal(self, signum: int, frame: Optional[FrameType]) -> None:
        if self._signalled:
            return
        self._signalled = True
        logger.warning("Interrupted, shutting down", extra={"signal": signal.Signals(signum).name})
        self.shutdown()
        raise SystemExit(exit_code_for(signum))

    def install(self) -> None:
        if self._installed:
            return
        for sig in HANDLED_SIGNALS:
            self._previous[sig] = signal.signal(sig, self.handle_signal)
        atexit.register(self.shutdown)
        self._installed = True

    def uninstall(self) -> None:
        """Restore the previous handlers and drop the atexit hook."""
        if not self._installed:
            return
        for sig, previous in self._previous.items():
            signal.signal(sig, previous)
        self._previous.clear()
        atexit.unregister(self.shutdown)
        self._installed = False

    def __enter__(self) -> "ShutdownGuard":
        self.install()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.shutdown()
        self.uninstall()
