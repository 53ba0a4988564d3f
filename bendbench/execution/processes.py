# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Process-group termination and the active-process registry.

Every supervised command is started as the leader of its own process group,
so its pid doubles as the group id. Killing the group reaches whatever the
command forked (a compiler's linker, an interpreter's workers) in one signal.

The registry records the pids of commands that are still running. It lives
from process start to process exit and is handed to the supervisor and the
shutdown guard explicitly; tests build a fresh one per case.
"""

import os
import signal
import threading

from bendbench.logging.logger import get_logger

logger = get_logger(__name__)

_KILL_SIGNAL = getattr(signal, "SIGKILL", signal.SIGTERM)


def terminate(pid: int) -> None:
    """
    Force-kill a process group, falling back to the single pid.

    Step one signals the whole group. If that fails (group already gone,
    platform without process groups, permission denied), step two signals
    just the leader. Errors from either step are swallowed: a process that
    no longer exists is not a failure. Safe to call any number of times.
    """
    killpg = getattr(os, "killpg", None)
    if killpg is not None:
        try:
            killpg(pid, _KILL_SIGNAL)
            return
        except OSError:
            pass
    try:
        os.kill(pid, _KILL_SIGNAL)
    except OSError:
        pass


class ActiveProcessRegistry:
    """
    Set of pids whose commands have not reached a terminal outcome yet.

    Keyed by pid, so concurrent invocations never collide. The lock is
    re-entrant because kill_all can run from a signal handler on the main
    thread while that same thread is inside add or discard.
    """

    def __init__(self) -> None:
        self._pids: set[int] = set()
        self._lock = threading.RLock()

    def add(self, pid: int) -> None:
        with self._lock:
            self._pids.add(pid)

    def discard(self, pid: int) -> None:
        with self._lock:
            self._pids.discard(pid)

    def __contains__(self, pid: object) -> bool:
        with self._lock:
            return pid in self._pids

    def __len__(self) -> int:
        with self._lock:
            return len(self._pids)

    def snapshot(self) -> frozenset[int]:
        with self._lock:
            return frozenset(self._pids)

    def kill_all(self) -> int:
        """Force-kill every registered group and clear the set. Returns how many."""
        with self._lock:
            pids = list(self._pids)
            self._pids.clear()

        for pid in pids:
            terminate(pid)

        if pids:
            logger.info("Killed active process groups", extra={"count": len(pids)})
        return len(pids)
