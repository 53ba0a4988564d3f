# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Monotonic timestamps and elapsed-time computation."""

import time
from typing import Protocol


class Clock(Protocol):
    def now_ns(self) -> int: ...


class MonotonicClock:
    """Nanosecond clock backed by time.perf_counter_ns (monotonic, high resolution)."""

    def now_ns(self) -> int:
        return time.perf_counter_ns()


def elapsed_secs(clock: Clock, start_ns: int) -> float:
    """Seconds elapsed on `clock` since `start_ns`."""
    return (clock.now_ns() - start_ns) / 1e9
