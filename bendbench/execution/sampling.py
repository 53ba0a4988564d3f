# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Sampling controller — turns a repeatable action into a stable mean duration.

A session has two phases:

  1. Warmup: call the action `warmup` times, throw the timings away.
  2. Timed trials, governed by the stopping rule in `needs_more`:
       - no trial yet                          → always take one
       - max_runs reached                      → stop
       - below min_runs and below min_secs     → continue
       - otherwise                             → stop

Sampling ends as soon as either minimum is satisfied: min_runs trials, or
min_secs of cumulative timed work. There is always at least one trial and
never more than max_runs.

Failures are never absorbed: an exception from the action, in warmup or in a
trial, propagates at once and no partial mean is reported.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

from bendbench.config.schema import SamplingConfig
from bendbench.errors import NoTimedRunsError
from bendbench.logging.logger import get_logger
from bendbench.runtime.clock import Clock, MonotonicClock, elapsed_secs

logger = get_logger(__name__)

RunOnce = Callable[[], Union[Awaitable[Any], Any]]


@dataclass
class SampleSet:
    """Running aggregate of one session. Only ever grows."""

    count: int = 0
    total_seconds: float = 0.0

    def add(self, seconds: float) -> None:
        self.count += 1
        self.total_seconds += seconds

    @property
    def mean_seconds(self) -> float:
        if self.count == 0:
            raise NoTimedRunsError("no timed runs were executed")
        return self.total_seconds / self.count


def needs_more(samples: SampleSet, config: SamplingConfig) -> bool:
    """The stopping rule. True means take another timed trial."""
    if samples.count == 0:
        return True
    if samples.count >= config.max_runs:
        return False
    if samples.count < config.min_runs and samples.total_seconds < config.min_secs:
        return True
    return False


class SamplingController:
    """
    Runs warmup and timed trials against an injected clock.

    `sample` accepts actions that are plain callables or return awaitables
    (an async function, or a function returning a supervisor coroutine).
    `sample_sync` is the same loop for strictly synchronous actions.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock: Clock = clock if clock is not None else MonotonicClock()

    async def sample(self, run_once: RunOnce, config: SamplingConfig) -> float:
        for _ in range(config.warmup):
            await _call(run_once)

        samples = SampleSet()
        while needs_more(samples, config):
            start = self.clock.now_ns()
            await _call(run_once)
            samples.add(elapsed_secs(self.clock, start))

        return self._finish(samples)

    def sample_sync(self, run_once: Callable[[], Any], config: SamplingConfig) -> float:
        for _ in range(config.warmup):
            run_once()

        samples = SampleSet()
        while needs_more(samples, config):
            start = self.clock.now_ns()
            run_once()
            samples.add(elapsed_secs(self.clock, start))

        return self._finish(samples)

    def _finish(self, samples: SampleSet) -> float:
        mean = samples.mean_seconds
        logger.debug(
            "Sampling finished",
            extra={
                "runs": samples.count,
                "total_seconds": round(samples.total_seconds, 6),
                "mean_seconds": round(mean, 6),
            },
        )
        return mean


async def _call(run_once: RunOnce) -> Any:
    result = run_once()
    if inspect.isawaitable(result):
        return await result
    return result
