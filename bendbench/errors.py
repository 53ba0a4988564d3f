# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Exception hierarchy for the benchmark engine.

The supervisor itself never raises for a failed command: it returns a tagged
InvocationResult. These exceptions exist for callers that want "stdout or
raise" semantics (the toolchain recipes), and the matrix classifies a failed
cell by exception type, never by parsing its message.

Configuration problems live in bendbench.config.exceptions.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bendbench.execution.results import InvocationResult


class BenchError(Exception):
    """Base for every engine error."""


class InvocationError(BenchError):
    """A supervised command did not succeed. `result` holds the outcome variant."""

    def __init__(self, result: "InvocationResult") -> None:
        super().__init__(result.message)
        self.result = result


class SpawnFailureError(InvocationError):
    """The executable could not be started at all."""


class ProcessFailureError(InvocationError):
    """The command ran and exited non-zero."""


class OutputOverflowError(InvocationError):
    """The command produced more output than the configured ceiling."""


class CommandTimeoutError(InvocationError):
    """The command was still running when its deadline fired."""


class SamplingError(BenchError):
    """The sampling session could not produce a mean."""


class NoTimedRunsError(SamplingError):
    """The stopping rule ended the session before a single timed trial."""


class CellTransitionError(BenchError):
    """A matrix cell was asked to make a transition its state forbids."""


class ModeParseError(BenchError):
    """A CLI token did not name any known mode."""


class CommandNotFoundError(BenchError):
    """A required tool does not resolve to an executable file."""


class BenchSecsParseError(BenchError):
    """A hot-run helper did not report a usable BENCH_SECS line."""
