# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Data models for the benchmark matrix.

Rows and modes are frozen: a row is fixed once discovered and a mode once the
CLI has resolved it. Cells are the only mutable thing, and they only move
forward through their state machine:

    pending → running → done | error | timeout
    not_applicable  (terminal from creation)

Any other transition raises CellTransitionError.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable, Optional

from bendbench.errors import CellTransitionError

if TYPE_CHECKING:
    from bendbench.config.schema import SamplingConfig


class InputKind(str, Enum):
    """Which source file a mode consumes."""

    BEND = "bend"
    HVM = "hvm"


class CellState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    ERROR = "error"
    TIMEOUT = "timeout"
    NOT_APPLICABLE = "na"


TERMINAL_STATES: frozenset[CellState] = frozenset({
    CellState.DONE,
    CellState.ERROR,
    CellState.TIMEOUT,
    CellState.NOT_APPLICABLE,
})

FAILED_STATES: frozenset[CellState] = frozenset({CellState.ERROR, CellState.TIMEOUT})


@dataclass(frozen=True)
class BenchmarkRow:
    """A named benchmark case with its Bend and/or HVM source."""

    name: str
    bend_file: Optional[Path] = None
    hvm_file: Optional[Path] = None

    def __post_init__(self) -> None:
        if self.bend_file is None and self.hvm_file is None:
            raise ValueError(f"benchmark {self.name!r} has neither a bend nor an hvm file")

    def input_file(self, kind: InputKind) -> Optional[Path]:
        return self.bend_file if kind is InputKind.BEND else self.hvm_file


ModeRun = Callable[[BenchmarkRow, "SamplingConfig"], Awaitable[float]]


@dataclass(frozen=True)
class Mode:
    """
    One execution strategy instantiated for a thread count.

    `key` is unique per (definition, threads) and `flag` is what identifies the
    column; both carry the thread suffix when threads != 1.
    """

    key: str
    flag: str
    label: str
    input: InputKind
    threads: int
    run: ModeRun = field(compare=False, repr=False)
    bend_cmd: Optional[str] = None
    required_tools: tuple[str, ...] = ()
    needs_node_entry: bool = False


@dataclass
class Cell:
    """Execution state of one (row, mode) pairing."""

    state: CellState = CellState.PENDING
    secs: Optional[float] = None
    message: Optional[str] = None

    @classmethod
    def not_applicable(cls) -> "Cell":
        return cls(state=CellState.NOT_APPLICABLE)

    @property
    def failed(self) -> bool:
        return self.state in FAILED_STATES

    def start(self) -> None:
        self._require(CellState.PENDING, "start")
        self.state = CellState.RUNNING
        self.message = None

    def complete(self, secs: float) -> None:
        self._require(CellState.RUNNING, "complete")
        self.state = CellState.DONE
        self.secs = secs

    def fail(self, message: str, timed_out: bool = False) -> None:
        self._require(CellState.RUNNING, "fail")
        self.state = CellState.TIMEOUT if timed_out else CellState.ERROR
        self.message = message

    def _require(self, expected: CellState, action: str) -> None:
        if self.state is not expected:
            raise CellTransitionError(
                f"cannot {action} a cell in state {self.state.value!r} "
                f"(expected {expected.value!r})"
            )
