# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Drives every (benchmark, mode) cell to a terminal state.

The matrix is the only component that knows the table shape. For each row,
then each mode, in a fixed order, it:
  1. skips cells that were marked not-applicable at construction
  2. moves the cell pending → running
  3. awaits the mode's run function (sampling, compiling, spawning)
  4. moves the cell to done with the mean seconds, or to timeout / error
     with the diagnostic message

A cell is fully resolved before the next one starts. One failing cell never
stops the rest of the matrix; the aggregate outcome reports it afterwards.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Sequence

from bendbench.config.schema import SamplingConfig
from bendbench.errors import CommandTimeoutError
from bendbench.logging.logger import get_logger
from bendbench.matrix.models import BenchmarkRow, Cell, CellState, Mode

logger = get_logger(__name__)

OnChange = Callable[["ExecutionMatrix"], None]


@dataclass(frozen=True)
class CellRecord:
    """Flat, serializable view of one cell for reporting."""

    benchmark: str
    mode: str
    label: str
    threads: int
    state: str
    secs: Optional[float]
    message: Optional[str]


@dataclass(frozen=True)
class MatrixOutcome:
    records: tuple[CellRecord, ...]

    @property
    def failed(self) -> bool:
        return any(r.state in (CellState.ERROR.value, CellState.TIMEOUT.value) for r in self.records)

    @property
    def exit_code(self) -> int:
        return 1 if self.failed else 0

    def count(self, state: CellState) -> int:
        return sum(1 for r in self.records if r.state == state.value)


class ExecutionMatrix:
    """
    Benchmark × mode grid with one Cell per pairing.

    Args:
        rows: Discovered benchmarks, in display order.
        modes: Resolved modes, in display order.
        on_change: Called once when `run` starts and again after every cell
            transition; the CLI uses it to redraw the table.
    """

    def __init__(
        self,
        rows: Sequence[BenchmarkRow],
        modes: Sequence[Mode],
        on_change: Optional[OnChange] = None,
    ) -> None:
        self.rows = list(rows)
        self.modes = list(modes)
        self._on_change = on_change
        self._cells: dict[tuple[str, str], Cell] = {}

        for row in self.rows:
            for mode in self.modes:
                if row.input_file(mode.input) is None:
                    cell = Cell.not_applicable()
                else:
                    cell = Cell()
                self._cells[(row.name, mode.flag)] = cell

    def cell(self, row: BenchmarkRow, mode: Mode) -> Cell:
        return self._cells[(row.name, mode.flag)]

    def cells(self) -> Iterator[tuple[BenchmarkRow, Mode, Cell]]:
        for row in self.rows:
            for mode in self.modes:
                yield row, mode, self.cell(row, mode)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    async def run(self, config: SamplingConfig) -> MatrixOutcome:
        self._changed()

        for row, mode, cell in self.cells():
            if cell.state is CellState.NOT_APPLICABLE:
                continue

            cell.start()
            self._changed()
            logger.info("Cell started", extra={"benchmark": row.name, "mode": mode.label})

            try:
                secs = await mode.run(row, config)
            except CommandTimeoutError as err:
                cell.fail(str(err), timed_out=True)
                logger.warning(
                    "Cell timed out",
                    extra={"benchmark": row.name, "mode": mode.label, "error": str(err)},
                )
            except Exception as err:
                cell.fail(str(err) or type(err).__name__)
                logger.warning(
                    "Cell failed",
                    extra={"benchmark": row.name, "mode": mode.label, "error": str(err)},
                )
            else:
                cell.complete(secs)
                logger.info(
                    "Cell finished",
                    extra={"benchmark": row.name, "mode": mode.label, "secs": secs},
                )

            self._changed()

        return self.outcome()

    def outcome(self) -> MatrixOutcome:
        return MatrixOutcome(records=tuple(
            CellRecord(
                benchmark=row.name,
                mode=mode.flag,
                label=mode.label,
                threads=mode.threads,
                state=cell.state.value,
                secs=cell.secs,
                message=cell.message,
            )
            for row, mode, cell in self.cells()
        ))
