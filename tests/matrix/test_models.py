# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for rows and the cell state machine."""

from pathlib import Path

import pytest

from bendbench.errors import CellTransitionError
from bendbench.matrix.models import BenchmarkRow, Cell, CellState, InputKind


class TestBenchmarkRow:
    def test_requires_at_least_one_source(self) -> None:
        with pytest.raises(ValueError, match="neither"):
            BenchmarkRow("empty")

    def test_input_file_by_kind(self, tmp_path: Path) -> None:
        row = BenchmarkRow("fib", bend_file=tmp_path / "main.bend")
        assert row.input_file(InputKind.BEND) == tmp_path / "main.bend"
        assert row.input_file(InputKind.HVM) is None


class TestCellTransitions:
    def test_happy_path(self) -> None:
        cell = Cell()
        cell.start()
        assert cell.state is CellState.RUNNING
        cell.complete(0.25)
        assert cell.state is CellState.DONE
        assert cell.secs == 0.25
        assert not cell.failed

    def test_error_and_timeout(self) -> None:
        error = Cell()
        error.start()
        error.fail("exit 1")
        assert error.state is CellState.ERROR
        assert error.message == "exit 1"
        assert error.failed

        timeout = Cell()
        timeout.start()
        timeout.fail("timed out", timed_out=True)
        assert timeout.state is CellState.TIMEOUT
        assert timeout.failed

    def test_not_applicable_is_terminal(self) -> None:
        cell = Cell.not_applicable()
        with pytest.raises(CellTransitionError):
            cell.start()
        assert cell.state is CellState.NOT_APPLICABLE

    def test_cannot_complete_pending_cell(self) -> None:
        with pytest.raises(CellTransitionError, match="cannot complete"):
            Cell().complete(1.0)

    def test_cannot_restart_finished_cell(self) -> None:
        cell = Cell()
        cell.start()
        cell.complete(1.0)
        with pytest.raises(CellTransitionError):
            cell.start()
        with pytest.raises(CellTransitionError):
            cell.fail("late")
