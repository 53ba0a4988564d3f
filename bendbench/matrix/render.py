# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
ASCII results table.

    +-----------+-------------+-------------+
    | benchmark |    hvmi     |    hvmc     |
    +-----------+-------------+-------------+
    | fib       |   0.812345s |   0.101234s |
    | sort      |       ERROR |         N/A |
    +-----------+-------------+-------------+

The whole table is re-rendered after every cell transition. On a terminal the
screen is cleared first so the table updates in place; otherwise each
snapshot is appended, separated by a blank line.
"""

import math
import sys
from typing import Literal, Optional, Sequence, TextIO

from bendbench.matrix.engine import ExecutionMatrix
from bendbench.matrix.models import Cell, CellState, Mode

MODE_MIN_WIDTH = 11
NAME_MAX_WIDTH = 28
CLEAR_SCREEN = "\x1b[2J\x1b[H"

Align = Literal["L", "R", "C"]


def fit(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    if width <= 3:
        return text[:width]
    return text[: width - 3] + "..."


def _pad(text: str, width: int, align: Align) -> str:
    if align == "L":
        return text.ljust(width)
    if align == "R":
        return text.rjust(width)
    # str.center puts the extra space on the left, keep it on the right
    remaining = width - len(text)
    if remaining <= 0:
        return text
    left = remaining // 2
    return " " * left + text + " " * (remaining - left)


def hline(widths: Sequence[int]) -> str:
    return "+" + "+".join("-" * (w + 2) for w in widths) + "+"


def tline(cells: Sequence[str], widths: Sequence[int], aligns: Sequence[Align]) -> str:
    parts = [
        " " + _pad(fit(text, width), width, align) + " "
        for text, width, align in zip(cells, widths, aligns)
    ]
    return "|" + "|".join(parts) + "|"


def format_secs(secs: Optional[float], width: int) -> str:
    """Seconds with as many decimals (6 down to 3) as fit in `width`."""
    if secs is None or not math.isfinite(secs) or secs < 0:
        return fit("NaN", width)
    if secs >= 1000:
        return fit(">999.000s", width)
    for digits in range(6, 2, -1):
        text = f"{secs:.{digits}f}s"
        if len(text) <= width:
            return text
    return fit(f"{secs:.3f}s", width)


def format_cell(cell: Cell, width: int) -> str:
    if cell.state is CellState.PENDING:
        return "-".ljust(width)
    if cell.state is CellState.RUNNING:
        return "...".ljust(width)
    if cell.state is CellState.DONE:
        return format_secs(cell.secs, width).rjust(width)
    if cell.state is CellState.ERROR:
        return "ERROR".rjust(width)
    if cell.state is CellState.TIMEOUT:
        return "TIMEOUT".rjust(width)
    return "N/A".rjust(width)


def mode_width(mode: Mode) -> int:
    return max(MODE_MIN_WIDTH, len(mode.label))


def name_width(matrix: ExecutionMatrix) -> int:
    longest = max([len("benchmark"), *(len(row.name) for row in matrix.rows)])
    return min(NAME_MAX_WIDTH, longest)


def render_table(matrix: ExecutionMatrix) -> str:
    widths = [name_width(matrix), *(mode_width(m) for m in matrix.modes)]
    mode_count = len(matrix.modes)

    lines = [hline(widths)]
    lines.append(tline(
        ["benchmark", *(m.label for m in matrix.modes)],
        widths,
        ["L", *(["C"] * mode_count)],
    ))
    lines.append(hline(widths))

    for row in matrix.rows:
        cells = [row.name]
        for mode in matrix.modes:
            cells.append(format_cell(matrix.cell(row, mode), mode_width(mode)))
        lines.append(tline(cells, widths, ["L", *(["R"] * mode_count)]))

    lines.append(hline(widths))
    return "\n".join(lines)


class TableRedrawer:
    """ExecutionMatrix on_change hook that writes the table to a stream."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream if stream is not None else sys.stdout

    def __call__(self, matrix: ExecutionMatrix) -> None:
        table = render_table(matrix)
        is_tty = getattr(self.stream, "isatty", lambda: False)()
        if is_tty:
            self.stream.write(CLEAR_SCREEN + table + "\n")
        else:
            self.stream.write(table + "\n\n")
        self.stream.flush()
