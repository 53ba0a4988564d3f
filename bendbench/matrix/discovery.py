# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Benchmark discovery.

The layout is one directory per benchmark:

    bench/
    ├── fib/main.bend
    ├── gen_tree/main.hvm
    └── sort/{main.bend, main.hvm}

Directories with neither file are skipped. Names are sorted so the table and
the cell order are the same on every run.
"""

from pathlib import Path

from bendbench.logging.logger import get_logger
from bendbench.matrix.models import BenchmarkRow

logger = get_logger(__name__)

BEND_SOURCE = "main.bend"
HVM_SOURCE = "main.hvm"


def discover_rows(bench_dir: Path) -> list[BenchmarkRow]:
    if not bench_dir.is_dir():
        logger.debug("Benchmark directory missing", extra={"path": str(bench_dir)})
        return []

    rows: list[BenchmarkRow] = []
    for case_dir in sorted(bench_dir.iterdir(), key=lambda p: p.name):
        if not case_dir.is_dir():
            continue

        bend_file = case_dir / BEND_SOURCE
        hvm_file = case_dir / HVM_SOURCE
        has_bend = bend_file.is_file()
        has_hvm = hvm_file.is_file()
        if not has_bend and not has_hvm:
            continue

        rows.append(BenchmarkRow(
            name=case_dir.name,
            bend_file=bend_file if has_bend else None,
            hvm_file=hvm_file if has_hvm else None,
        ))

    logger.debug("Benchmarks discovered", extra={"path": str(bench_dir), "count": len(rows)})
    return rows
