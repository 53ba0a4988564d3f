# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Benchmark report writer.

Writes the outcome of one matrix run to disk:

    <output_dir>/
    ├── results.json          — one record per cell, plus a summary
    ├── report.txt            — the final table and every failure message
    └── config_snapshot.yaml  — the resolved config used for this run

results.json is the authoritative output; report.txt is the same data laid
out for reading.
"""

import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import yaml

from bendbench.logging.logger import get_logger
from bendbench.matrix.engine import MatrixOutcome
from bendbench.matrix.models import CellState
from bendbench.utils.filesystem import atomic_write

logger = get_logger(__name__)


def summarize(outcome: MatrixOutcome) -> dict[str, int]:
    summary = {state.value: outcome.count(state) for state in CellState}
    summary["total"] = len(outcome.records)
    summary["exit_code"] = outcome.exit_code
    return summary


def write_report(
    outcome: MatrixOutcome,
    output_dir: Path,
    config_snapshot: Optional[dict[str, object]] = None,
    table: Optional[str] = None,
) -> Path:
    """
    Write results.json, report.txt and (when given) config_snapshot.yaml.

    Returns the output directory.
    """
    output_dir.mkdir(parents=True, exist_ok=True)

    payload = {
        "cells": [asdict(record) for record in outcome.records],
        "summary": summarize(outcome),
    }
    atomic_write(
        output_dir / "results.json",
        json.dumps(payload, indent=2, sort_keys=True, default=str) + "\n",
    )

    atomic_write(output_dir / "report.txt", format_report_text(outcome, table))

    if config_snapshot is not None:
        atomic_write(
            output_dir / "config_snapshot.yaml",
            yaml.dump(config_snapshot, default_flow_style=False, sort_keys=True),
        )

    logger.info("Benchmark report written", extra={"output_dir": str(output_dir)})
    return output_dir


def format_report_text(outcome: MatrixOutcome, table: Optional[str] = None) -> str:
    timestamp = datetime.now(tz=timezone.utc).isoformat()
    summary = summarize(outcome)
    lines: list[str] = [
        "=" * 60,
        "BENDBENCH REPORT",
        f"Generated: {timestamp}",
        "=" * 60,
        "",
    ]

    if table:
        lines.extend([table.rstrip("\n"), ""])

    lines.extend([
        "--- SUMMARY ---",
        f"Cells: {summary['total']}",
        f"Done: {summary[CellState.DONE.value]}",
        f"Error: {summary[CellState.ERROR.value]}",
        f"Timeout: {summary[CellState.TIMEOUT.value]}",
        f"N/A: {summary[CellState.NOT_APPLICABLE.value]}",
    ])

    failures = [r for r in outcome.records if r.state in (CellState.ERROR.value, CellState.TIMEOUT.value)]
    if failures:
        lines.extend(["", "--- FAILURES ---"])
        for record in failures:
            lines.append(f"[{record.state}] {record.benchmark} / {record.label}")
            for message_line in (record.message or "").splitlines() or [""]:
                lines.append(f"  {message_line}")

    lines.extend(["", "=" * 60])
    return "\n".join(lines) + "\n"
