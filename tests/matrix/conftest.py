# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Fixtures for building modes with scripted run functions."""

from pathlib import Path
from typing import Callable, Optional

import pytest

from bendbench.config.schema import SamplingConfig
from bendbench.matrix.models import BenchmarkRow, InputKind, Mode


class ScriptedRun:
    """Mode run function that records calls and returns or raises per benchmark."""

    def __init__(self, outcomes: Optional[dict[str, object]] = None, default: object = 0.5) -> None:
        self.outcomes = outcomes or {}
        self.default = default
        self.calls: list[str] = []

    async def __call__(self, row: BenchmarkRow, config: SamplingConfig) -> float:
        self.calls.append(row.name)
        outcome = self.outcomes.get(row.name, self.default)
        if isinstance(outcome, BaseException):
            raise outcome
        return float(outcome)  # type: ignore[arg-type]


def _make_mode(
    label: str,
    run: Callable,
    input_kind: InputKind = InputKind.HVM,
    threads: int = 1,
) -> Mode:
    return Mode(
        key=f"{label}@{threads}",
        flag=f"--{label}",
        label=label,
        input=input_kind,
        threads=threads,
        run=run,
    )


@pytest.fixture()
def scripted_run() -> type[ScriptedRun]:
    return ScriptedRun


@pytest.fixture()
def make_mode() -> Callable[..., Mode]:
    return _make_mode


@pytest.fixture()
def rows(tmp_path: Path) -> list[BenchmarkRow]:
    return [
        BenchmarkRow("alpha", bend_file=tmp_path / "alpha.bend", hvm_file=tmp_path / "alpha.hvm"),
        BenchmarkRow("beta", hvm_file=tmp_path / "beta.hvm"),
        BenchmarkRow("gamma", bend_file=tmp_path / "gamma.bend"),
    ]
