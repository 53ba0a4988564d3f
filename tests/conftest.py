# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Shared pytest fixtures for bendbench tests.

Fixtures here are available to every test file automatically.
We keep them minimal: config files, a fake clock, and a benchmark tree.
"""

import textwrap
from pathlib import Path

import pytest

from bendbench.execution.processes import ActiveProcessRegistry


@pytest.fixture()
def tmp_config_file(tmp_path: Path) -> Path:
    """A small valid config that overrides one field in every section."""
    config_content = textwrap.dedent("""\
        global:
          config_version: "1.0.0"
          project_name: "bendbench-test"
          log_level: "DEBUG"
        sampling:
          warmup: 0
          min_runs: 2
          max_runs: 5
          min_secs: 0.5
        tools:
          hvm_cmd: "/opt/hvm/bin/hvm"
        runner:
          timeout_seconds: 30
    """)
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def invalid_config_file(tmp_path: Path) -> Path:
    """Valid YAML that fails schema validation (min_runs above max_runs)."""
    config_content = textwrap.dedent("""\
        sampling:
          min_runs: 10
          max_runs: 2
    """)
    config_file = tmp_path / "invalid_config.yaml"
    config_file.write_text(config_content, encoding="utf-8")
    return config_file


@pytest.fixture()
def broken_yaml_file(tmp_path: Path) -> Path:
    """A file that isn't valid YAML at all."""
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("{{not: yaml: at: all:::", encoding="utf-8")
    return config_file


class FakeClock:
    """Clock whose time only moves when a test advances it."""

    def __init__(self) -> None:
        self.ns = 0

    def now_ns(self) -> int:
        return self.ns

    def advance(self, seconds: float) -> None:
        self.ns += int(round(seconds * 1_000_000_000))


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def registry() -> ActiveProcessRegistry:
    return ActiveProcessRegistry()


@pytest.fixture()
def bench_tree(tmp_path: Path) -> Path:
    """
    A bench/ directory with three benchmarks:

        alpha/   main.bend + main.hvm
        beta/    main.hvm only
        gamma/   main.bend only
        notes/   neither (skipped)
    """
    bench = tmp_path / "bench"
    for name, files in {
        "alpha": ["main.bend", "main.hvm"],
        "beta": ["main.hvm"],
        "gamma": ["main.bend"],
        "notes": ["README.md"],
    }.items():
        (bench / name).mkdir(parents=True)
        for file_name in files:
            (bench / name / file_name).write_text("def main():\n  return 0\n", encoding="utf-8")
    return bench
