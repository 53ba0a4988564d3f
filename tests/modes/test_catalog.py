# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Tests for the mode catalog.

Covers token parsing (flags, labels, thread suffixes), de-duplication,
dependency checks and the run functions wired through a recording supervisor.
"""

import typing
from pathlib import Path
from typing import Optional

import pytest

from bendbench.config.schema import SamplingConfig, ToolsConfig
from bendbench.errors import CommandNotFoundError, ModeParseError
from bendbench.execution.sampling import SamplingController
from bendbench.matrix.models import BenchmarkRow, InputKind
from bendbench.modes.catalog import (
    MODE_DEFS,
    ModeCatalog,
    ModeContext,
    is_mode_token,
    match_token,
    required_tools,
    usage_lines,
)
from bendbench.modes.toolchain import Toolchain


@pytest.fixture()
def catalog(toolchain: Toolchain, fake_clock) -> ModeCatalog:
    return ModeCatalog(ModeContext(toolchain=toolchain, sampler=SamplingController(fake_clock)))


def _definition(label: str):
    return next(d for d in MODE_DEFS if d.label == label)


class TestDefinitions:
    def test_catalog_size(self) -> None:
        assert len(MODE_DEFS) == 18

    def test_flags_and_labels_are_unique(self) -> None:
        assert len({d.flag for d in MODE_DEFS}) == 18
        assert len({d.label for d in MODE_DEFS}) == 18

    def test_only_hvm_backed_modes_are_threaded(self) -> None:
        threaded = {d.label for d in MODE_DEFS if d.threaded}
        assert "hvmi" in threaded
        assert "bendi-hvmc" in threaded
        assert "bend-bun" not in threaded
        assert "newbendi-node" not in threaded

    def test_required_tools(self) -> None:
        tools = ToolsConfig()
        assert required_tools(_definition("hvmc"), tools) == ("hvm",)
        assert required_tools(_definition("bend-hvmi"), tools) == ("bend", "hvm")
        assert required_tools(_definition("newbendi-node"), tools) == ("newbend", "bun", "node")

    def test_run_functions_share_one_signature(self) -> None:
        expected = {
            "ctx": ModeContext,
            "row": BenchmarkRow,
            "config": SamplingConfig,
            "threads": int,
            "bend_cmd": Optional[str],
            "return": float,
        }
        for definition in MODE_DEFS:
            assert typing.get_type_hints(definition.run) == expected, definition.label


class TestTokenMatching:
    @pytest.mark.parametrize(
        "token, threads",
        [
            ("--hvm-compiled", 1),
            ("hvmc", 1),
            ("--hvm-compiled-T1", 1),
            ("hvmc1", 1),
            ("--hvm-compiled-T8", 8),
            ("hvmc8", 8),
            ("hvmc16", 16),
        ],
    )
    def test_threaded_tokens(self, token: str, threads: int) -> None:
        assert match_token(_definition("hvmc"), token) == threads

    @pytest.mark.parametrize("token", ["hvmc0", "--hvm-compiled-T0", "hvmc-8", "--hvm-compiled8", "hvm"])
    def test_rejected_threaded_tokens(self, token: str) -> None:
        assert match_token(_definition("hvmc"), token) is None

    def test_unthreaded_modes_reject_suffixes(self) -> None:
        definition = _definition("bend-bun")
        assert match_token(definition, "bend-bun") == 1
        assert match_token(definition, "--bend-via-bunjs") == 1
        assert match_token(definition, "bend-bun4") is None
        assert match_token(definition, "--bend-via-bunjs-T4") is None

    def test_is_mode_token(self) -> None:
        assert is_mode_token("--bend-interpreted-via-hvm-compiled-T2")
        assert is_mode_token("newbend-node")
        assert not is_mode_token("--timeout")
        assert not is_mode_token("run")


class TestParse:
    def test_thread_suffix_shapes_the_mode(self, catalog: ModeCatalog) -> None:
        mode = catalog.parse("hvmc8")

        assert mode is not None
        assert mode.threads == 8
        assert mode.label == "hvmc8"
        assert mode.flag == "--hvm-compiled-T8"
        assert mode.key == "hvmc@8"
        assert mode.input is InputKind.HVM

    def test_single_thread_drops_suffix(self, catalog: ModeCatalog) -> None:
        mode = catalog.parse("--hvm-compiled-T1")
        assert mode is not None
        assert (mode.label, mode.flag, mode.key) == ("hvmc", "--hvm-compiled", "hvmc@1")

    def test_bend_commands_follow_family(self, catalog: ModeCatalog) -> None:
        bend = catalog.parse("bend-hvmi")
        newbend = catalog.parse("newbend-hvmi")
        hvm = catalog.parse("hvmi")

        assert bend is not None and bend.bend_cmd == "bend"
        assert newbend is not None and newbend.bend_cmd == "newbend"
        assert hvm is not None and hvm.bend_cmd is None
        assert bend.input is InputKind.BEND

    def test_unknown_token_is_none(self, catalog: ModeCatalog) -> None:
        assert catalog.parse("bogus") is None

    def test_parse_all_keeps_order_and_drops_repeats(self, catalog: ModeCatalog) -> None:
        modes = catalog.parse_all(["hvmi", "--hvm-interpreted", "hvmi4", "bend-bun", "hvmi4"])
        assert [m.key for m in modes] == ["hvmi@1", "hvmi@4", "bend-bun@1"]

    def test_parse_all_rejects_unknown(self, catalog: ModeCatalog) -> None:
        with pytest.raises(ModeParseError, match="unknown mode: nope"):
            catalog.parse_all(["hvmi", "nope"])


class TestUsage:
    def test_one_line_per_definition(self) -> None:
        lines = usage_lines()
        assert len(lines) == len(MODE_DEFS)
        assert all(line.startswith("  --") for line in lines)

    def test_threaded_modes_show_suffixes(self) -> None:
        line = next(line for line in usage_lines() if "--hvm-compiled" in line)
        assert "--hvm-compiled[-TN]" in line
        assert line.rstrip().endswith("hvmc[N]")


class TestDependencies:
    def test_missing_tool_raises(self, recording_supervisor, work_dir, tmp_path: Path, fake_clock) -> None:
        tools = ToolsConfig(hvm_cmd=str(tmp_path / "missing" / "hvm"))
        toolchain = Toolchain(recording_supervisor, tools, work_dir, tmp_path)
        catalog = ModeCatalog(ModeContext(toolchain, SamplingController(fake_clock)))

        with pytest.raises(CommandNotFoundError):
            catalog.ensure_dependencies(catalog.parse_all(["hvmi"]))

    def test_present_tool_passes(self, recording_supervisor, work_dir, tmp_path: Path, fake_clock) -> None:
        hvm = tmp_path / "bin" / "hvm"
        hvm.parent.mkdir()
        hvm.write_text("#!/bin/sh\n", encoding="utf-8")
        hvm.chmod(0o755)
        toolchain = Toolchain(recording_supervisor, ToolsConfig(hvm_cmd=str(hvm)), work_dir, tmp_path)
        catalog = ModeCatalog(ModeContext(toolchain, SamplingController(fake_clock)))

        catalog.ensure_dependencies(catalog.parse_all(["hvmi", "hvmc4"]))


class TestRun:
    CONFIG = SamplingConfig(warmup=1, min_runs=3, max_runs=3, min_secs=100.0)

    @pytest.mark.asyncio
    async def test_interpreted_hvm_samples_each_call(self, catalog: ModeCatalog, recording_supervisor, fake_clock) -> None:
        def hvm(executable: str, args: list[str]) -> str:
            fake_clock.advance(0.25)
            return ""

        recording_supervisor.responses["hvm"] = hvm
        row = BenchmarkRow("fib", hvm_file=Path("/bench/fib/main.hvm"))
        mode = catalog.parse("hvmi2")
        assert mode is not None

        mean = await mode.run(row, self.CONFIG)

        assert mean == pytest.approx(0.25)
        calls = recording_supervisor.calls_to("hvm")
        assert len(calls) == 4
        assert calls[0] == ["/bench/fib/main.hvm", "-S", "-T2"]

    @pytest.mark.asyncio
    async def test_compiled_hvm_builds_then_runs_binary(self, catalog: ModeCatalog, recording_supervisor) -> None:
        row = BenchmarkRow("fib", hvm_file=Path("/bench/fib/main.hvm"))
        mode = catalog.parse("hvmc")
        assert mode is not None

        await mode.run(row, self.CONFIG)

        builds = recording_supervisor.calls_to("hvm")
        assert len(builds) == 1
        assert "-o" in builds[0]
        binary = builds[0][-1]
        assert len(recording_supervisor.calls_to(binary)) == 4

    @pytest.mark.asyncio
    async def test_bend_via_hvm_compiles_once(self, catalog: ModeCatalog, recording_supervisor) -> None:
        recording_supervisor.responses["bend"] = "@main = 0\n"
        row = BenchmarkRow("fib", bend_file=Path("/bench/fib/main.bend"))
        mode = catalog.parse("bendi-hvmi")
        assert mode is not None

        await mode.run(row, self.CONFIG)

        assert recording_supervisor.calls_to("bend") == [["/bench/fib/main.bend", "--to-chk"]]
        assert len(recording_supervisor.calls_to("hvm")) == 4
