# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Every way a benchmark can be executed.

A ModeDef is a template: flag, label, input kind, which tools it needs, and
an async run function. Instantiating it for a thread count gives a Mode, whose
`run(row, config)` closes over the toolchain, the sampler, the thread count
and the Bend command. Threaded (HVM-backed) modes accept a thread suffix on
the command line:

    --hvm-compiled-T8   or   hvmc8      → 8 threads
    --hvm-compiled      or   hvmc       → 1 thread

Compile steps are done before sampling starts, so timed trials measure only
the run itself.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Optional

from bendbench.config.schema import SamplingConfig, ToolsConfig
from bendbench.errors import ModeParseError
from bendbench.execution.sampling import SamplingController
from bendbench.matrix.models import BenchmarkRow, InputKind, Mode
from bendbench.modes.toolchain import Toolchain
from bendbench.utils.commands import resolve_command


@dataclass(frozen=True)
class ModeContext:
    toolchain: Toolchain
    sampler: SamplingController


DefRun = Callable[[ModeContext, BenchmarkRow, SamplingConfig, int, Optional[str]], Awaitable[float]]


def _bend_inputs(row: BenchmarkRow, bend_cmd: Optional[str]) -> tuple[Path, str]:
    if row.bend_file is None:
        raise RuntimeError("internal: missing bend file")
    if bend_cmd is None:
        raise RuntimeError("internal: missing bend command")
    return row.bend_file, bend_cmd


async def _bend_bun(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, bend_cmd: Optional[str],
) -> float:
    file, cmd = _bend_inputs(row, bend_cmd)
    module = await ctx.toolchain.bend_compile_js_lib(file, cmd)
    return await ctx.toolchain.js_hot_sample(ctx.toolchain.tools.bun_cmd, module, config)


async def _bend_node(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, bend_cmd: Optional[str],
) -> float:
    file, cmd = _bend_inputs(row, bend_cmd)
    module = await ctx.toolchain.bend_compile_js_lib(file, cmd)
    return await ctx.toolchain.js_hot_sample(ctx.toolchain.tools.node_cmd, module, config)


async def _hvm_interpreted(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, hvm_file: Path,
) -> float:
    return await ctx.sampler.sample(
        lambda: ctx.toolchain.hvm_run_file_once(hvm_file, row.name, threads), config,
    )


async def _hvm_compiled(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, hvm_file: Path, flow: str,
) -> float:
    binary = await ctx.toolchain.hvm_compile_bin(hvm_file, row.name, flow, threads)
    return await ctx.sampler.sample(lambda: ctx.toolchain.run_binary_once(binary), config)


async def _bend_hvmi(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, bend_cmd: Optional[str],
) -> float:
    file, cmd = _bend_inputs(row, bend_cmd)
    hvm_file = await ctx.toolchain.bend_compile_hvm(file, "--to-hvm", cmd)
    return await _hvm_interpreted(ctx, row, config, threads, hvm_file)


async def _bend_hvmc(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, bend_cmd: Optional[str],
) -> float:
    file, cmd = _bend_inputs(row, bend_cmd)
    hvm_file = await ctx.toolchain.bend_compile_hvm(file, "--to-hvm", cmd)
    return await _hvm_compiled(ctx, row, config, threads, hvm_file, "bend-hvmc")


async def _bendi_bun(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, bend_cmd: Optional[str],
) -> float:
    file, cmd = _bend_inputs(row, bend_cmd)
    return await ctx.sampler.sample(lambda: ctx.toolchain.bend_run_once_bun(file, cmd), config)


async def _bendi_node(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, bend_cmd: Optional[str],
) -> float:
    file, cmd = _bend_inputs(row, bend_cmd)
    return await ctx.sampler.sample(lambda: ctx.toolchain.bend_run_once_node(file, cmd), config)


async def _bendi_hvmi(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, bend_cmd: Optional[str],
) -> float:
    file, cmd = _bend_inputs(row, bend_cmd)
    hvm_file = await ctx.toolchain.bend_compile_hvm(file, "--to-chk", cmd)
    return await _hvm_interpreted(ctx, row, config, threads, hvm_file)


async def _bendi_hvmc(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, bend_cmd: Optional[str],
) -> float:
    file, cmd = _bend_inputs(row, bend_cmd)
    hvm_file = await ctx.toolchain.bend_compile_hvm(file, "--to-chk", cmd)
    return await _hvm_compiled(ctx, row, config, threads, hvm_file, "bendi-hvmc")


async def _hvmi(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, bend_cmd: Optional[str],
) -> float:
    if row.hvm_file is None:
        raise RuntimeError("internal: missing hvm file")
    return await _hvm_interpreted(ctx, row, config, threads, row.hvm_file)


async def _hvmc(
    ctx: ModeContext, row: BenchmarkRow, config: SamplingConfig, threads: int, bend_cmd: Optional[str],
) -> float:
    if row.hvm_file is None:
        raise RuntimeError("internal: missing hvm file")
    return await _hvm_compiled(ctx, row, config, threads, row.hvm_file, "hvmc")


@dataclass(frozen=True)
class ModeDef:
    flag: str
    label: str
    input: InputKind
    bend_cmd_src: str  # "none", "bend" or "newbend"
    needs_bend: bool
    needs_hvm: bool
    needs_bun: bool
    needs_node: bool
    needs_node_entry: bool
    threaded: bool
    run: DefRun


def _bend_family(prefix: str, source: str) -> list[ModeDef]:
    """The eight Bend modes for one Bend command ("bend" or "newbend")."""
    bend = InputKind.BEND
    return [
        ModeDef(f"--{prefix}-via-bunjs", f"{prefix}-bun", bend, source,
                True, False, True, False, False, False, _bend_bun),
        ModeDef(f"--{prefix}-via-nodejs", f"{prefix}-node", bend, source,
                True, False, False, True, False, False, _bend_node),
        ModeDef(f"--{prefix}-via-hvm-interpreted", f"{prefix}-hvmi", bend, source,
                True, True, False, False, False, True, _bend_hvmi),
        ModeDef(f"--{prefix}-via-hvm-compiled", f"{prefix}-hvmc", bend, source,
                True, True, False, False, False, True, _bend_hvmc),
        ModeDef(f"--{prefix}-interpreted-via-bunjs", f"{prefix}i-bun", bend, source,
                True, False, True, False, False, False, _bendi_bun),
        ModeDef(f"--{prefix}-interpreted-via-nodejs", f"{prefix}i-node", bend, source,
                True, False, True, True, True, False, _bendi_node),
        ModeDef(f"--{prefix}-interpreted-via-hvm-interpreted", f"{prefix}i-hvmi", bend, source,
                True, True, False, False, False, True, _bendi_hvmi),
        ModeDef(f"--{prefix}-interpreted-via-hvm-compiled", f"{prefix}i-hvmc", bend, source,
                True, True, False, False, False, True, _bendi_hvmc),
    ]


MODE_DEFS: list[ModeDef] = [
    *_bend_family("bend", "bend"),
    *_bend_family("newbend", "newbend"),
    ModeDef("--hvm-interpreted", "hvmi", InputKind.HVM, "none",
            False, True, False, False, False, True, _hvmi),
    ModeDef("--hvm-compiled", "hvmc", InputKind.HVM, "none",
            False, True, False, False, False, True, _hvmc),
]


def mode_label(definition: ModeDef, threads: int) -> str:
    if not definition.threaded or threads == 1:
        return definition.label
    return f"{definition.label}{threads}"


def mode_flag(definition: ModeDef, threads: int) -> str:
    if not definition.threaded or threads == 1:
        return definition.flag
    return f"{definition.flag}-T{threads}"


def bend_command(definition: ModeDef, tools: ToolsConfig) -> Optional[str]:
    if definition.bend_cmd_src == "bend":
        return tools.bend_cmd
    if definition.bend_cmd_src == "newbend":
        return tools.new_bend_cmd
    return None


def required_tools(definition: ModeDef, tools: ToolsConfig) -> tuple[str, ...]:
    needed: list[str] = []
    bend_cmd = bend_command(definition, tools)
    if definition.needs_bend and bend_cmd is not None:
        needed.append(bend_cmd)
    if definition.needs_hvm:
        needed.append(tools.hvm_cmd)
    if definition.needs_bun:
        needed.append(tools.bun_cmd)
    if definition.needs_node:
        needed.append(tools.node_cmd)
    return tuple(needed)


class ModeCatalog:
    """Turns CLI tokens into runnable Modes bound to one toolchain and sampler."""

    def __init__(self, context: ModeContext, definitions: Optional[list[ModeDef]] = None) -> None:
        self.context = context
        self.definitions = definitions if definitions is not None else MODE_DEFS

    @property
    def tools(self) -> ToolsConfig:
        return self.context.toolchain.tools

    def make(self, definition: ModeDef, threads: int) -> Mode:
        bend_cmd = bend_command(definition, self.tools)
        context = self.context

        async def run(row: BenchmarkRow, config: SamplingConfig) -> float:
            return await definition.run(context, row, config, threads, bend_cmd)

        return Mode(
            key=f"{definition.label}@{threads}",
            flag=mode_flag(definition, threads),
            label=mode_label(definition, threads),
            input=definition.input,
            threads=threads,
            run=run,
            bend_cmd=bend_cmd,
            required_tools=required_tools(definition, self.tools),
            needs_node_entry=definition.needs_node_entry,
        )

    def parse(self, token: str) -> Optional[Mode]:
        for definition in self.definitions:
            threads = match_token(definition, token)
            if threads is not None:
                return self.make(definition, threads)
        return None

    def parse_all(self, tokens: Iterable[str]) -> list[Mode]:
        """
        Resolve every token, dropping repeats of the same mode and thread count.

        Raises:
            ModeParseError: A token names no mode.
        """
        modes: list[Mode] = []
        seen: set[str] = set()
        for token in tokens:
            mode = self.parse(token)
            if mode is None:
                raise ModeParseError(f"unknown mode: {token}")
            if mode.key in seen:
                continue
            seen.add(mode.key)
            modes.append(mode)
        return modes

    def ensure_dependencies(self, modes: Iterable[Mode]) -> None:
        """
        Check up front that every tool the selected modes need is runnable.

        Raises:
            CommandNotFoundError: A tool (or a Node-runnable Bend entry) is missing.
        """
        modes = list(modes)
        checked: set[str] = set()
        for mode in modes:
            for tool in mode.required_tools:
                if tool not in checked:
                    resolve_command(tool)
                    checked.add(tool)
        for mode in modes:
            if mode.needs_node_entry and mode.bend_cmd is not None:
                self.context.toolchain.bend_entry(mode.bend_cmd)


def match_token(definition: ModeDef, token: str) -> Optional[int]:
    """Thread count if `token` names this definition, else None."""
    if not definition.threaded:
        if token in (definition.flag, definition.label):
            return 1
        return None

    flag_match = re.fullmatch(re.escape(definition.flag) + r"(?:-T([1-9][0-9]*))?", token)
    if flag_match is not None:
        return int(flag_match.group(1) or 1)

    label_match = re.fullmatch(re.escape(definition.label) + r"([1-9][0-9]*)?", token)
    if label_match is not None:
        return int(label_match.group(1) or 1)

    return None


def usage_lines(definitions: Optional[list[ModeDef]] = None) -> list[str]:
    """Two-column listing of flags and labels for help output."""
    definitions = definitions if definitions is not None else MODE_DEFS
    flags = [d.flag + "[-TN]" if d.threaded else d.flag for d in definitions]
    width = max(len(f) for f in flags) + 2
    lines = []
    for definition, flag in zip(definitions, flags):
        name = definition.label + "[N]" if definition.threaded else definition.label
        lines.append("  " + flag.ljust(width) + name)
    return lines


def is_mode_token(token: str, definitions: Optional[list[ModeDef]] = None) -> bool:
    definitions = definitions if definitions is not None else MODE_DEFS
    return any(match_token(definition, token) is not None for definition in definitions)
