# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Which binary to call, with which flags, for each step.

Every external call goes through the ProcessSupervisor. Every expensive
one-time step (Bend → HVM, Bend → JS, HVM → native binary, bundling the Bend
CLI for Node) goes through an ArtifactCache, so modes that share an artifact
build it once per run. Compile failures propagate as the supervisor's
InvocationError subclasses; a compile that times out therefore shows up as a
TIMEOUT cell, not a generic error.
"""

from pathlib import Path
from typing import Optional

from bendbench.config.schema import SamplingConfig, ToolsConfig
from bendbench.errors import CommandNotFoundError
from bendbench.execution.cache import ArtifactCache
from bendbench.execution.supervisor import ProcessSupervisor
from bendbench.logging.logger import get_logger
from bendbench.modes.javascript import RUNNER_SOURCE, parse_bench_secs, strip_run_main
from bendbench.utils.commands import resolve_command
from bendbench.utils.filesystem import atomic_write
from bendbench.utils.paths import WorkDir

logger = get_logger(__name__)

SCRIPT_SUFFIXES = frozenset({".ts", ".js", ".mjs", ".cjs"})


def hvm_extra_args(name: str) -> list[str]:
    """Extra HVM flags for benchmark families that need a collapse mode."""
    if name.startswith("gen_"):
        return ["-C1"]
    if name.startswith("collapse_"):
        return ["-C"]
    return []


def bench_tag(file: Path) -> str:
    """Benchmark name from its source path (the parent directory)."""
    return file.parent.name


class Toolchain:
    """
    Everything a mode needs to build and run one benchmark.

    Args:
        supervisor: Runs every external command.
        tools: Executable names/paths for bend, hvm, bun, node.
        work_dir: Scratch directory for generated artifacts.
        root_dir: Working directory for spawned commands.
    """

    def __init__(
        self,
        supervisor: ProcessSupervisor,
        tools: ToolsConfig,
        work_dir: WorkDir,
        root_dir: Path,
    ) -> None:
        self.supervisor = supervisor
        self.tools = tools
        self.work_dir = work_dir
        self.root_dir = root_dir

        self.bend_js_cache = ArtifactCache("bend-js")
        self.bend_hvm_cache = ArtifactCache("bend-hvm")
        self.hvm_bin_cache = ArtifactCache("hvm-bin")
        self.node_bundle_cache = ArtifactCache("node-bundle")
        self.runner_cache = ArtifactCache("js-runner")
        self._entries: dict[str, Path] = {}

    async def _run(self, executable: str, args: list[str]) -> str:
        return await self.supervisor.check_output(executable, args, cwd=self.root_dir)

    # HVM

    async def hvm_run_file_once(self, file: Path, name: str, threads: int) -> None:
        args = [str(file), "-S", f"-T{threads}", *hvm_extra_args(name)]
        await self._run(self.tools.hvm_cmd, args)

    async def run_binary_once(self, binary: Path) -> None:
        await self._run(str(binary), [])

    async def hvm_compile_bin(self, file: Path, name: str, flow: str, threads: int) -> Path:
        extra = hvm_extra_args(name)
        key = "|".join([flow, str(threads), str(file), " ".join(extra)])

        async def build() -> Path:
            out = self.work_dir.file([flow, str(threads), bench_tag(file)], ".bin")
            args = [str(file), "-S", f"-T{threads}", *extra, "-o", str(out)]
            await self._run(self.tools.hvm_cmd, args)
            return out

        return await self.hvm_bin_cache.get_or_build(key, build)

    # Bend

    def node_entry_override(self, bend_cmd: str) -> Optional[str]:
        if bend_cmd == self.tools.bend_cmd:
            return self.tools.bend_node_entry
        if bend_cmd == self.tools.new_bend_cmd:
            return self.tools.new_bend_node_entry
        return None

    def bend_entry(self, bend_cmd: str) -> Path:
        """
        Script behind a Bend command, for runtimes that execute it directly.

        Raises:
            CommandNotFoundError: The command does not resolve, or resolves to
                something that is not a JS/TS script and no override is set.
        """
        cached = self._entries.get(bend_cmd)
        if cached is not None:
            return cached

        exe = resolve_command(bend_cmd)
        if exe.suffix.lower() not in SCRIPT_SUFFIXES:
            raise CommandNotFoundError(
                f"could not derive script entry from bend command: {exe} (set *_BEND_NODE_ENTRY)"
            )

        override = self.node_entry_override(bend_cmd)
        entry = Path(override) if override else exe
        self._entries[bend_cmd] = entry
        return entry

    async def bend_node_bundle(self, bend_cmd: str) -> Path:
        async def build() -> Path:
            entry = self.bend_entry(bend_cmd)
            out = self.work_dir.file(["bend", "node", "bundle", bend_cmd], ".mjs")
            await self._run(self.tools.bun_cmd, [
                "build",
                str(entry),
                "--target=node",
                "--format=esm",
                "--outfile",
                str(out),
            ])
            return out

        return await self.node_bundle_cache.get_or_build(bend_cmd, build)

    async def bend_compile_hvm(self, file: Path, cli_flag: str, bend_cmd: str) -> Path:
        """Compile with `--to-hvm` (native Bend) or `--to-chk` (interpreted Bend)."""
        key = "|".join([bend_cmd, cli_flag, str(file)])

        async def build() -> Path:
            out = await self._run(bend_cmd, [str(file), cli_flag])
            target = self.work_dir.file(["bend", cli_flag, bend_cmd, bench_tag(file)], ".hvm")
            return atomic_write(target, out)

        return await self.bend_hvm_cache.get_or_build(key, build)

    async def bend_compile_js_lib(self, file: Path, bend_cmd: str) -> Path:
        """Compile to a JS module that exports main without running it."""
        key = "|".join([bend_cmd, str(file)])

        async def build() -> Path:
            js = await self._run(bend_cmd, [str(file), "--to-js"])
            target = self.work_dir.file(["bend", "js", bend_cmd, bench_tag(file)], ".mjs")
            return atomic_write(target, strip_run_main(js))

        return await self.bend_js_cache.get_or_build(key, build)

    async def bend_run_once_bun(self, file: Path, bend_cmd: str) -> None:
        entry = self.bend_entry(bend_cmd)
        await self._run(self.tools.bun_cmd, ["run", str(entry), str(file)])

    async def bend_run_once_node(self, file: Path, bend_cmd: str) -> None:
        bundle = await self.bend_node_bundle(bend_cmd)
        await self._run(self.tools.node_cmd, [str(bundle), str(file)])

    # JS hot runs

    async def runner_path(self) -> Path:
        def build() -> Path:
            return atomic_write(self.work_dir.file(["js", "runner"], ".mjs"), RUNNER_SOURCE)

        return await self.runner_cache.get_or_build("runner", build)

    async def js_hot_sample(self, runtime_cmd: str, module: Path, config: SamplingConfig) -> float:
        """Sample `main` of `module` inside the JS runtime and return its mean seconds."""
        runner = await self.runner_path()
        out = await self._run(runtime_cmd, [
            str(runner),
            str(module),
            str(config.warmup),
            str(config.min_runs),
            str(config.max_runs),
            str(config.min_secs),
        ])
        return parse_bench_secs(out)
