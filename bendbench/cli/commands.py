# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Subcommand handlers for the bendbench CLI.

Each function here corresponds to one subcommand and returns an exit code.
The results table and the short header above it go to stdout; everything
else (progress, diagnostics, failures) goes through the structured logger to
stderr.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from bendbench.cli.exit_codes import CONFIG_ERROR, RUNTIME_ERROR, SUCCESS, USER_ERROR
from bendbench.config.environment import apply_env_overrides
from bendbench.config.exceptions import ConfigError
from bendbench.config.loader import load_config, override_config
from bendbench.config.schema import BenchConfig
from bendbench.errors import CommandNotFoundError, ModeParseError
from bendbench.execution.processes import ActiveProcessRegistry
from bendbench.execution.sampling import SamplingController
from bendbench.execution.supervisor import ProcessSupervisor
from bendbench.logging.logger import get_logger
from bendbench.matrix.discovery import discover_rows
from bendbench.matrix.engine import ExecutionMatrix
from bendbench.matrix.render import TableRedrawer, render_table
from bendbench.modes.catalog import ModeCatalog, ModeContext, usage_lines
from bendbench.modes.toolchain import Toolchain
from bendbench.reporting.writer import write_report
from bendbench.runtime.bootstrap import bootstrap
from bendbench.runtime.shutdown import ShutdownGuard
from bendbench.utils.paths import WorkDir


def format_usage() -> str:
    lines = [
        "usage: bendbench run [--timeout SECS] <mode> [mode ...]",
        "",
        "modes:",
        *usage_lines(),
        "",
        "name aliases:",
        "  labels work too (example: hvmi hvmi4 hvmc8 bend-bun)",
        "",
        "env overrides:",
        "  BEND_CMD, NEW_BEND_CMD, HVM_CMD, BUN_CMD, NODE_CMD",
        "  BEND_NODE_ENTRY, NEW_BEND_NODE_ENTRY",
        "  BENCH_WARMUP, BENCH_MIN_RUNS, BENCH_MAX_RUNS, BENCH_MIN_SECS, BENCH_TIMEOUT",
        "",
    ]
    return "\n".join(lines)


def _cli_overrides(args: argparse.Namespace) -> dict[str, dict[str, Any]]:
    sampling: dict[str, Any] = {}
    runner: dict[str, Any] = {}

    for field in ("warmup", "min_runs", "max_runs", "min_secs"):
        value = getattr(args, field, None)
        if value is not None:
            sampling[field] = value

    if getattr(args, "timeout", None) is not None:
        runner["timeout_seconds"] = args.timeout
    if getattr(args, "bench_dir", None) is not None:
        runner["bench_directory"] = args.bench_dir

    return {"sampling": sampling, "runner": runner}


def resolve_config(args: argparse.Namespace) -> BenchConfig:
    """
    File, then environment, then command line; each layer revalidated.

    Raises:
        ConfigError: Any layer is unreadable or invalid.
    """
    config_path = Path(args.config) if args.config is not None else None
    config = load_config(config_path)
    config = apply_env_overrides(config)
    return override_config(config, _cli_overrides(args), origin="command line")


def _load_and_bootstrap(
    args: argparse.Namespace,
    command_name: str,
) -> tuple[int, Optional[BenchConfig], logging.Logger]:
    """
    The shared setup every command needs: resolve config, run bootstrap.

    Returns (exit_code, config, logger). If exit_code is not SUCCESS the
    caller returns it immediately.
    """
    logger = get_logger(f"bendbench.cli.{command_name}", log_level=args.log_level or "WARNING")

    try:
        config = resolve_config(args)
    except ConfigError as err:
        logger.error("Configuration error", extra={"command": command_name, "error": str(err)})
        return CONFIG_ERROR, None, logger

    bootstrap(config.global_config, args.log_level)
    return SUCCESS, config, logger


def handle_run(args: argparse.Namespace) -> int:
    """Run every selected mode against every discovered benchmark."""
    tokens = list(args.modes or [])
    if not tokens:
        sys.stdout.write(format_usage())
        return USER_ERROR

    exit_code, config, logger = _load_and_bootstrap(args, "run")
    if exit_code != SUCCESS or config is None:
        return exit_code

    root_dir = Path.cwd()
    rows = discover_rows(root_dir / config.runner.bench_directory)
    if not rows:
        logger.error(
            "No benchmarks found",
            extra={"bench_directory": str(root_dir / config.runner.bench_directory)},
        )
        return USER_ERROR

    registry = ActiveProcessRegistry()
    supervisor = ProcessSupervisor(
        registry,
        timeout_seconds=config.runner.timeout_seconds,
        max_output_bytes=config.runner.max_output_bytes,
        default_cwd=root_dir,
    )
    parent = Path(config.runner.work_directory) if config.runner.work_directory else None
    work_dir = WorkDir(parent)

    with ShutdownGuard(registry, work_dir):
        toolchain = Toolchain(supervisor, config.tools, work_dir, root_dir)
        catalog = ModeCatalog(ModeContext(toolchain=toolchain, sampler=SamplingController()))

        try:
            modes = catalog.parse_all(tokens)
        except ModeParseError as err:
            logger.error("Invalid mode", extra={"error": str(err)})
            sys.stdout.write(format_usage())
            return USER_ERROR

        try:
            catalog.ensure_dependencies(modes)
        except CommandNotFoundError as err:
            logger.error("Missing tool", extra={"error": str(err)})
            return CONFIG_ERROR

        sys.stdout.write(f"timeout: {config.runner.timeout_seconds:.3f}s\n")
        sys.stdout.write(config.sampling.describe() + "\n")

        if args.dry_run:
            sys.stdout.write(render_table(ExecutionMatrix(rows, modes)) + "\n")
            return SUCCESS

        try:
            matrix = ExecutionMatrix(rows, modes, on_change=TableRedrawer(sys.stdout))
            outcome = asyncio.run(matrix.run(config.sampling))

            if args.output is not None:
                write_report(
                    outcome,
                    Path(args.output),
                    config_snapshot=config.model_dump(by_alias=True, mode="json"),
                    table=render_table(matrix),
                )
        except Exception as err:
            logger.error("Benchmark run failed", extra={"error": str(err)}, exc_info=True)
            return RUNTIME_ERROR

        logger.info(
            "Benchmark run finished",
            extra={"cells": len(outcome.records), "failed": outcome.failed},
        )
        return outcome.exit_code


def handle_modes(args: argparse.Namespace) -> int:
    """List every mode flag and label."""
    sys.stdout.write("\n".join(usage_lines()) + "\n")
    return SUCCESS


def handle_info(args: argparse.Namespace) -> int:
    """Display environment, resolved configuration and tool locations."""
    exit_code, config, logger = _load_and_bootstrap(args, "info")
    if exit_code != SUCCESS or config is None:
        return exit_code

    from bendbench import __version__
    from bendbench.runtime.environment import get_system_info, resolve_tools

    system_info = get_system_info()
    lines = [
        f"bendbench: {__version__}",
        f"python: {system_info.python_version}",
        f"platform: {system_info.platform} ({system_info.architecture})",
        f"host: {system_info.hostname}",
        f"timeout: {config.runner.timeout_seconds:.3f}s",
        config.sampling.describe(),
    ]
    for name, path in resolve_tools(config.tools).items():
        lines.append(f"{name}: {path or 'not found'}")

    sys.stdout.write("\n".join(lines) + "\n")
    logger.info("System information", extra={"version": __version__, "config": args.config})
    return SUCCESS
