# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI entrypoint for bendbench.

Every operation is a subcommand of `bendbench`. The global options
(--config, --log-level, --dry-run) are inherited by every subcommand through
argparse's parent parser mechanism.

Mode tokens such as `--hvm-compiled-T8` look like options to argparse, so
they are pulled out of the `run` arguments before parsing and handed back as
the `modes` list, in the order given.

Usage:
    bendbench run hvmi hvmc8 --bend-via-bunjs
    bendbench run --timeout 60 --min-runs 5 --max-runs 20 hvmc
    bendbench modes
    bendbench info --config configs/default.yaml
"""

import argparse
import sys
from typing import Optional, Sequence

from bendbench.cli.commands import handle_info, handle_modes, handle_run
from bendbench.cli.exit_codes import USER_ERROR
from bendbench.modes.catalog import is_mode_token


def _build_global_parser() -> argparse.ArgumentParser:
    """
    Build the parent parser with global options.

    add_help=False so help text doesn't collide between the parent and the
    subcommand parsers.
    """
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML configuration file.",
    )
    parent.add_argument(
        "--log-level",
        type=str,
        default=None,
        dest="log_level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging verbosity level (default: from config, else WARNING).",
    )
    parent.add_argument(
        "--dry-run",
        action="store_true",
        default=False,
        dest="dry_run",
        help="Resolve benchmarks, modes and tools, print the empty table, run nothing.",
    )
    return parent


def _add_run_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Max seconds per spawned command (default: 1200).",
    )
    parser.add_argument("--warmup", type=int, default=None, help="Untimed calls per cell.")
    parser.add_argument("--min-runs", type=int, default=None, dest="min_runs")
    parser.add_argument("--max-runs", type=int, default=None, dest="max_runs")
    parser.add_argument("--min-secs", type=float, default=None, dest="min_secs")
    parser.add_argument(
        "--bench-dir",
        type=str,
        default=None,
        dest="bench_dir",
        help="Directory holding one subdirectory per benchmark.",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write results.json, report.txt and config_snapshot.yaml here.",
    )
    parser.add_argument("modes", nargs="*", help="Mode flags or labels (see `bendbench modes`).")


def _register_subcommands(
    subparsers: argparse._SubParsersAction,  # type: ignore[type-arg]
    parent: argparse.ArgumentParser,
) -> None:
    """Register all subcommands with their handler functions via set_defaults(func=...)."""
    commands = [
        ("run", "Benchmark the selected modes.", handle_run),
        ("modes", "List every mode flag and label.", handle_modes),
        ("info", "Display environment, config and tool info.", handle_info),
    ]

    for name, help_text, handler in commands:
        parser = subparsers.add_parser(name, parents=[parent], help=help_text)
        parser.set_defaults(func=handler)

    _add_run_arguments(subparsers.choices["run"])


def split_mode_tokens(argv: Sequence[str]) -> tuple[list[str], list[str]]:
    """Separate mode tokens following the `run` subcommand from everything else."""
    argv = list(argv)
    if "run" not in argv:
        return [], argv

    start = argv.index("run") + 1
    modes = [token for token in argv[start:] if is_mode_token(token)]
    rest = argv[:start] + [token for token in argv[start:] if not is_mode_token(token)]
    return modes, rest


def build_parser() -> argparse.ArgumentParser:
    parent = _build_global_parser()
    root_parser = argparse.ArgumentParser(
        prog="bendbench",
        description="bendbench: benchmark Bend and HVM across execution modes.",
        parents=[parent],
    )
    subparsers = root_parser.add_subparsers(dest="command")
    _register_subcommands(subparsers, parent)
    return root_parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """
    Main CLI entrypoint; pyproject.toml's [project.scripts] points here.

    If no subcommand is given, shows help and exits with USER_ERROR.
    """
    argv = list(sys.argv[1:] if argv is None else argv)
    mode_tokens, rest = split_mode_tokens(argv)

    root_parser = build_parser()
    args = root_parser.parse_args(rest)

    if not hasattr(args, "func") or args.func is None:
        root_parser.print_help()
        sys.exit(USER_ERROR)

    if args.command == "run":
        args.modes = mode_tokens + list(args.modes)

    exit_code = args.func(args)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
