# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
CLI smoke tests.

CLI tests must verify:
  - commands execute
  - exit codes are correct
  - help text exists

We use subprocess to test the actual CLI entrypoint the way a user would.
This catches issues that unit tests miss, like broken imports or entrypoint
registration.
"""

import os
import subprocess
import sys
from pathlib import Path
from typing import Optional

import pytest

from bendbench.cli.main import main, split_mode_tokens


def _run_cli(
    *args: str,
    cwd: Optional[Path] = None,
    env: Optional[dict[str, str]] = None,
) -> subprocess.CompletedProcess[str]:
    """Run `bendbench` with the given arguments and capture output."""
    environ = {k: v for k, v in os.environ.items() if not k.startswith("BENCH_")}
    environ.update(env or {})
    return subprocess.run(
        [sys.executable, "-m", "bendbench.cli.main", *args],
        capture_output=True,
        text=True,
        timeout=30,
        cwd=cwd,
        env=environ,
    )


@pytest.fixture()
def fake_hvm(tmp_path: Path) -> Path:
    hvm = tmp_path / "tools" / "hvm"
    hvm.parent.mkdir()
    hvm.write_text("#!/bin/sh\nexit 0\n", encoding="utf-8")
    hvm.chmod(0o755)
    return hvm


class TestHelpTexts:
    """Every subcommand must have working --help output."""

    @pytest.mark.parametrize("subcommand", ["run", "modes", "info"])
    def test_subcommand_help_exits_zero(self, subcommand: str) -> None:
        result = _run_cli(subcommand, "--help")
        assert result.returncode == 0
        assert "usage" in result.stdout.lower()

    def test_root_help_exits_with_user_error(self) -> None:
        """Running bendbench with no args should show help and exit with USER_ERROR (1)."""
        result = _run_cli()
        assert result.returncode == 1


class TestSubcommandExecution:
    def test_modes_lists_flags(self) -> None:
        result = _run_cli("modes")
        assert result.returncode == 0
        assert "--hvm-compiled[-TN]" in result.stdout
        assert "bend-bun" in result.stdout

    def test_info_runs_without_config(self) -> None:
        result = _run_cli("info")
        assert result.returncode == 0
        assert "bendbench:" in result.stdout
        assert "hvm:" in result.stdout

    def test_run_without_modes_prints_usage(self) -> None:
        result = _run_cli("run")
        assert result.returncode == 1
        assert "usage: bendbench run" in result.stdout

    def test_unknown_mode_is_a_user_error(self, bench_tree: Path) -> None:
        result = _run_cli("run", "bogus", cwd=bench_tree.parent)
        assert result.returncode == 1

    def test_missing_tool_is_a_config_error(self, bench_tree: Path, tmp_path: Path) -> None:
        result = _run_cli(
            "run", "hvmi", cwd=bench_tree.parent, env={"HVM_CMD": str(tmp_path / "nope" / "hvm")},
        )
        assert result.returncode == 2

    @pytest.mark.skipif(os.name != "posix", reason="relies on POSIX exec bits")
    def test_dry_run_prints_table(self, bench_tree: Path, fake_hvm: Path) -> None:
        result = _run_cli(
            "run", "--dry-run", "hvmi", "--hvm-compiled-T4",
            cwd=bench_tree.parent, env={"HVM_CMD": str(fake_hvm)},
        )
        assert result.returncode == 0, result.stderr
        assert "timeout: 1200.000s" in result.stdout
        assert "sampling: warmup=1" in result.stdout
        assert "hvmc4" in result.stdout
        assert "alpha" in result.stdout
        assert "beta" in result.stdout


class TestConfigLoading:
    """Subcommands should handle config loading failures gracefully."""

    def test_nonexistent_config_returns_config_error(self) -> None:
        result = _run_cli("info", "--config", "/nonexistent/path.yaml")
        assert result.returncode == 2  # CONFIG_ERROR

    def test_broken_config_returns_config_error(self, broken_yaml_file: Path) -> None:
        result = _run_cli("info", "--config", str(broken_yaml_file))
        assert result.returncode == 2

    def test_valid_config_is_accepted(self, tmp_config_file: Path) -> None:
        result = _run_cli("info", "--config", str(tmp_config_file))
        assert result.returncode == 0
        assert "min_runs=2" in result.stdout
        assert "timeout: 30.000s" in result.stdout


class TestModeTokenSplitting:
    def test_mode_flags_are_pulled_out_after_run(self) -> None:
        modes, rest = split_mode_tokens(
            ["--log-level", "INFO", "run", "--hvm-compiled-T8", "--timeout", "5", "bend-bun"]
        )
        assert modes == ["--hvm-compiled-T8", "bend-bun"]
        assert rest == ["--log-level", "INFO", "run", "--timeout", "5"]

    def test_other_commands_are_untouched(self) -> None:
        assert split_mode_tokens(["info", "hvmi"]) == ([], ["info", "hvmi"])

    def test_modes_command_in_process(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as excinfo:
            main(["modes"])
        assert excinfo.value.code == 0
        assert "--hvm-interpreted[-TN]" in capsys.readouterr().out
