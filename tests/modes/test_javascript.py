# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""Tests for the JS trailer stripper, the BENCH_SECS parser and the runner script."""

import pytest

from bendbench.errors import BenchSecsParseError
from bendbench.modes.javascript import RUNNER_SOURCE, SECS_TAG, parse_bench_secs, strip_run_main

MODULE_BODY = "export function main() {\n  return 42;\n}"


class TestStripRunMain:
    @pytest.mark.parametrize(
        "trailer",
        [
            "console.log(JSON.stringify(main()));",
            "console.log( JSON.stringify( $main() ) )",
            "console.log(JSON.stringify(null));",
            "run_main();",
        ],
    )
    def test_removes_known_trailers(self, trailer: str) -> None:
        stripped = strip_run_main(MODULE_BODY + "\n" + trailer + "\n")
        assert "console.log" not in stripped
        assert "run_main" not in stripped
        assert stripped.startswith(MODULE_BODY)

    def test_removes_last_line_fallback(self) -> None:
        js = MODULE_BODY + "\nconsole.log(String(1) + JSON.stringify(main()))"
        assert strip_run_main(js) == MODULE_BODY + "\n"

    def test_normalizes_line_endings(self) -> None:
        js = MODULE_BODY.replace("\n", "\r\n") + "\r\nrun_main();\r\n"
        assert "\r" not in strip_run_main(js)

    def test_leaves_other_modules_alone(self) -> None:
        assert strip_run_main(MODULE_BODY) == MODULE_BODY + "\n"


class TestParseBenchSecs:
    def test_reads_value(self) -> None:
        assert parse_bench_secs(f"{SECS_TAG} 0.125\n") == 0.125

    def test_last_line_wins(self) -> None:
        output = f"noise\n{SECS_TAG} 1.0\nmore noise\r\n{SECS_TAG} 2.5\r\n"
        assert parse_bench_secs(output) == 2.5

    def test_missing_tag(self) -> None:
        with pytest.raises(BenchSecsParseError, match="missing"):
            parse_bench_secs("42\n")

    @pytest.mark.parametrize("value", ["abc", "-1", "NaN", "Infinity"])
    def test_invalid_values(self, value: str) -> None:
        with pytest.raises(BenchSecsParseError, match="invalid"):
            parse_bench_secs(f"{SECS_TAG} {value}\n")


class TestRunnerSource:
    def test_prints_the_tag(self) -> None:
        assert f'console.log("{SECS_TAG} " + String(sum / cnt));' in RUNNER_SOURCE

    def test_takes_five_arguments(self) -> None:
        assert "args.length !== 5" in RUNNER_SOURCE
        assert "%(" not in RUNNER_SOURCE

    def test_stops_once_either_minimum_is_met(self) -> None:
        assert "if (cnt < min_runs && sum < min_secs) {" in RUNNER_SOURCE
        assert "||" not in RUNNER_SOURCE.split("function needs_more", 1)[1].split("function main_get", 1)[0]
