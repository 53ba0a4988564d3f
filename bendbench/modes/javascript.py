# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Helpers for the JavaScript-backed modes.

`bend --to-js` emits a module that runs `main` and prints the result when
loaded. To time `main` repeatedly we strip that trailer, then load the module
inside a small runner script that performs warmup and adaptive sampling in the
JS runtime itself (same stopping rule as SamplingController) and prints one
`BENCH_SECS <mean>` line. Timing inside the runtime excludes process start-up
and module compilation from the measurement.
"""

import math
import re

from bendbench.errors import BenchSecsParseError

SECS_TAG = "BENCH_SECS"

_TRAILER_PATTERNS = [
    re.compile(r"\nconsole\.log\(\s*JSON\.stringify\(\s*main\(\)\s*\)\s*\)\s*;?\s*\Z"),
    re.compile(r"\nconsole\.log\(\s*JSON\.stringify\(\s*\$main\(\)\s*\)\s*\)\s*;?\s*\Z"),
    re.compile(r"\nconsole\.log\(\s*JSON\.stringify\(\s*null\s*\)\s*\)\s*;?\s*\Z"),
    re.compile(r"\nrun_main\(\)\s*;?\s*\Z"),
]

_TRAILER_CALLS = ("JSON.stringify(main())", "JSON.stringify($main())", "JSON.stringify(null)")


def strip_run_main(js: str) -> str:
    """Remove the auto-run trailer from `bend --to-js` output."""
    src = js.replace("\r", "").rstrip()

    for pattern in _TRAILER_PATTERNS:
        out = pattern.sub("\n", src, count=1)
        if out != src:
            return out

    lines = src.split("\n")
    last = lines[-1].strip()
    if last.startswith("console.log(") and any(call in last for call in _TRAILER_CALLS):
        lines.pop()
        return "\n".join(lines) + "\n"

    return src + "\n"


def parse_bench_secs(output: str) -> float:
    """Return the value of the last `BENCH_SECS <n>` line in `output`."""
    tag = SECS_TAG + " "
    for line in reversed(output.replace("\r", "").split("\n")):
        line = line.strip()
        if not line.startswith(tag):
            continue
        text = line[len(tag):].strip()
        try:
            value = float(text)
        except ValueError:
            raise BenchSecsParseError(f"invalid {SECS_TAG} value: {text!r}") from None
        if not math.isfinite(value) or value < 0:
            raise BenchSecsParseError(f"invalid {SECS_TAG} value: {text!r}")
        return value

    raise BenchSecsParseError(f"missing {SECS_TAG} in output")


# Runs under both Node and Bun: only node:url and process.hrtime are used.
RUNNER_SOURCE = """\
import * as url from "node:url";

function now_ns() {
  return process.hrtime.bigint();
}

function elapsed_secs(start) {
  return Number(process.hrtime.bigint() - start) / 1e9;
}

function parse_num(txt, nam) {
  var val = Number(txt);
  if (!Number.isFinite(val) || val < 0) {
    throw new Error("invalid numeric arg: " + nam + "=" + JSON.stringify(txt));
  }
  return val;
}

function parse_int(txt, nam, min) {
  var val = Math.floor(parse_num(txt, nam));
  if (val < min) {
    throw new Error("invalid int arg: " + nam + "=" + JSON.stringify(txt));
  }
  return val;
}

function needs_more(cnt, sum, min_runs, max_runs, min_secs) {
  if (cnt === 0) {
    return true;
  }
  if (cnt >= max_runs) {
    return false;
  }
  if (cnt < min_runs && sum < min_secs) {
    return true;
  }
  return false;
}

function main_get(mod) {
  if (typeof mod.$main === "function") {
    return mod.$main;
  }
  if (typeof mod.main === "function") {
    return mod.main;
  }
  throw new Error("compiled JS module is missing `main`/`$main`");
}

async function main() {
  var args = process.argv.slice(2);
  if (args.length !== 5) {
    throw new Error("usage: runner.mjs <mod> <warmup> <min_runs> <max_runs> <min_secs>");
  }

  var warmup   = parse_int(args[1], "warmup", 0);
  var min_runs = parse_int(args[2], "min_runs", 1);
  var max_runs = parse_int(args[3], "max_runs", 1);
  var min_secs = parse_num(args[4], "min_secs");

  var mod = await import(url.pathToFileURL(args[0]).href + "?v=" + String(now_ns()));
  var run = main_get(mod);

  for (var i = 0; i < warmup; ++i) {
    run();
  }

  var sum = 0;
  var cnt = 0;
  while (needs_more(cnt, sum, min_runs, max_runs, min_secs)) {
    var start = now_ns();
    run();
    sum += elapsed_secs(start);
    cnt += 1;
  }

  if (cnt === 0) {
    throw new Error("no timed runs were executed");
  }

  console.log("%(tag)s " + String(sum / cnt));
}

main().catch(err => {
  console.error(err instanceof Error ? err.message : String(err));
  process.exit(1);
});
""" % {"tag": SECS_TAG}
