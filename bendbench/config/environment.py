# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Environment-variable layer on top of the YAML config.

Tool paths and sampling knobs can be overridden per shell without touching
any file, e.g. `HVM_CMD=./target/release/hvm BENCH_MIN_RUNS=5 bendbench run hvmc`.
Values are parsed eagerly: a malformed variable is a startup failure, never a
surprise halfway through a benchmark matrix.

Empty variables count as unset.
"""

import math
import os
from typing import Any, Mapping, Optional

from bendbench.config.exceptions import ConfigValidationError
from bendbench.config.loader import override_config
from bendbench.config.schema import BenchConfig

TOOL_VARIABLES: dict[str, str] = {
    "BEND_CMD": "bend_cmd",
    "NEW_BEND_CMD": "new_bend_cmd",
    "BEND_NODE_ENTRY": "bend_node_entry",
    "NEW_BEND_NODE_ENTRY": "new_bend_node_entry",
    "HVM_CMD": "hvm_cmd",
    "BUN_CMD": "bun_cmd",
    "NODE_CMD": "node_cmd",
}


def _raw(environ: Mapping[str, str], name: str) -> Optional[str]:
    raw = environ.get(name)
    if raw is None or raw == "":
        return None
    return raw


def _parse_number(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ConfigValidationError(f"invalid env {name}: {raw!r}") from None
    if not math.isfinite(value):
        raise ConfigValidationError(f"invalid env {name}: {raw!r}")
    return value


def env_pos_int(environ: Mapping[str, str], name: str) -> Optional[int]:
    """Read a positive integer; fractional values are floored first."""
    raw = _raw(environ, name)
    if raw is None:
        return None
    value = math.floor(_parse_number(name, raw))
    if value <= 0:
        raise ConfigValidationError(f"invalid env {name} (must be > 0): {raw!r}")
    return value


def env_nonneg_int(environ: Mapping[str, str], name: str) -> Optional[int]:
    """Read a non-negative integer; fractional values are floored first."""
    raw = _raw(environ, name)
    if raw is None:
        return None
    value = math.floor(_parse_number(name, raw))
    if value < 0:
        raise ConfigValidationError(f"invalid env {name} (must be >= 0): {raw!r}")
    return value


def env_nonneg_num(environ: Mapping[str, str], name: str) -> Optional[float]:
    raw = _raw(environ, name)
    if raw is None:
        return None
    value = _parse_number(name, raw)
    if value < 0:
        raise ConfigValidationError(f"invalid env {name} (must be >= 0): {raw!r}")
    return value


def env_pos_num(environ: Mapping[str, str], name: str) -> Optional[float]:
    raw = _raw(environ, name)
    if raw is None:
        return None
    value = _parse_number(name, raw)
    if value <= 0:
        raise ConfigValidationError(f"invalid env {name} (must be > 0): {raw!r}")
    return value


def _drop_unset(values: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in values.items() if value is not None}


def apply_env_overrides(
    config: BenchConfig,
    environ: Optional[Mapping[str, str]] = None,
) -> BenchConfig:
    """
    Layer the recognised environment variables over `config`.

    Raises:
        ConfigValidationError: A variable is malformed, or the combined result
            breaks a schema rule (for example BENCH_MIN_RUNS > BENCH_MAX_RUNS).
    """
    env = os.environ if environ is None else environ

    tools = _drop_unset({field: _raw(env, var) for var, field in TOOL_VARIABLES.items()})
    sampling = _drop_unset({
        "warmup": env_nonneg_int(env, "BENCH_WARMUP"),
        "min_runs": env_pos_int(env, "BENCH_MIN_RUNS"),
        "max_runs": env_pos_int(env, "BENCH_MAX_RUNS"),
        "min_secs": env_nonneg_num(env, "BENCH_MIN_SECS"),
    })
    runner = _drop_unset({"timeout_seconds": env_pos_num(env, "BENCH_TIMEOUT")})

    if not (tools or sampling or runner):
        return config

    return override_config(
        config,
        {"tools": tools, "sampling": sampling, "runner": runner},
        origin="environment",
    )
