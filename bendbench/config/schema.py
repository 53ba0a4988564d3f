# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Type-safe configuration schemas for bendbench.

Each config section is a frozen pydantic model. Frozen means once built it
cannot be mutated; overrides from the environment or the CLI produce a new
validated object instead.

The models use pydantic v2's ConfigDict with:
  - frozen=True: immutability after construction
  - extra="forbid": unknown fields cause immediate failure
  - validate_default=True: even defaults get type-checked
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_TIMEOUT_SECONDS = 20 * 60
DEFAULT_MAX_OUTPUT_BYTES = 64 * 1024 * 1024


class GlobalConfig(BaseModel):
    """Cross-cutting settings: identity and observability."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    config_version: str = Field(
        default="1.0.0",
        description="Schema version for compatibility tracking",
    )
    project_name: str = Field(default="bendbench", description="Human-readable identifier")
    log_level: str = Field(
        default="WARNING",
        description="One of DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional path for file-based log output",
    )


class SamplingConfig(BaseModel):
    """
    The adaptive stopping rule for timed trials.

    warmup calls are made and discarded, then timed calls continue until
    either min_runs trials are done or min_secs of cumulative time has
    passed, never beyond max_runs.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    warmup: int = Field(default=1, ge=0, description="Untimed calls before sampling")
    min_runs: int = Field(default=1, ge=1, description="Timed trials wanted before stopping")
    max_runs: int = Field(default=1, ge=1, description="Hard ceiling on timed trials")
    min_secs: float = Field(
        default=0.0,
        ge=0.0,
        description="Stop before min_runs once this much time accumulates",
    )

    @model_validator(mode="after")
    def _check_run_bounds(self) -> "SamplingConfig":
        if self.min_runs > self.max_runs:
            raise ValueError(
                f"min_runs ({self.min_runs}) must not exceed max_runs ({self.max_runs})"
            )
        return self

    def describe(self) -> str:
        """One-line summary printed above the results table."""
        return (
            f"sampling: warmup={self.warmup} min_runs={self.min_runs} "
            f"max_runs={self.max_runs} min_secs={self.min_secs:.3f}s"
        )


class ToolsConfig(BaseModel):
    """Executables the mode catalog shells out to. Names are looked up on $PATH."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    bend_cmd: str = Field(default="bend", min_length=1)
    new_bend_cmd: str = Field(default="newbend", min_length=1)
    bend_node_entry: Optional[str] = Field(
        default=None,
        description="Script entry to bundle for Node when bend_cmd is a wrapper",
    )
    new_bend_node_entry: Optional[str] = Field(default=None)
    hvm_cmd: str = Field(default="hvm", min_length=1)
    bun_cmd: str = Field(default="bun", min_length=1)
    node_cmd: str = Field(default="node", min_length=1)


class RunnerConfig(BaseModel):
    """Limits applied to every spawned command, plus where benchmarks live."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    timeout_seconds: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Wall-clock limit per spawned command",
    )
    max_output_bytes: int = Field(
        default=DEFAULT_MAX_OUTPUT_BYTES,
        ge=1,
        description="Combined stdout+stderr ceiling per spawned command",
    )
    bench_directory: str = Field(
        default="bench",
        description="Directory holding one sub-directory per benchmark",
    )
    work_directory: Optional[str] = Field(
        default=None,
        description="Parent for the per-run temp directory (system temp if unset)",
    )

    @property
    def timeout_ms(self) -> int:
        return int(self.timeout_seconds * 1000)


class BenchConfig(BaseModel):
    """
    Top-level config container.

    Every section has defaults, so an empty YAML mapping (or no file at all)
    gives a runnable configuration.
    """

    model_config = ConfigDict(
        frozen=True, extra="forbid", validate_default=True, populate_by_name=True,
    )

    global_config: GlobalConfig = Field(default_factory=GlobalConfig, alias="global")
    sampling: SamplingConfig = Field(default_factory=SamplingConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)
