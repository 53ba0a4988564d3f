# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Invocation data types.

A CommandInvocation describes one external call; an InvocationResult is its
outcome. The result is a tagged variant: exactly one of Success, Failure,
OutputOverflow, Timeout or SpawnError, each with a `kind` tag. Callers branch
on the type (or the tag), never on message text.

Every type here is frozen. A result is produced once by the supervisor and
consumed once by whoever awaited it.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import ClassVar, Optional, Union

from bendbench.errors import (
    CommandTimeoutError,
    InvocationError,
    OutputOverflowError,
    ProcessFailureError,
    SpawnFailureError,
)


class InvocationKind(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    OUTPUT_OVERFLOW = "output_overflow"
    TIMEOUT = "timeout"
    SPAWN_ERROR = "spawn_error"


@dataclass(frozen=True)
class CommandInvocation:
    """One external-program call: what to run, where, and under which limits."""

    executable: str
    args: tuple[str, ...] = ()
    cwd: Optional[Path] = None
    timeout_seconds: float = 1200.0
    max_output_bytes: int = 64 * 1024 * 1024

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")
        if self.max_output_bytes < 1:
            raise ValueError(f"max_output_bytes must be >= 1, got {self.max_output_bytes}")

    @property
    def command_line(self) -> str:
        return " ".join((self.executable, *self.args))

    @property
    def timeout_ms(self) -> int:
        return int(self.timeout_seconds * 1000)


@dataclass(frozen=True)
class Success:
    kind: ClassVar[InvocationKind] = InvocationKind.SUCCESS

    stdout: str
    stderr: str = ""
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return True

    @property
    def message(self) -> str:
        return ""


@dataclass(frozen=True)
class Failure:
    """Normal exit with a non-zero code (negative codes mean killed by signal)."""

    kind: ClassVar[InvocationKind] = InvocationKind.FAILURE

    exit_code: int
    message: str
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class OutputOverflow:
    kind: ClassVar[InvocationKind] = InvocationKind.OUTPUT_OVERFLOW

    captured_bytes: int
    limit_bytes: int
    message: str
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class Timeout:
    kind: ClassVar[InvocationKind] = InvocationKind.TIMEOUT

    timeout_ms: int
    message: str
    elapsed_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class SpawnError:
    kind: ClassVar[InvocationKind] = InvocationKind.SPAWN_ERROR

    reason: str
    not_found: bool = False
    elapsed_seconds: float = field(default=0.0)

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return self.reason


InvocationResult = Union[Success, Failure, OutputOverflow, Timeout, SpawnError]

_ERROR_TYPES: dict[InvocationKind, type[InvocationError]] = {
    InvocationKind.FAILURE: ProcessFailureError,
    InvocationKind.OUTPUT_OVERFLOW: OutputOverflowError,
    InvocationKind.TIMEOUT: CommandTimeoutError,
    InvocationKind.SPAWN_ERROR: SpawnFailureError,
}


def raise_for_result(result: InvocationResult) -> str:
    """Return stdout of a Success, raise the matching InvocationError otherwise."""
    if isinstance(result, Success):
        return result.stdout
    raise _ERROR_TYPES[result.kind](result)
