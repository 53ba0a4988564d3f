# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Runs one external command under hard limits.

This is the part of the harness with real correctness hazards, so the rules
are strict:

  - The command becomes the leader of a new process group, and every kill
    targets the group. No forked helper outlives the invocation.
  - stdout and stderr are read chunk by chunk. The moment the combined size
    passes the ceiling, the group is killed and the result is OutputOverflow,
    even if the command would have exited 0.
  - A deadline timer is armed at spawn. If it fires before the command has
    finished, the group is killed and the result is Timeout. No polling.
  - Exactly one outcome is recorded per invocation. Completion, overflow,
    timeout and cancellation all race to finish; a one-shot guard lets the
    first through and makes the rest no-ops. Timer cancellation and registry
    removal happen inside that guard, so they happen once.

The supervisor never raises for a failed command. It returns a tagged
InvocationResult and leaves the policy to the caller.
"""

import asyncio
import time
from pathlib import Path
from typing import Optional, Sequence

from bendbench.execution.processes import ActiveProcessRegistry, terminate
from bendbench.execution.results import (
    CommandInvocation,
    Failure,
    InvocationResult,
    OutputOverflow,
    SpawnError,
    Success,
    Timeout,
    raise_for_result,
)
from bendbench.logging.logger import get_logger

logger = get_logger(__name__)

READ_CHUNK_BYTES = 64 * 1024


class _Completion:
    """
    One-shot finisher for a single invocation.

    `finish` records the first result it is given and performs the
    post-resolution cleanup; later calls return False and change nothing.
    """

    def __init__(
        self,
        future: "asyncio.Future[InvocationResult]",
        registry: ActiveProcessRegistry,
        pid: int,
    ) -> None:
        self._future = future
        self._registry = registry
        self._pid = pid
        self._timer: Optional[asyncio.TimerHandle] = None
        self.done = False

    def arm(self, timer: asyncio.TimerHandle) -> None:
        self._timer = timer

    def finish(self, result: InvocationResult) -> bool:
        if not self._close():
            return False
        if not self._future.done():
            self._future.set_result(result)
        return True

    def abandon(self) -> bool:
        """Close without a result, for when the awaiting coroutine was cancelled."""
        return self._close()

    def _close(self) -> bool:
        if self.done:
            return False
        self.done = True
        if self._timer is not None:
            self._timer.cancel()
        self._registry.discard(self._pid)
        return True


class ProcessSupervisor:
    """
    Runs external commands with a wall-clock timeout and an output ceiling.

    Args:
        registry: Process-wide set of running pids, shared with the shutdown
            guard so an interrupt can kill whatever is still alive.
        timeout_seconds: Default deadline for `check_output`.
        max_output_bytes: Default combined stdout+stderr ceiling.
        default_cwd: Working directory when an invocation gives none.
    """

    def __init__(
        self,
        registry: ActiveProcessRegistry,
        timeout_seconds: float = 1200.0,
        max_output_bytes: int = 64 * 1024 * 1024,
        default_cwd: Optional[Path] = None,
    ) -> None:
        self.registry = registry
        self.timeout_seconds = timeout_seconds
        self.max_output_bytes = max_output_bytes
        self.default_cwd = default_cwd

    def invocation(
        self,
        executable: str,
        args: Sequence[str] = (),
        cwd: Optional[Path] = None,
    ) -> CommandInvocation:
        """Build an invocation carrying this supervisor's default limits."""
        return CommandInvocation(
            executable=executable,
            args=tuple(args),
            cwd=cwd if cwd is not None else self.default_cwd,
            timeout_seconds=self.timeout_seconds,
            max_output_bytes=self.max_output_bytes,
        )

    async def check_output(
        self,
        executable: str,
        args: Sequence[str] = (),
        cwd: Optional[Path] = None,
    ) -> str:
        """
        Run a command with the default limits and return its stdout.

        Raises:
            SpawnFailureError, ProcessFailureError, OutputOverflowError,
            CommandTimeoutError: matching the result variant.
        """
        result = await self.run(self.invocation(executable, args, cwd))
        return raise_for_result(result)

    async def run(self, invocation: CommandInvocation) -> InvocationResult:
        """Run one invocation to a terminal outcome. Never raises for command failure."""
        command_line = invocation.command_line
        start = time.monotonic()

        try:
            proc = await asyncio.create_subprocess_exec(
                invocation.executable,
                *invocation.args,
                cwd=str(invocation.cwd) if invocation.cwd is not None else None,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except FileNotFoundError:
            logger.debug("Executable not found", extra={"command": invocation.executable})
            return SpawnError(
                reason=f'not found in $PATH: "{invocation.executable}"',
                not_found=True,
                elapsed_seconds=time.monotonic() - start,
            )
        except OSError as err:
            logger.debug(
                "Spawn failed",
                extra={"command": invocation.executable, "error": str(err)},
            )
            return SpawnError(
                reason=str(err) or type(err).__name__,
                elapsed_seconds=time.monotonic() - start,
            )

        stdout, stderr = proc.stdout, proc.stderr
        if stdout is None or stderr is None:
            terminate(proc.pid)
            await proc.wait()
            logger.debug("Output pipes missing", extra={"command": command_line})
            return SpawnError(
                reason=f"output pipes unavailable: {command_line}",
                elapsed_seconds=time.monotonic() - start,
            )

        pid = proc.pid
        self.registry.add(pid)

        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[InvocationResult] = loop.create_future()
        completion = _Completion(outcome, self.registry, pid)

        stdout_buf = bytearray()
        stderr_buf = bytearray()

        def captured() -> int:
            return len(stdout_buf) + len(stderr_buf)

        def on_deadline() -> None:
            if completion.done:
                return
            terminate(pid)
            completion.finish(Timeout(
                timeout_ms=invocation.timeout_ms,
                message=f"timed out after {invocation.timeout_ms}ms: {command_line}",
                elapsed_seconds=time.monotonic() - start,
            ))

        completion.arm(loop.call_later(invocation.timeout_seconds, on_deadline))

        async def pump(stream: asyncio.StreamReader, buf: bytearray) -> None:
            while True:
                chunk = await stream.read(READ_CHUNK_BYTES)
                if not chunk:
                    return
                buf.extend(chunk)
                if captured() > invocation.max_output_bytes and not completion.done:
                    terminate(pid)
                    completion.finish(OutputOverflow(
                        captured_bytes=captured(),
                        limit_bytes=invocation.max_output_bytes,
                        message=f"output exceeded max buffer: {command_line}",
                        elapsed_seconds=time.monotonic() - start,
                    ))
                    return

        async def watch() -> None:
            await asyncio.gather(pump(stdout, stdout_buf), pump(stderr, stderr_buf))
            exit_code = await proc.wait()
            completion.finish(_classify_exit(
                exit_code,
                bytes(stdout_buf),
                bytes(stderr_buf),
                command_line,
                time.monotonic() - start,
            ))

        watcher = asyncio.ensure_future(watch())
        try:
            result = await outcome
        finally:
            if not completion.done:
                # cancelled from outside, e.g. by a global interrupt
                terminate(pid)
                completion.abandon()
            watcher.cancel()
            await asyncio.gather(watcher, return_exceptions=True)
            if proc.returncode is None:
                terminate(pid)
                await proc.wait()

        _log_result(invocation, result, pid)
        return result


def _classify_exit(
    exit_code: int,
    stdout: bytes,
    stderr: bytes,
    command_line: str,
    elapsed: float,
) -> InvocationResult:
    out_text = stdout.decode("utf-8", errors="replace")
    if exit_code == 0:
        return Success(
            stdout=out_text,
            stderr=stderr.decode("utf-8", errors="replace"),
            elapsed_seconds=elapsed,
        )

    message = stderr.decode("utf-8", errors="replace").strip()
    if not message:
        message = out_text.strip()
    if not message:
        message = f"command failed: {command_line}"
    return Failure(exit_code=exit_code, message=message, elapsed_seconds=elapsed)


def _log_result(invocation: CommandInvocation, result: InvocationResult, pid: int) -> None:
    context = {
        "command": invocation.command_line,
        "pid": pid,
        "kind": result.kind.value,
        "elapsed_seconds": round(result.elapsed_seconds, 6),
    }
    if isinstance(result, Success):
        logger.debug("Command finished", extra=context)
    elif isinstance(result, Failure):
        logger.debug("Command failed", extra={**context, "exit_code": result.exit_code})
    else:
        logger.warning("Command aborted", extra={**context, "error": result.message})
