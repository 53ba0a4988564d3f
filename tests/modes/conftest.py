# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""A recording stand-in for ProcessSupervisor and a Toolchain built on it."""

from pathlib import Path
from typing import Callable, Optional, Sequence, Union

import pytest

from bendbench.config.schema import ToolsConfig
from bendbench.modes.toolchain import Toolchain
from bendbench.utils.paths import WorkDir

Responder = Union[str, Callable[[str, list[str]], str]]


class RecordingSupervisor:
    """Answers check_output from a table keyed by executable; records every call."""

    def __init__(self, responses: Optional[dict[str, Responder]] = None) -> None:
        self.responses = responses or {}
        self.calls: list[tuple[str, list[str]]] = []

    async def check_output(
        self,
        executable: str,
        args: Sequence[str] = (),
        cwd: Optional[Path] = None,
    ) -> str:
        args = list(args)
        self.calls.append((executable, args))
        response = self.responses.get(executable, "")
        if isinstance(response, BaseException):
            raise response
        if callable(response):
            return response(executable, args)
        return response

    def calls_to(self, executable: str) -> list[list[str]]:
        return [args for exe, args in self.calls if exe == executable]


@pytest.fixture()
def recording_supervisor() -> RecordingSupervisor:
    return RecordingSupervisor()


@pytest.fixture()
def work_dir(tmp_path: Path) -> WorkDir:
    work = WorkDir(tmp_path / "work")
    yield work  # type: ignore[misc]
    work.cleanup()


@pytest.fixture()
def toolchain(recording_supervisor: RecordingSupervisor, work_dir: WorkDir, tmp_path: Path) -> Toolchain:
    return Toolchain(recording_supervisor, ToolsConfig(), work_dir, tmp_path)  # type: ignore[arg-type]
