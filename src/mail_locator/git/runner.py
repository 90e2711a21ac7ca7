"""Command execution for git.

`GitRepository` never spawns processes itself; it hands an argument vector to a
`CommandRunner`. Tests substitute a fake runner so that no git executable is
needed.
"""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output streams of one command."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    """Runs a command in a working directory and captures its output."""

    def run(self, args: Sequence[str], cwd: Path) -> CommandResult:
        """Run `args` in `cwd`.

        Raises:
            OSError: If the command cannot be launched.
            subprocess.SubprocessError: If the command times out.
        """
        ...


class SubprocessRunner:
    """Runs commands as blocking subprocesses."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout

    def run(self, args: Sequence[str], cwd: Path) -> CommandResult:
        result = subprocess.run(
            list(args),
            cwd=str(cwd),
            capture_output=True,
            text=True,
            errors="replace",
            timeout=self.timeout,
        )
        return CommandResult(
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
