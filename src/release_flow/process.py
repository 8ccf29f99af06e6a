"""External command execution.

The release steps talk to git and to the package publisher only
through the CommandRunner protocol, so tests can swap in a fake that
records invocations instead of touching a repository or a registry.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from release_flow.exceptions import CommandError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one external command."""

    command: str
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> CommandResult:
        """Return self, or raise CommandError if the command failed."""
        if not self.ok:
            raise CommandError(self.command, self.returncode, self.stderr)
        return self


class CommandRunner(Protocol):
    def run(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
    ) -> CommandResult: ...


class SubprocessRunner:
    """Run commands with subprocess, without a shell.

    Binaries are resolved on PATH once and cached for the lifetime of
    the runner.
    """

    def __init__(self) -> None:
        self._binaries: dict[str, str] = {}

    def which(self, command: str) -> str:
        if command not in self._binaries:
            resolved = shutil.which(command)
            if resolved is None:
                raise CommandError(command, 127, f"{command}: command not found on PATH")
            self._binaries[command] = resolved
        return self._binaries[command]

    def run(
        self,
        command: str,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
    ) -> CommandResult:
        argv = [self.which(command), *args]
        display = " ".join([command, *args])
        logger.debug("Running %s (cwd=%s)", display, cwd)

        completed = subprocess.run(  # noqa: S603
            argv,
            capture_output=True,
            text=True,
            check=False,
            cwd=cwd,
        )
        logger.debug("%s exited with %d", display, completed.returncode)
        return CommandResult(
            command=display,
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
