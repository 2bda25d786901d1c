# Copyright (c) Syntropy Systems
"""Subprocess runner for control-plane command-line calls."""
from __future__ import annotations

import os
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from ironcast.errors import ControlPlaneError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

CommandRunner = Callable[["list[str]", "dict[str, str]", float], "CommandResult"]

_MAX_DETAIL = 400


@dataclass(frozen=True)
class CommandResult:
    """Captured result of one finished command."""

    command: list[str]
    returncode: int
    stdout: str
    stderr: str


class CommandError(ControlPlaneError):
    """A control-plane command exited non-zero or could not be run."""

    def __init__(self, message: str, result: CommandResult) -> None:
        self.result = result
        super().__init__(self._build_message(message))

    def _build_message(self, message: str) -> str:
        detail = (self.result.stderr or self.result.stdout).strip()
        if len(detail) > _MAX_DETAIL:
            detail = f"{detail[:_MAX_DETAIL - 3]}..."
        if not detail:
            return f"{message} (returncode={self.result.returncode})"
        return f"{message} (returncode={self.result.returncode}): {detail}"


def subprocess_runner(
    command: list[str], env: dict[str, str], timeout: float
) -> CommandResult:
    """Run command to completion without a shell and capture its output."""
    try:
        completed = subprocess.run(  # noqa: S603
            command,
            capture_output=True,
            text=True,
            env=env,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as e:
        result = CommandResult(command=command, returncode=127, stdout="", stderr=str(e))
        msg = f"Command not found: {command[0]}"
        raise CommandError(msg, result) from e
    except subprocess.TimeoutExpired as e:
        result = CommandResult(command=command, returncode=-1, stdout="", stderr="")
        msg = f"Command timed out after {timeout:g}s: {' '.join(command[:3])}"
        raise CommandError(msg, result) from e

    return CommandResult(
        command=command,
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )


class CommandExecutor:
    """Runs commands with a merged environment and a per-call timeout.

    Every call spawns its own process, so one executor can be shared by
    many threads.
    """

    env: dict[str, str]
    timeout: float
    _runner: CommandRunner

    def __init__(
        self,
        extra_env: Mapping[str, str] | None = None,
        timeout: float = 300.0,
        runner: CommandRunner | None = None,
    ) -> None:
        """Initialize an executor.

        Args:
            extra_env: Variables layered over the current environment
            timeout: Seconds before a single command is abandoned
            runner: Replacement for subprocess_runner, used in tests

        """
        self.env = os.environ.copy()
        if extra_env:
            self.env.update(extra_env)
        self.timeout = timeout
        self._runner = runner or subprocess_runner

    def run(self, command: Sequence[str], *, error_message: str) -> CommandResult:
        """Run command and raise CommandError on a non-zero exit."""
        argv = list(command)
        result = self._runner(argv, self.env, self.timeout)
        if result.returncode != 0:
            raise CommandError(error_message, result)
        return result

