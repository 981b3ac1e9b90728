"""ICommandRunner interface — abstraction for running IM shell commands."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class CommandResult:
    stdout: str
    stderr: str
    returncode: int = 0
    # True for results synthesized without running anything
    noop: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @classmethod
    def skipped(cls, message: str = "") -> "CommandResult":
        return cls(stdout="", stderr=message, returncode=0, noop=True)


class ICommandRunner(ABC):
    @abstractmethod
    def run_command(self, command_line: str, timeout: float | None = None) -> CommandResult:
        """Run *command_line* through the shell and capture both streams.

        A non-zero exit status is returned in ``CommandResult.returncode``.
        Raises ``CommandExecutionError`` if the process could not be
        spawned or did not finish within *timeout* seconds.
        """
