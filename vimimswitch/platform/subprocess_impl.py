"""SubprocessCommandRunner — real implementation of ICommandRunner."""

from __future__ import annotations

import logging
import subprocess

import vimimswitch.log  # registers TRACE level and logger.trace()
from vimimswitch.errors import CommandExecutionError
from vimimswitch.platform.command_runner import CommandResult, ICommandRunner

logger = logging.getLogger(__name__)


class SubprocessCommandRunner(ICommandRunner):
    """Executes command lines with ``subprocess.run(shell=True)``."""

    def __init__(self, default_timeout: float | None = None) -> None:
        self.default_timeout = default_timeout

    def run_command(self, command_line: str, timeout: float | None = None) -> CommandResult:
        if timeout is None:
            timeout = self.default_timeout
        logger.debug("exec: %s", command_line)
        try:
            r = subprocess.run(
                command_line,
                shell=True,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise CommandExecutionError(command_line, f"timed out after {timeout}s")
        except OSError as e:
            raise CommandExecutionError(command_line, str(e))
        logger.trace("exit %d: %s", r.returncode, command_line)  # type: ignore[attr-defined]
        return CommandResult(stdout=r.stdout, stderr=r.stderr, returncode=r.returncode)
