"""Shared fakes for vimimswitch tests."""

from __future__ import annotations

import threading
from typing import Callable

import pytest

from vimimswitch.config import IMSwitchSettings
from vimimswitch.errors import CommandExecutionError
from vimimswitch.platform.command_runner import CommandResult, ICommandRunner


class FakeCommandRunner(ICommandRunner):
    """Records every command line and answers from a table.

    ``responses`` maps a command line to a ``CommandResult``, an exception
    instance (raised), or a callable taking the command line.  Unknown
    command lines succeed with empty output.
    """

    def __init__(self, responses: dict | None = None):
        self.responses: dict = dict(responses or {})
        self.commands: list[str] = []
        self.timeouts: list[float | None] = []
        self._lock = threading.Lock()

    def run_command(self, command_line: str, timeout: float | None = None) -> CommandResult:
        with self._lock:
            self.commands.append(command_line)
            self.timeouts.append(timeout)
        response = self.responses.get(command_line)
        if callable(response) and not isinstance(response, CommandResult):
            response = response(command_line)
        if isinstance(response, Exception):
            raise response
        if response is None:
            return CommandResult(stdout="", stderr="", returncode=0)
        return response


class IMSimulator(ICommandRunner):
    """A pretend OS with one active IM.

    ``get-im`` prints the active IM, ``set-im X`` activates X.
    """

    OBTAIN = "get-im"
    SWITCH = "set-im {im}"

    def __init__(self, current: str = "en", on_command: Callable[[str], None] | None = None):
        self.current = current
        self.commands: list[str] = []
        self.on_command = on_command

    def run_command(self, command_line: str, timeout: float | None = None) -> CommandResult:
        self.commands.append(command_line)
        if self.on_command:
            self.on_command(command_line)
        if command_line == self.OBTAIN:
            return CommandResult(stdout=self.current + "\n", stderr="", returncode=0)
        if command_line.startswith("set-im "):
            self.current = command_line[len("set-im "):]
            return CommandResult(stdout="", stderr="", returncode=0)
        raise CommandExecutionError(command_line, "command not found")

    @classmethod
    def settings(cls, **overrides) -> IMSwitchSettings:
        values = dict(
            enable=True, default_im="en",
            obtain_im_cmd=cls.OBTAIN, switch_im_cmd=cls.SWITCH,
        )
        values.update(overrides)
        return IMSwitchSettings(**values)


@pytest.fixture
def fake_runner() -> FakeCommandRunner:
    return FakeCommandRunner()


@pytest.fixture
def im_system() -> IMSimulator:
    return IMSimulator()


@pytest.fixture
def echo_settings() -> IMSwitchSettings:
    return IMSwitchSettings(
        enable=True,
        default_im="en",
        obtain_im_cmd="echo zh",
        switch_im_cmd="echo switch {im}",
    )
