"""Exception types raised by vimimswitch."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vimimswitch.platform.command_runner import CommandResult


class VimIMSwitchError(Exception):
    """Base class for all vimimswitch errors."""


class CommandExecutionError(VimIMSwitchError):
    """An external IM command could not be run or reported failure.

    ``result`` is set when the process ran to completion but its exit
    status was treated as a failure (the obtain command exiting non-zero).
    It is ``None`` for spawn errors and timeouts.
    """

    def __init__(self, command: str, reason: str, result: "CommandResult | None" = None):
        super().__init__(f"{reason}: {command!r}")
        self.command = command
        self.reason = reason
        self.result = result
