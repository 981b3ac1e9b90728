"""IMSwitchProtocol — decides which IM command a mode transition runs.

Leaving insert mode:  remember the current system IM, switch to ``default_im``.
Entering insert mode: switch back to the remembered IM.

When no IM has been remembered yet, entering insert mode does nothing.
Falling back to ``default_im`` there would switch an IM the user never
left, so that policy is not offered.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

import vimimswitch.log  # registers TRACE level and logger.trace()
from vimimswitch.config import IM_PLACEHOLDER, IMSwitchSettings
from vimimswitch.core.modes import Transition, TransitionKind
from vimimswitch.core.session import SessionState
from vimimswitch.errors import CommandExecutionError
from vimimswitch.platform.command_runner import CommandResult, ICommandRunner

logger = logging.getLogger(__name__)

NO_DEFAULT_IM_MESSAGE = "default IM is not configured"


def render_switch_command(template: str, im: str) -> str:
    """Substitute the first ``{im}`` in *template* with *im*, verbatim."""
    return template.replace(IM_PLACEHOLDER, im, 1)


class IMSwitchProtocol:
    """Maps transitions to command invocations and owns the session state.

    *settings* is either a fixed ``IMSwitchSettings`` or a zero-argument
    callable returning the current snapshot.  One snapshot is read per
    operation.
    """

    def __init__(
        self,
        settings: IMSwitchSettings | Callable[[], IMSwitchSettings],
        runner: ICommandRunner,
        session: SessionState | None = None,
    ):
        if isinstance(settings, IMSwitchSettings):
            fixed = settings
            self._settings_provider: Callable[[], IMSwitchSettings] = lambda: fixed
        else:
            self._settings_provider = settings
        self.runner = runner
        self.session = session if session is not None else SessionState()
        self._lock = threading.Lock()

    @property
    def settings(self) -> IMSwitchSettings:
        return self._settings_provider()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _run(self, command_line: str, settings: IMSwitchSettings) -> CommandResult:
        return self.runner.run_command(command_line, timeout=settings.command_timeout)

    def _obtain_im(self, settings: IMSwitchSettings) -> str:
        result = self._run(settings.obtain_im_cmd, settings)
        if not result.ok:
            raise CommandExecutionError(
                settings.obtain_im_cmd, f"exited with status {result.returncode}", result,
            )
        return result.stdout.strip()

    def _switch_im(self, im: str, settings: IMSwitchSettings) -> CommandResult:
        command_line = render_switch_command(settings.switch_im_cmd, im)
        logger.debug("Switching IM to %r", im)
        return self._run(command_line, settings)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def on_enter_normal_or_visual(self) -> CommandResult:
        """Capture the insert-mode IM, then activate ``default_im``.

        Raises ``CommandExecutionError`` if the obtain command fails; the
        remembered IM is then left untouched.
        """
        with self._lock:
            settings = self.settings
            im = self._obtain_im(settings)
            self.session.last_insert_mode_im = im
            logger.debug("Remembered insert-mode IM %r", im)
            if not settings.default_im:
                return CommandResult.skipped(NO_DEFAULT_IM_MESSAGE)
            return self._switch_im(settings.default_im, settings)

    def on_enter_insert(self) -> CommandResult:
        """Restore the IM remembered when insert mode was last left."""
        with self._lock:
            settings = self.settings
            im = self.session.last_insert_mode_im
            # An obtain command that printed nothing counts as nothing remembered
            if not im:
                logger.trace("No insert-mode IM remembered yet")  # type: ignore[attr-defined]
                return CommandResult.skipped()
            return self._switch_im(im, settings)

    def apply(self, transition: Transition) -> CommandResult | None:
        if transition.kind is TransitionKind.ENTER_NORMAL_OR_VISUAL:
            return self.on_enter_normal_or_visual()
        if transition.kind is TransitionKind.ENTER_INSERT:
            return self.on_enter_insert()
        return None
