"""ModeEventRouter — normalizes host mode notifications into transitions.

Two integration modes are supported, chosen once at startup:

* ``GLOBAL``     — a single source reports mode changes of every editor
                   (legacy editor API).
* ``PER_EDITOR`` — every editor instance must be subscribed to on its own
                   as it is discovered (modern editor API).

Either way all transitions go through one ``IMSwitchProtocol`` and one
``TransitionQueue``, so IM tracking is process-wide and transitions are
applied strictly in the order they were observed.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any

import vimimswitch.log  # registers TRACE level and logger.trace()
from vimimswitch.core.event_bus import EventBus
from vimimswitch.core.events import EventType, TransitionEventData
from vimimswitch.core.modes import ModeClass, Transition, classify_mode, transition_kind
from vimimswitch.core.protocol import IMSwitchProtocol
from vimimswitch.core.transition_queue import TransitionQueue
from vimimswitch.errors import CommandExecutionError
from vimimswitch.platform.command_runner import CommandResult
from vimimswitch.platform.host import IModeSource, ModeChange

logger = logging.getLogger(__name__)


class IntegrationMode(Enum):
    GLOBAL = "global"
    PER_EDITOR = "per-editor"

    @classmethod
    def from_host_flags(cls, legacy_editor: bool) -> "IntegrationMode":
        return cls.GLOBAL if legacy_editor else cls.PER_EDITOR


def log_command_output(result: CommandResult) -> None:
    """stdout goes to INFO, stderr to ERROR (INFO for synthesized no-ops)."""
    if result.stdout:
        logger.info(result.stdout.rstrip())
    if result.stderr:
        if result.noop:
            logger.info(result.stderr.rstrip())
        else:
            logger.error(result.stderr.rstrip())
    elif not result.ok:
        logger.warning("IM command exited with status %d", result.returncode)


class ModeEventRouter:
    """Subscribes to mode notifications and feeds the protocol, one at a time."""

    def __init__(
        self,
        protocol: IMSwitchProtocol,
        integration_mode: IntegrationMode = IntegrationMode.PER_EDITOR,
        event_bus: EventBus | None = None,
        start_thread: bool = True,
    ):
        self.protocol = protocol
        self.integration_mode = integration_mode
        self.event_bus = event_bus or EventBus()
        self.queue = TransitionQueue(self._process, start_thread=start_thread)

        self._lock = threading.Lock()
        self._editors: dict[int, Any] = {}
        self._global_source: IModeSource | None = None
        self._previous: ModeClass | None = None
        self._seq = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def attach_global(self, source: IModeSource) -> None:
        """Subscribe to the single global source (GLOBAL mode only)."""
        if self.integration_mode is not IntegrationMode.GLOBAL:
            raise ValueError("attach_global() requires IntegrationMode.GLOBAL")
        with self._lock:
            if self._global_source is source:
                return
            if self._global_source is not None:
                self._global_source.unsubscribe(self.on_mode_change)
            self._global_source = source
        source.subscribe(self.on_mode_change)
        logger.debug("Subscribed to global mode source")

    def bind_editor(self, editor: IModeSource) -> bool:
        """Subscribe to *editor* unless already bound.

        Returns True if the editor was newly bound.
        """
        with self._lock:
            if self._closed or id(editor) in self._editors:
                return False
            self._editors[id(editor)] = editor
        editor.subscribe(self.on_mode_change)
        logger.debug("Editor bound: %r (%d bound)", editor, len(self._editors))
        self.event_bus.emit(EventType.EDITOR_BOUND, editor)
        return True

    def unbind_editor(self, editor: IModeSource) -> bool:
        with self._lock:
            if self._editors.pop(id(editor), None) is None:
                return False
        editor.unsubscribe(self.on_mode_change)
        logger.debug("Editor unbound: %r", editor)
        self.event_bus.emit(EventType.EDITOR_UNBOUND, editor)
        return True

    def on_editor_opened(self, editor: IModeSource) -> None:
        """Host hook for a newly active editor (file opened)."""
        if self.integration_mode is IntegrationMode.PER_EDITOR:
            self.bind_editor(editor)

    def is_bound(self, editor: IModeSource) -> bool:
        return id(editor) in self._editors

    @property
    def bound_editors(self) -> list:
        with self._lock:
            return list(self._editors.values())

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def on_mode_change(self, change: ModeChange) -> None:
        """Handle one host notification.  Never raises for bad input."""
        if (
            self.integration_mode is IntegrationMode.PER_EDITOR
            and change.editor is not None
            and not self.is_bound(change.editor)
        ):
            self.bind_editor(change.editor)

        mode_class = classify_mode(change.mode)
        if mode_class is None:
            logger.trace("Ignoring mode %r", change.mode)  # type: ignore[attr-defined]
            return

        with self._lock:
            if self._closed:
                return
            kind = transition_kind(self._previous, mode_class)
            previous = self._previous
            self._previous = mode_class
            if kind is None:
                logger.trace("No transition %s -> %r", previous, change.mode)  # type: ignore[attr-defined]
                return
            if not self.protocol.settings.enable:
                logger.trace("Disabled, skipping %s", kind.name)  # type: ignore[attr-defined]
                return
            self._seq += 1
            transition = Transition(
                kind=kind, mode=change.mode, previous=previous,
                editor=change.editor, seq=self._seq,
            )
            # Submitted under the lock so queue order matches observation order
            self.queue.submit(transition)
        self.event_bus.emit(EventType.TRANSITION_QUEUED, TransitionEventData(transition))

    def _process(self, transition: Transition) -> None:
        if not self.protocol.settings.enable:
            logger.debug("Disabled since #%d was queued, skipping", transition.seq)
            return
        logger.debug("Applying #%d %s (mode=%r)", transition.seq, transition.kind.name, transition.mode)
        try:
            result = self.protocol.apply(transition)
        except CommandExecutionError as exc:
            logger.error("IM command failed: %s", exc)
            if exc.result is not None:
                log_command_output(exc.result)
            self.event_bus.emit(
                EventType.TRANSITION_FAILED, TransitionEventData(transition, error=exc),
            )
            return
        if result is not None:
            log_command_output(result)
        self.event_bus.emit(
            EventType.TRANSITION_COMPLETE, TransitionEventData(transition, result=result),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def wait_idle(self) -> None:
        """Block until every queued transition has been applied."""
        self.queue.join()

    def shutdown(self) -> None:
        """Unsubscribe from every source and stop the queue.  Idempotent."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            editors = list(self._editors.values())
            self._editors.clear()
            source, self._global_source = self._global_source, None

        for editor in editors:
            editor.unsubscribe(self.on_mode_change)
            self.event_bus.emit(EventType.EDITOR_UNBOUND, editor)
        if source is not None:
            source.unsubscribe(self.on_mode_change)
        self.queue.stop()
        logger.debug("Router shut down (%d editors unbound)", len(editors))
