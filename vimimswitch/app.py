"""VimIMSwitchApp — plugin lifecycle: load, wire, run, reload, unload."""

from __future__ import annotations

import logging
from typing import Iterable

import vimimswitch.log  # registers TRACE level and logger.trace()
from vimimswitch.config import ConfigManager, IMSwitchSettings
from vimimswitch.core.event_bus import EventBus
from vimimswitch.core.events import EventType
from vimimswitch.core.protocol import IMSwitchProtocol
from vimimswitch.core.router import IntegrationMode, ModeEventRouter
from vimimswitch.platform.command_runner import ICommandRunner
from vimimswitch.platform.stream_source import StreamModeSource

logger = logging.getLogger(__name__)


class VimIMSwitchApp:
    """Owns the configuration and the protocol/router pair.

    ``load()`` is separated from ``__init__`` so that tests can inject a
    fake command runner before anything is wired.
    """

    def __init__(
        self,
        config_path: str | None = None,
        debug: bool = False,
        legacy_editor: bool = False,
        runner: ICommandRunner | None = None,
        start_threads: bool = True,
    ):
        self.debug = debug
        self.config = ConfigManager(config_path=config_path)
        self.event_bus = EventBus()
        self.integration_mode = IntegrationMode.from_host_flags(legacy_editor)
        self.runner = runner
        self.start_threads = start_threads

        self.protocol: IMSwitchProtocol | None = None
        self.router: ModeEventRouter | None = None
        self.source: StreamModeSource | None = None
        self._loaded = False

    @property
    def settings(self) -> IMSwitchSettings:
        return self.config.settings

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> None:
        if self._loaded:
            return
        logger.info("Loading vimimswitch")

        if self.runner is None:
            from vimimswitch.platform.subprocess_impl import SubprocessCommandRunner
            self.runner = SubprocessCommandRunner()

        # Reads the snapshot on every operation so setting edits apply live
        self.protocol = IMSwitchProtocol(lambda: self.config.settings, self.runner)
        self.router = ModeEventRouter(
            self.protocol,
            integration_mode=self.integration_mode,
            event_bus=self.event_bus,
            start_thread=self.start_threads,
        )
        logger.info("Using %s integration", self.integration_mode.value)
        if self.debug:
            logger.debug("Settings from %s: %s", self.config.config_path, self.settings)
        if not self.settings.enable:
            logger.info("IM switching is disabled (set \"enable\": true in %s)", self.config.config_path)
        self._loaded = True

    def attach(self, source: StreamModeSource) -> None:
        """Connect a host source according to the integration mode."""
        self.source = source
        if self.integration_mode is IntegrationMode.GLOBAL:
            self.router.attach_global(source)
        else:
            source.on_editor_opened = self.router.on_editor_opened
            for editor in source.editors.values():
                self.router.bind_editor(editor)

    def run(self, stream: Iterable[str]) -> int:
        """Feed notifications from *stream* until EOF, then drain the queue."""
        self.load()
        if self.source is None:
            self.attach(StreamModeSource())
        count = self.source.run(stream)
        if self.start_threads:
            self.router.wait_idle()
        else:
            self.router.queue.process_pending()
        logger.debug("Stream closed after %d notifications", count)
        return count

    def unload(self) -> None:
        """Graceful shutdown — safe to call multiple times."""
        if not self._loaded:
            return
        self.router.shutdown()
        self._loaded = False
        self.event_bus.emit(EventType.APP_QUIT)
        logger.info("Unloading vimimswitch")

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def save_settings(self, **updates) -> IMSwitchSettings:
        """Apply *updates*, persist them, and notify subscribers.

        Raises ``ValueError`` for invalid values; nothing is saved then.
        """
        settings = self.config.update(updates)
        if not self.config.save():
            logger.warning("Settings applied for this session only, not saved to %s",
                           self.config.config_path)
        self.event_bus.emit(EventType.CONFIG_CHANGED, settings)
        return settings

    def reload_settings(self) -> bool:
        ok = self.config.reload()
        if ok:
            logger.info("Config reloaded from %s", self.config.config_path)
            self.event_bus.emit(EventType.CONFIG_CHANGED, self.settings)
        else:
            logger.warning("Config reload rejected, keeping previous settings")
        return ok
