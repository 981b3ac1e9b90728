"""TransitionQueue — applies transitions one at a time, in arrival order."""

from __future__ import annotations

import logging
import queue
import threading
from typing import Callable

import vimimswitch.log  # registers TRACE level and logger.trace()
from vimimswitch.core.modes import Transition

logger = logging.getLogger(__name__)

_STOP = object()


class TransitionQueue:
    """Single-flight FIFO in front of a transition handler.

    Parameters:
        handler:      Called with each ``Transition``, never concurrently.
        start_thread: Start the worker thread immediately.  With False,
                      transitions wait until ``process_pending()`` is called.
    """

    def __init__(self, handler: Callable[[Transition], None], start_thread: bool = True):
        self.handler = handler
        self._queue: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None
        self._running = False
        if start_thread:
            self.start()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._running = True
        self._thread = threading.Thread(target=self._run, daemon=True, name="im-transitions")
        self._thread.start()

    def stop(self, timeout: float = 2.0) -> None:
        """Finish queued transitions, then stop the worker."""
        self._running = False
        if self._thread is not None:
            self._queue.put(_STOP)
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Transition worker still busy after %.1fs, %d transition(s) pending",
                               timeout, self.pending)
            self._thread = None

    def submit(self, transition: Transition) -> None:
        logger.trace("queued #%d %s", transition.seq, transition.kind.name)  # type: ignore[attr-defined]
        self._queue.put(transition)

    def join(self) -> None:
        """Block until every submitted transition has been handled."""
        self._queue.join()

    def process_pending(self) -> int:
        """Handle queued transitions on the calling thread.

        Only for use when no worker thread is running.  Returns the number
        of transitions handled.
        """
        count = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return count
            try:
                if item is not _STOP:
                    self._handle(item)
                    count += 1
            finally:
                self._queue.task_done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    @property
    def is_running(self) -> bool:
        return self._running and self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _handle(self, transition: Transition) -> None:
        try:
            self.handler(transition)
        except Exception:
            logger.exception("Transition #%d (%s) failed", transition.seq, transition.kind.name)

    def _run(self) -> None:
        """Worker loop — runs in a daemon thread."""
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._handle(item)
            finally:
                self._queue.task_done()
