"""Line-oriented host: mode notifications read from a text stream.

Each non-blank line is one notification::

    insert                 mode of the default editor
    buf3:normal            mode of editor ``buf3``
    buf3:visual/linewise   mode with a sub-mode

Editors in autocommands can pipe these lines into ``vimimswitch``, e.g.
``autocmd InsertEnter * call chansend(g:imchan, "insert\\n")``.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

import vimimswitch.log  # registers TRACE level and logger.trace()
from vimimswitch.platform.host import IModeSource, ModeChange, ModeChangeHandler

logger = logging.getLogger(__name__)

DEFAULT_EDITOR_ID = "default"


def parse_line(line: str) -> tuple[str, str, str | None] | None:
    """Split a notification line into ``(editor_id, mode, sub_mode)``.

    Returns None for blank lines and ``#`` comments.
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None
    editor_id, sep, rest = line.partition(":")
    if not sep:
        editor_id, rest = DEFAULT_EDITOR_ID, line
    mode, _, sub_mode = rest.partition("/")
    return editor_id.strip() or DEFAULT_EDITOR_ID, mode.strip(), sub_mode.strip() or None


class _Emitter(IModeSource):
    def __init__(self) -> None:
        self._handlers: list[ModeChangeHandler] = []

    def subscribe(self, handler: ModeChangeHandler) -> None:
        if handler not in self._handlers:
            self._handlers.append(handler)

    def unsubscribe(self, handler: ModeChangeHandler) -> None:
        try:
            self._handlers.remove(handler)
        except ValueError:
            pass

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def _emit(self, change: ModeChange) -> None:
        for handler in list(self._handlers):
            handler(change)


class StreamEditor(_Emitter):
    """An editor instance known only by the id used in the stream."""

    def __init__(self, editor_id: str) -> None:
        super().__init__()
        self.editor_id = editor_id

    def emit(self, mode: str, sub_mode: str | None = None) -> None:
        self._emit(ModeChange(mode=mode, editor=self, sub_mode=sub_mode))

    def __repr__(self) -> str:
        return f"StreamEditor({self.editor_id!r})"


class StreamModeSource(_Emitter):
    """Global source fed from lines of text.

    Global subscribers see every notification.  Editor subscribers see only
    their own.  ``on_editor_opened`` fires the first time an editor id
    appears, before its first notification is delivered.
    """

    def __init__(self, on_editor_opened: Callable[[StreamEditor], None] | None = None) -> None:
        super().__init__()
        self.on_editor_opened = on_editor_opened
        self.editors: dict[str, StreamEditor] = {}

    def editor(self, editor_id: str) -> StreamEditor:
        editor = self.editors.get(editor_id)
        if editor is None:
            editor = StreamEditor(editor_id)
            self.editors[editor_id] = editor
            logger.debug("Editor opened: %s", editor_id)
            if self.on_editor_opened:
                self.on_editor_opened(editor)
        return editor

    def feed_line(self, line: str) -> bool:
        """Deliver one line.  Returns False if the line carried nothing."""
        parsed = parse_line(line)
        if parsed is None:
            return False
        editor_id, mode, sub_mode = parsed
        logger.trace("line: editor=%s mode=%r sub=%r", editor_id, mode, sub_mode)  # type: ignore[attr-defined]
        editor = self.editor(editor_id)
        editor.emit(mode, sub_mode)
        self._emit(ModeChange(mode=mode, editor=editor, sub_mode=sub_mode))
        return True

    def run(self, stream: Iterable[str]) -> int:
        """Feed every line of *stream* until EOF. Returns lines delivered."""
        count = 0
        for line in stream:
            if self.feed_line(line):
                count += 1
        return count
