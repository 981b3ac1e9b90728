"""Mode notification contract between the host editor and the router."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class ModeChange:
    """One ``vim-mode-change`` notification.

    ``editor`` is the instance that emitted it, or ``None`` when it came
    from a global source.  ``sub_mode`` carries e.g. ``"linewise"`` for
    visual mode and is informational only.
    """

    mode: str
    editor: Any = None
    sub_mode: str | None = None


ModeChangeHandler = Callable[[ModeChange], None]


class IModeSource(ABC):
    """Anything that emits mode-change notifications.

    Implemented by a single global source (legacy integration) and by each
    editor instance (per-editor integration).
    """

    @abstractmethod
    def subscribe(self, handler: ModeChangeHandler) -> None: ...

    @abstractmethod
    def unsubscribe(self, handler: ModeChangeHandler) -> None: ...
