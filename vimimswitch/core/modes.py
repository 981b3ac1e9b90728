"""Mode labels, mode classes and the transition table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any


class ModeClass(Enum):
    INSERT_LIKE = auto()
    NORMAL_LIKE = auto()


class TransitionKind(Enum):
    ENTER_NORMAL_OR_VISUAL = auto()
    ENTER_INSERT = auto()


# Labels as emitted by the Vim keymap of the host editor.  Anything else
# ("visual block", "command", "") is ignored.
MODE_CLASSES: dict[str, ModeClass] = {
    "insert": ModeClass.INSERT_LIKE,
    "replace": ModeClass.INSERT_LIKE,
    "normal": ModeClass.NORMAL_LIKE,
    "visual": ModeClass.NORMAL_LIKE,
}

# Allowed transitions: {previous_class: {new_class: kind}}.  ``None`` is the
# state before the first recognized notification.
TRANSITIONS: dict[ModeClass | None, dict[ModeClass, TransitionKind]] = {
    None: {
        ModeClass.NORMAL_LIKE: TransitionKind.ENTER_NORMAL_OR_VISUAL,
        ModeClass.INSERT_LIKE: TransitionKind.ENTER_INSERT,
    },
    ModeClass.INSERT_LIKE: {
        ModeClass.NORMAL_LIKE: TransitionKind.ENTER_NORMAL_OR_VISUAL,
    },
    ModeClass.NORMAL_LIKE: {
        ModeClass.INSERT_LIKE: TransitionKind.ENTER_INSERT,
    },
}


def classify_mode(label: str | None) -> ModeClass | None:
    if not label:
        return None
    return MODE_CLASSES.get(label)


def transition_kind(previous: ModeClass | None, current: ModeClass) -> TransitionKind | None:
    return TRANSITIONS.get(previous, {}).get(current)


@dataclass(frozen=True)
class Transition:
    kind: TransitionKind
    mode: str
    previous: ModeClass | None = None
    editor: Any = None
    seq: int = 0
