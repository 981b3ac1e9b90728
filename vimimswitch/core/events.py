"""Typed event definitions (dataclasses)."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from vimimswitch.core.modes import Transition
from vimimswitch.platform.command_runner import CommandResult


class EventType(Enum):
    # Editor binding
    EDITOR_BOUND = auto()
    EDITOR_UNBOUND = auto()
    # Transition lifecycle
    TRANSITION_QUEUED = auto()
    TRANSITION_COMPLETE = auto()
    TRANSITION_FAILED = auto()
    # Config
    CONFIG_CHANGED = auto()
    # App lifecycle
    APP_QUIT = auto()


@dataclass
class Event:
    type: EventType
    data: Any
    timestamp: float


@dataclass
class TransitionEventData:
    transition: Transition
    result: CommandResult | None = None
    error: Exception | None = None
