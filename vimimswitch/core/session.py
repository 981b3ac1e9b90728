"""Per-process IM session state."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SessionState:
    # IM captured at the most recent insert→normal transition.  Only ever
    # overwritten, never cleared.
    last_insert_mode_im: str | None = None
