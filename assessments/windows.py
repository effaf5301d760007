"""Where an instant falls relative to an exam window ``[starts_at, ends_at)``."""
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

NOT_STARTED = "not_started"
OPEN = "open"
CLOSED = "closed"


@dataclass(frozen=True)
class WindowPosition:
    gate: str
    seconds_until_start: Optional[int] = None
    seconds_remaining: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.gate == OPEN


def _whole_seconds(delta) -> int:
    return max(0, math.ceil(delta.total_seconds()))


def locate(window, now: datetime) -> WindowPosition:
    if now < window.starts_at:
        return WindowPosition(NOT_STARTED, seconds_until_start=_whole_seconds(window.starts_at - now))
    if now < window.ends_at:
        return WindowPosition(OPEN, seconds_remaining=_whole_seconds(window.ends_at - now))
    return WindowPosition(CLOSED, seconds_remaining=0)
