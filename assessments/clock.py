"""
Source of "now" for the session lifecycle.

All comparisons against exam windows use UTC instants from a single clock;
conversion to a display timezone happens only when rendering responses.
"""
from datetime import datetime, timezone as dt_timezone

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from django.utils import timezone
from django.utils.module_loading import import_string


class SystemClock:
    def now(self) -> datetime:
        return timezone.now().astimezone(dt_timezone.utc)


class FixedClock:
    """A clock that only moves when told to. Injected directly in tests; not usable as ``CBT_CLOCK``."""

    def __init__(self, instant: datetime):
        self.set(instant)

    def set(self, instant: datetime):
        if timezone.is_naive(instant):
            raise ValueError("FixedClock needs an aware datetime")
        self._instant = instant.astimezone(dt_timezone.utc)

    def advance(self, delta):
        self._instant = self._instant + delta

    def now(self) -> datetime:
        return self._instant


def get_clock():
    """Instantiate the clock named by ``CBT_CLOCK``. It must take no arguments."""
    clock_class = import_string(settings.CBT_CLOCK)
    try:
        return clock_class()
    except TypeError as exc:
        raise ImproperlyConfigured(
            f"CBT_CLOCK must name a clock that takes no arguments, not {settings.CBT_CLOCK!r}."
        ) from exc


def utc_now() -> datetime:
    return get_clock().now()
