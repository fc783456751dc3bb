"""
Relative-time strings for Tasktrack.

`time_since` renders "3 minutes ago" style text for a creation timestamp;
`time_to_complete` reuses the same bucketing for a completed task.
`RelativeTimeTicker` keeps such a string fresh while a view shows it,
updating on whole-minute boundaries.
"""

import asyncio
import logging
import math
from typing import Callable, Optional

from tasktrack.models.task import MS_PER_MINUTE, now_ms

logger = logging.getLogger(__name__)

LESS_THAN_A_MINUTE = "less than 1 minute"


def duration_bucket(diff_ms: float) -> Optional[tuple[int, str]]:
    """
    Most significant whole unit of a duration.

    Returns:
        (amount, unit) with unit in day/hour/minute, or None under a minute
    """
    minutes = math.floor(diff_ms / MS_PER_MINUTE)
    hours = math.floor(minutes / 60)
    days = math.floor(hours / 24)

    if days > 0:
        return days, "day"
    if hours > 0:
        return hours, "hour"
    if minutes > 0:
        return minutes, "minute"
    return None


def _pluralize(amount: int, unit: str) -> str:
    return f"{amount} {unit}{'' if amount == 1 else 's'}"


def format_duration(diff_ms: float) -> str:
    """Render a duration as "2 hours", "1 day" or "less than 1 minute"."""
    bucket = duration_bucket(diff_ms)
    if bucket is None:
        return LESS_THAN_A_MINUTE
    return _pluralize(*bucket)


def time_since(created_at: int, now: Optional[int] = None) -> str:
    """Elapsed time since created_at, e.g. "1 hour ago"."""
    if now is None:
        now = now_ms()
    bucket = duration_bucket(now - created_at)
    if bucket is None:
        return LESS_THAN_A_MINUTE
    return f"{_pluralize(*bucket)} ago"


def time_to_complete(created_at: int, completed_at: int) -> str:
    """Creation-to-completion time, e.g. "completed in 3 minutes"."""
    return f"completed in {format_duration(completed_at - created_at)}"


def next_minute_boundary(now: int) -> int:
    """First whole-minute epoch timestamp at or after now."""
    return math.ceil(now / MS_PER_MINUTE) * MS_PER_MINUTE


class RelativeTimeTicker:
    """
    Recomputes a "time since" string on minute boundaries.

    start() renders immediately, then arms a one-shot timer for the next
    whole minute; once that fires, a steady timer repeats every period_ms
    against accumulated loop deadlines so ticks do not drift. stop()
    cancels whichever timer is pending. Used as a context manager, the
    ticker is stopped on every exit path.

    Example:
        with RelativeTimeTicker(task.created_at, on_update=label.set_text):
            await view_closed.wait()
    """

    def __init__(
        self,
        created_at: int,
        on_update: Optional[Callable[[str], None]] = None,
        *,
        clock: Callable[[], int] = now_ms,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        period_ms: int = MS_PER_MINUTE,
        render: Callable[[int, int], str] = time_since,
    ):
        self.created_at = created_at
        self._on_update = on_update
        self._clock = clock
        self._loop = loop
        self._period = period_ms / 1000
        self._render = render
        self._timeout: Optional[asyncio.TimerHandle] = None
        self._interval: Optional[asyncio.TimerHandle] = None
        self._deadline = 0.0
        self.value = ""

    @property
    def active(self) -> bool:
        return self._timeout is not None or self._interval is not None

    def start(self) -> str:
        """Render now and schedule the minute-aligned updates."""
        if self.active:
            return self.value

        if self._loop is None:
            self._loop = asyncio.get_running_loop()

        self.refresh()

        now = self._clock()
        delay_ms = next_minute_boundary(now) - now
        self._timeout = self._loop.call_later(delay_ms / 1000, self._on_aligned)
        logger.debug(f"Ticker for {self.created_at} aligned in {delay_ms} ms")
        return self.value

    def stop(self) -> None:
        """Cancel pending timers. Safe to call more than once."""
        if self._timeout is not None:
            self._timeout.cancel()
            self._timeout = None
        if self._interval is not None:
            self._interval.cancel()
            self._interval = None

    def refresh(self) -> str:
        self.value = self._render(self.created_at, self._clock())
        if self._on_update is not None:
            self._on_update(self.value)
        return self.value

    def _on_aligned(self) -> None:
        self._timeout = None
        self._deadline = self._loop.time() + self._period
        self._interval = self._loop.call_at(self._deadline, self._on_tick)
        self.refresh()

    def _on_tick(self) -> None:
        # Re-arm before rendering so a failing callback does not end the ticker
        self._deadline += self._period
        self._interval = self._loop.call_at(self._deadline, self._on_tick)
        self.refresh()

    def __enter__(self) -> "RelativeTimeTicker":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()
