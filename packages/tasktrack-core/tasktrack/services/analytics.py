"""
Analytics for Tasktrack.

Pure functions over a task snapshot: summary counters, distributions by
priority and assignee, completion latency and a 14-day completion histogram.
Nothing here mutates its input or touches storage.
"""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Optional

from tasktrack.models.task import Task

HISTORY_DAYS = 14

UNASSIGNED_LABEL = "unassigned"

END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class DayCount:
    """Completions on one local calendar day."""

    day: date
    count: int

    @property
    def label(self) -> str:
        """Short label, e.g. "Oct 18"."""
        return f"{self.day.strftime('%b')} {self.day.day}"


@dataclass(frozen=True)
class CompletionTime:
    """How long a completed task took, relative to the average."""

    task: Task
    minutes: float
    bar_percent: float

    @property
    def formatted(self) -> str:
        return format_average_time(self.minutes)


@dataclass(frozen=True)
class TaskStats:
    """
    Derived statistics for one snapshot.

    Attributes:
        total_tasks: Number of tasks
        completed_tasks: Tasks marked completed
        pending_tasks: total_tasks - completed_tasks
        average_completion_time_minutes: Mean creation-to-completion time
        tasks_by_priority: priority -> count, in order of first appearance
        tasks_by_assignee: (assignee, count) pairs, most tasks first
        completions_by_day: 14 local calendar days, oldest first
        recent_completions: Most recently completed tasks with their durations
    """

    total_tasks: int
    completed_tasks: int
    pending_tasks: int
    average_completion_time_minutes: float
    tasks_by_priority: dict[str, int]
    tasks_by_assignee: list[tuple[str, int]]
    completions_by_day: list[DayCount]
    recent_completions: list[CompletionTime] = field(default_factory=list)

    @property
    def completed_percent(self) -> float:
        return percent_of_total(self.completed_tasks, self.total_tasks)

    @property
    def pending_percent(self) -> float:
        return percent_of_total(self.pending_tasks, self.total_tasks)

    def to_dict(self) -> dict:
        """JSON-ready view with formatted values for display."""
        total = self.total_tasks
        return {
            "total_tasks": total,
            "completed_tasks": self.completed_tasks,
            "completed_percent": format_percent(self.completed_tasks, total),
            "pending_tasks": self.pending_tasks,
            "pending_percent": format_percent(self.pending_tasks, total),
            "average_completion_time_minutes": self.average_completion_time_minutes,
            "average_completion_time": format_average_time(self.average_completion_time_minutes),
            "tasks_by_priority": [
                {"priority": p, "count": n, "percent": format_percent(n, total)}
                for p, n in self.tasks_by_priority.items()
            ],
            "tasks_by_assignee": [
                {"assignee": a, "count": n, "percent": format_percent(n, total)}
                for a, n in self.tasks_by_assignee
            ],
            "completions_by_day": [
                {"date": d.day.isoformat(), "label": d.label, "count": d.count}
                for d in self.completions_by_day
            ],
            "recent_completions": [
                {
                    "id": c.task.id,
                    "text": c.task.text,
                    "minutes": round_half_up(c.minutes),
                    "time": c.formatted,
                    "bar_percent": c.bar_percent,
                }
                for c in self.recent_completions
            ],
        }


def compute_stats(
    tasks: Iterable[Task],
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
    recent_limit: int = 5,
) -> TaskStats:
    """
    Derive all statistics from a snapshot.

    Args:
        tasks: Task snapshot (any order)
        now: Reference time for the day histogram; defaults to the current time
        tz: Zone for calendar-day boundaries; None means local time
        recent_limit: How many recent completions to include

    Returns:
        TaskStats
    """
    tasks = tuple(tasks)
    total = len(tasks)
    completed = sum(1 for t in tasks if t.completed)
    average = average_completion_minutes(tasks)

    if now is None:
        now = datetime.now(tz)
    # Naive reference times are taken as already being in the target zone
    today = now.astimezone(tz).date() if now.tzinfo is not None else now.date()

    return TaskStats(
        total_tasks=total,
        completed_tasks=completed,
        pending_tasks=total - completed,
        average_completion_time_minutes=average,
        tasks_by_priority=count_by_priority(tasks),
        tasks_by_assignee=count_by_assignee(tasks),
        completions_by_day=completions_by_day(tasks, today=today, tz=tz),
        recent_completions=recent_completion_times(tasks, limit=recent_limit, average=average),
    )


def average_completion_minutes(tasks: Iterable[Task]) -> float:
    """Mean minutes from creation to completion; 0 when nothing is completed."""
    durations = [t.completion_minutes for t in tasks if t.completed_at is not None]
    if not durations:
        return 0
    return sum(durations) / len(durations)


def count_by_priority(tasks: Iterable[Task]) -> dict[str, int]:
    counts: dict[str, int] = {}
    for task in tasks:
        counts[task.priority] = counts.get(task.priority, 0) + 1
    return counts


def count_by_assignee(tasks: Iterable[Task]) -> list[tuple[str, int]]:
    """Counts per assignee, most tasks first; ties keep first-seen order."""
    counts: dict[str, int] = {}
    for task in tasks:
        assignee = task.assigned_to or UNASSIGNED_LABEL
        counts[assignee] = counts.get(assignee, 0) + 1
    # sorted() is stable, so equal counts stay in insertion order
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def completions_by_day(
    tasks: Iterable[Task],
    today: Optional[date] = None,
    tz: Optional[tzinfo] = None,
    days: int = HISTORY_DAYS,
) -> list[DayCount]:
    """
    Completions per local calendar day for the `days` days ending today.

    A task counts for a day when its completion time falls between
    00:00:00.000 and 23:59:59.999 of that date in `tz` (local time if None).
    """
    if today is None:
        today = datetime.now(tz).date()

    completed_at = [t.completed_at for t in tasks if t.completed_at is not None]

    series = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        start = _epoch_ms(datetime.combine(day, time.min, tzinfo=tz))
        end = _epoch_ms(datetime.combine(day, END_OF_DAY, tzinfo=tz))
        series.append(DayCount(day=day, count=sum(1 for ts in completed_at if start <= ts <= end)))
    return series


def recent_completion_times(
    tasks: Iterable[Task],
    limit: int = 5,
    average: Optional[float] = None,
) -> list[CompletionTime]:
    """
    The `limit` most recently completed tasks with their completion times.

    bar_percent scales each duration against twice the average, so an
    average task sits at 50.
    """
    tasks = tuple(tasks)
    if average is None:
        average = average_completion_minutes(tasks)

    done = sorted(
        (t for t in tasks if t.completed_at is not None),
        key=lambda t: t.completed_at,
        reverse=True,
    )

    result = []
    for task in done[:limit]:
        minutes = task.completion_minutes
        bar = minutes / (average * 2) * 100 if average else 0.0
        result.append(CompletionTime(task=task, minutes=minutes, bar_percent=bar))
    return result


def percent_of_total(count: int, total: int) -> float:
    """count / total as a percentage; 0.0 for an empty collection."""
    if total == 0:
        return 0.0
    return count / total * 100


def format_percent(count: int, total: int) -> str:
    return f"{percent_of_total(count, total):.1f}%"


def format_average_time(minutes: float) -> str:
    """
    Render a duration in minutes.

    Below an hour: whole minutes ("45 minutes"). From an hour up: hours
    to one decimal ("1.5 hours").
    """
    if minutes < 60:
        return f"{round_half_up(minutes)} minutes"
    return f"{minutes / 60:.1f} hours"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from -inf (like Math.round)."""
    return math.floor(value + 0.5)


def _epoch_ms(moment: datetime) -> int:
    # Naive datetimes are interpreted as local time by timestamp()
    return round(moment.timestamp() * 1000)
