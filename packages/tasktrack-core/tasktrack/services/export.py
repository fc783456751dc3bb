"""
Completed-task export snapshot.

Produces the rows an exporter writes out: completed tasks, most recently
completed first, each annotated with its completion duration.
"""

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Iterable, Optional

from tasktrack.models.task import Task
from tasktrack.services.analytics import round_half_up

EXPORT_COLUMNS = (
    "Task",
    "Assigned to",
    "Priority",
    "Created date",
    "Created time",
    "Completed date",
    "Completed time",
    "Duration (minutes)",
)


@dataclass(frozen=True)
class CompletedTaskRow:
    """One completed task with its whole-minute completion duration."""

    task: Task
    duration_minutes: int

    def to_row(self, tz: Optional[tzinfo] = None) -> tuple:
        """Values in EXPORT_COLUMNS order; dates and times in tz (local if None)."""
        created = _to_datetime(self.task.created_at, tz)
        completed = _to_datetime(self.task.completed_at, tz)
        return (
            self.task.text,
            self.task.assigned_to,
            self.task.priority,
            created.date().isoformat(),
            created.strftime("%H:%M:%S"),
            completed.date().isoformat(),
            completed.strftime("%H:%M:%S"),
            self.duration_minutes,
        )

    def to_dict(self, tz: Optional[tzinfo] = None) -> dict:
        return dict(zip(EXPORT_COLUMNS, self.to_row(tz)))


def completed_snapshot(tasks: Iterable[Task]) -> list[CompletedTaskRow]:
    """
    Completed tasks sorted by completion time, newest first.

    Equal completion times keep their collection order.
    """
    done = [t for t in tasks if t.completed_at is not None]
    done.sort(key=lambda t: t.completed_at, reverse=True)
    return [
        CompletedTaskRow(task=t, duration_minutes=round_half_up(t.completion_minutes))
        for t in done
    ]


def export_rows(tasks: Iterable[Task], tz: Optional[tzinfo] = None) -> list[tuple]:
    """Header row followed by one row per completed task."""
    return [EXPORT_COLUMNS] + [row.to_row(tz) for row in completed_snapshot(tasks)]


def _to_datetime(timestamp_ms: int, tz: Optional[tzinfo]) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz)
