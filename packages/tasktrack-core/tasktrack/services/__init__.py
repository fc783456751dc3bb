"""
Business logic services for Tasktrack.
"""

from tasktrack.services.analytics import TaskStats, compute_stats, format_average_time
from tasktrack.services.export import CompletedTaskRow, completed_snapshot, export_rows
from tasktrack.services.relative_time import RelativeTimeTicker, time_since, time_to_complete
from tasktrack.services.tasks import StorageResult, TaskStore

__all__ = [
    "TaskStore",
    "StorageResult",
    "TaskStats",
    "compute_stats",
    "format_average_time",
    "CompletedTaskRow",
    "completed_snapshot",
    "export_rows",
    "RelativeTimeTicker",
    "time_since",
    "time_to_complete",
]
