"""
Core data models for Tasktrack.
"""

from tasktrack.models.task import (
    PENDING,
    TASK_PRIORITIES,
    Completed,
    Pending,
    Task,
    TaskState,
)

__all__ = [
    "Task",
    "TaskState",
    "Pending",
    "Completed",
    "PENDING",
    "TASK_PRIORITIES",
]
