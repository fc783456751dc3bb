"""
Task model for Tasktrack.

A task is created once, toggled between pending and completed, and deleted.
Its completion time lives in the state variant, so a task carries a
completion timestamp exactly when it is completed.
"""

import time
from dataclasses import dataclass, field, replace
from typing import Optional, Union

# Valid priority values
TASK_PRIORITIES = ("low", "medium", "high")

DEFAULT_PRIORITY = "medium"

MS_PER_MINUTE = 60_000


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Pending:
    """State of a task that has not been completed."""


@dataclass(frozen=True)
class Completed:
    """State of a completed task; `at` is the completion time in epoch ms."""

    at: int


TaskState = Union[Pending, Completed]

PENDING = Pending()


@dataclass(frozen=True)
class Task:
    """
    A tracked unit of work.

    Attributes:
        id: Unique, time-based identifier assigned by the store
        text: Task description (trimmed, non-empty)
        assigned_to: Assignee name (trimmed, non-empty)
        created_at: Creation time in epoch milliseconds
        priority: Priority level (low, medium, high)
        state: Pending or Completed(at)
    """

    id: int
    text: str
    assigned_to: str
    created_at: int
    priority: str = DEFAULT_PRIORITY
    state: TaskState = field(default=PENDING)

    @property
    def completed(self) -> bool:
        return isinstance(self.state, Completed)

    @property
    def completed_at(self) -> Optional[int]:
        if isinstance(self.state, Completed):
            return self.state.at
        return None

    @property
    def completion_minutes(self) -> Optional[float]:
        """Minutes between creation and completion, or None while pending."""
        if self.completed_at is None:
            return None
        return (self.completed_at - self.created_at) / MS_PER_MINUTE

    def toggled(self, now: int) -> "Task":
        """Return a copy with the completion state flipped."""
        if self.completed:
            return replace(self, state=PENDING)
        return replace(self, state=Completed(at=now))

    def to_dict(self) -> dict:
        """Convert to the persisted record layout."""
        data = {
            "id": self.id,
            "text": self.text,
            "completed": self.completed,
            "priority": self.priority,
            "createdAt": self.created_at,
            "assignedTo": self.assigned_to,
        }
        if self.completed_at is not None:
            data["completedAt"] = self.completed_at
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Task":
        """
        Create a Task from a persisted record.

        Raises:
            ValueError: If the record does not have the expected shape
        """
        if not isinstance(data, dict):
            raise ValueError(f"Task record must be an object, got {type(data).__name__}")

        task_id = data.get("id")
        text = data.get("text")
        assigned_to = data.get("assignedTo")
        created_at = data.get("createdAt")
        priority = data.get("priority", DEFAULT_PRIORITY)
        completed = data.get("completed", False)
        completed_at = data.get("completedAt")

        if not _is_timestamp(task_id):
            raise ValueError(f"Invalid task id: {task_id!r}")
        if not isinstance(text, str) or not text.strip():
            raise ValueError(f"Task {task_id} has no text")
        if not isinstance(assigned_to, str) or not assigned_to.strip():
            raise ValueError(f"Task {task_id} has no assignee")
        if not _is_timestamp(created_at):
            raise ValueError(f"Task {task_id} has invalid createdAt: {created_at!r}")
        if priority not in TASK_PRIORITIES:
            raise ValueError(f"Task {task_id} has invalid priority: {priority!r}")
        if not isinstance(completed, bool):
            raise ValueError(f"Task {task_id} has invalid completed flag: {completed!r}")

        state: TaskState = PENDING
        if completed:
            if not _is_timestamp(completed_at):
                raise ValueError(f"Completed task {task_id} has no completedAt")
            state = Completed(at=int(completed_at))

        return cls(
            id=int(task_id),
            text=text.strip(),
            assigned_to=assigned_to.strip(),
            created_at=int(created_at),
            priority=priority,
            state=state,
        )


def _is_timestamp(value) -> bool:
    # bool is an int subclass; reject it explicitly
    return isinstance(value, (int, float)) and not isinstance(value, bool)
