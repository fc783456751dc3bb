"""
Task Store for Tasktrack.

Owns the ordered task collection and mirrors every successful mutation to a
key-value backend as one JSON document.

Persistence is best-effort: a mutation is committed once the in-memory
collection changes, and a failed write is logged and reported through
`last_persist` but never raised to the caller.
"""

import json
import logging
from dataclasses import dataclass
from typing import Callable, Optional

from tasktrack.config import DEFAULT_STORAGE_KEY
from tasktrack.models.task import DEFAULT_PRIORITY, TASK_PRIORITIES, Task, now_ms
from tasktrack.storage import KeyValueBackend, get_backend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageResult:
    """Outcome of a load or persist call."""

    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "StorageResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: Exception | str) -> "StorageResult":
        return cls(ok=False, error=str(error))


class TaskStore:
    """
    Canonical, insertion-ordered collection of tasks.

    Reads go through immutable snapshots (tuples of frozen Task objects);
    writes go through create/toggle/delete, each followed by a full
    collection write under the fixed storage key.
    """

    def __init__(
        self,
        backend: Optional[KeyValueBackend] = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize task store.

        Args:
            backend: Optional KeyValueBackend. If not provided, uses global backend.
            storage_key: Key holding the serialized collection
            clock: Returns current time in epoch milliseconds
        """
        self._backend = backend
        self.storage_key = storage_key
        self._clock = clock
        self._tasks: tuple[Task, ...] = ()
        self._last_id = 0
        self.last_load: Optional[StorageResult] = None
        self.last_persist: Optional[StorageResult] = None

    @property
    def backend(self) -> KeyValueBackend:
        """Get the storage backend."""
        if self._backend is None:
            self._backend = get_backend()
        return self._backend

    # ---- reads ----

    def snapshot(self) -> tuple[Task, ...]:
        """Current collection in insertion order."""
        return self._tasks

    def get(self, task_id: int) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def active(self) -> list[Task]:
        """Pending tasks, insertion order."""
        return [t for t in self._tasks if not t.completed]

    def completed(self) -> list[Task]:
        """Completed tasks, insertion order."""
        return [t for t in self._tasks if t.completed]

    def __len__(self) -> int:
        return len(self._tasks)

    # ---- mutations ----

    async def create(
        self,
        text: str,
        priority: str = DEFAULT_PRIORITY,
        assigned_to: str = "",
    ) -> Task | None:
        """
        Create a task and append it to the collection.

        Args:
            text: Task text (trimmed)
            priority: Priority (low, medium, high)
            assigned_to: Assignee (trimmed)

        Returns:
            The created Task, or None when text or assignee is blank

        Raises:
            ValueError: If priority is not a known value
        """
        if priority not in TASK_PRIORITIES:
            raise ValueError(f"Invalid priority. Must be one of: {', '.join(TASK_PRIORITIES)}")

        text = (text or "").strip()
        assigned_to = (assigned_to or "").strip()
        if not text or not assigned_to:
            logger.debug("Rejected task with blank text or assignee")
            return None

        now = self._clock()
        task = Task(
            id=self._next_id(now),
            text=text,
            assigned_to=assigned_to,
            created_at=now,
            priority=priority,
        )
        self._tasks = self._tasks + (task,)

        logger.info(f"Created task: {task.id} - {task.text}")
        await self.persist()
        return task

    async def toggle(self, task_id: int) -> Task | None:
        """
        Flip a task between pending and completed.

        Completing stamps the completion time; reopening clears it.

        Returns:
            The updated Task, or None if no task has this id
        """
        for index, task in enumerate(self._tasks):
            if task.id == task_id:
                break
        else:
            logger.debug(f"Toggle ignored, unknown task: {task_id}")
            return None

        updated = task.toggled(self._clock())
        self._tasks = self._tasks[:index] + (updated,) + self._tasks[index + 1:]

        logger.info(f"Toggled task {task_id}: completed={updated.completed}")
        await self.persist()
        return updated

    async def delete(self, task_id: int) -> bool:
        """Remove a task. Returns False if no task has this id."""
        remaining = tuple(t for t in self._tasks if t.id != task_id)
        if len(remaining) == len(self._tasks):
            logger.debug(f"Delete ignored, unknown task: {task_id}")
            return False

        self._tasks = remaining

        logger.info(f"Deleted task: {task_id}")
        await self.persist()
        return True

    # ---- persistence ----

    async def load(self) -> tuple[Task, ...]:
        """
        Replace the collection with the persisted snapshot.

        Missing, unreadable or malformed data yields an empty collection;
        the reason is logged and kept in `last_load`.
        """
        tasks, result = await self._read()
        self.last_load = result
        self._tasks = tasks
        self._last_id = max((t.id for t in tasks), default=0)

        if result.ok:
            logger.info(f"Loaded {len(tasks)} tasks from {self.backend.name} storage")
        else:
            logger.warning(f"Could not load tasks from '{self.storage_key}': {result.error}")
        return tasks

    async def persist(self, tasks: Optional[tuple[Task, ...]] = None) -> StorageResult:
        """
        Write the full collection under the storage key.

        Failures are logged and returned, never raised; the in-memory
        collection stays authoritative.
        """
        if tasks is None:
            tasks = self._tasks

        try:
            payload = json.dumps([t.to_dict() for t in tasks])
            await self.backend.set(self.storage_key, payload)
            result = StorageResult.success()
        except Exception as e:
            logger.exception(f"Error saving tasks to '{self.storage_key}'")
            result = StorageResult.failure(e)

        self.last_persist = result
        return result

    async def _read(self) -> tuple[tuple[Task, ...], StorageResult]:
        try:
            raw = await self.backend.get(self.storage_key)
        except Exception as e:
            return (), StorageResult.failure(e)

        if raw is None:
            return (), StorageResult.success()

        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            tasks = tuple(Task.from_dict(item) for item in data)
            _check_unique_ids(tasks)
        except (ValueError, TypeError, OverflowError) as e:
            # json.JSONDecodeError is a ValueError; OverflowError covers "Infinity" ids
            return (), StorageResult.failure(e)

        return tasks, StorageResult.success()

    def _next_id(self, now: int) -> int:
        # Time-based, but never reuses or goes below an id already handed out
        self._last_id = max(now, self._last_id + 1)
        return self._last_id


def _check_unique_ids(tasks: tuple[Task, ...]) -> None:
    seen = set()
    for task in tasks:
        if task.id in seen:
            raise ValueError(f"Duplicate task id: {task.id}")
        seen.add(task.id)
