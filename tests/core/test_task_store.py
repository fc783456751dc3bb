"""
Tests for TaskStore.
"""

import json

import pytest

MINUTE = 60_000


class FailingBackend:
    """Backend whose reads and writes always fail."""

    name = "failing"

    async def connect(self):
        pass

    async def close(self):
        pass

    async def get(self, key):
        raise OSError("storage unavailable")

    async def set(self, key, value):
        raise OSError("quota exceeded")


@pytest.fixture
def backend():
    from tasktrack.storage import MemoryBackend

    return MemoryBackend()


@pytest.fixture
def store(backend, clock):
    from tasktrack.services.tasks import TaskStore

    return TaskStore(backend=backend, clock=clock)


async def _persisted(backend, key="todos"):
    raw = await backend.get(key)
    return json.loads(raw) if raw is not None else None


class TestTaskStoreCreate:
    """Tests for TaskStore.create()."""

    async def test_create_task(self, store, clock):
        """Test creating a task sets defaults and creation time."""
        task = await store.create("Write report", priority="high", assigned_to="Ana")

        assert task.text == "Write report"
        assert task.priority == "high"
        assert task.assigned_to == "Ana"
        assert task.created_at == clock.now
        assert task.completed is False
        assert task.completed_at is None
        assert store.snapshot() == (task,)

    async def test_create_trims_text_and_assignee(self, store):
        """Test surrounding whitespace is stripped before storage."""
        task = await store.create("  Buy milk \n", assigned_to="  Bob ")

        assert task.text == "Buy milk"
        assert task.assigned_to == "Bob"
        assert task.priority == "medium"

    @pytest.mark.parametrize("text,assignee", [
        ("", "Bob"),
        ("   ", "Bob"),
        ("Task", ""),
        ("Task", "\t"),
    ])
    async def test_create_rejects_blank_fields(self, store, backend, text, assignee):
        """Test blank text or assignee is a silent no-op."""
        result = await store.create(text, priority="low", assigned_to=assignee)

        assert result is None
        assert len(store) == 0
        assert await backend.get("todos") is None

    async def test_create_invalid_priority(self, store):
        """Test that an unknown priority raises error."""
        with pytest.raises(ValueError) as exc:
            await store.create("Task", priority="urgent", assigned_to="Bob")

        assert "Invalid priority" in str(exc.value)

    async def test_ids_unique_within_same_millisecond(self, store):
        """Test ids stay unique when the clock does not move."""
        first = await store.create("One", assigned_to="Bob")
        second = await store.create("Two", assigned_to="Bob")

        assert second.id > first.id
        assert first.id == first.created_at

    async def test_ids_do_not_go_backwards(self, store, clock):
        """Test a clock step backwards does not produce a smaller id."""
        first = await store.create("One", assigned_to="Bob")
        clock.advance(-5 * MINUTE)
        second = await store.create("Two", assigned_to="Bob")

        assert second.id > first.id

    async def test_create_appends_in_order(self, store, clock):
        """Test tasks keep insertion order."""
        for name in ("a", "b", "c"):
            await store.create(name, assigned_to="Bob")
            clock.advance(1000)

        assert [t.text for t in store.snapshot()] == ["a", "b", "c"]


class TestTaskStoreToggle:
    """Tests for TaskStore.toggle()."""

    async def test_toggle_completes(self, store, clock):
        """Test completing a task stamps completion time."""
        task = await store.create("Write report", priority="high", assigned_to="Ana")
        clock.advance(10 * MINUTE)

        updated = await store.toggle(task.id)

        assert updated.completed is True
        assert updated.completed_at == task.created_at + 10 * MINUTE
        assert store.get(task.id) == updated

    async def test_toggle_twice_restores_task(self, store, clock):
        """Test an even number of toggles returns to the original task."""
        task = await store.create("Write report", priority="high", assigned_to="Ana")
        clock.advance(MINUTE)
        await store.toggle(task.id)
        clock.advance(MINUTE)
        reopened = await store.toggle(task.id)

        assert reopened == task
        assert reopened.completed_at is None

    async def test_toggle_unknown_id(self, store, backend):
        """Test toggling a missing id is a no-op."""
        assert await store.toggle(12345) is None
        assert await backend.get("todos") is None

    async def test_toggle_keeps_position(self, store, clock):
        """Test toggled tasks keep their place in the collection."""
        a = await store.create("a", assigned_to="Bob")
        b = await store.create("b", assigned_to="Bob")
        c = await store.create("c", assigned_to="Bob")

        await store.toggle(b.id)

        assert [t.id for t in store.snapshot()] == [a.id, b.id, c.id]
        assert [t.id for t in store.active()] == [a.id, c.id]
        assert [t.id for t in store.completed()] == [b.id]

    async def test_completed_iff_completed_at(self, store, clock):
        """Test the completion invariant across a mix of mutations."""
        tasks = [await store.create(f"t{i}", assigned_to="Bob") for i in range(4)]
        clock.advance(MINUTE)
        await store.toggle(tasks[0].id)
        await store.toggle(tasks[1].id)
        await store.toggle(tasks[1].id)
        await store.toggle(tasks[3].id)

        for task in store.snapshot():
            assert task.completed == (task.completed_at is not None)


class TestTaskStoreDelete:
    """Tests for TaskStore.delete()."""

    async def test_delete(self, store):
        """Test deleting removes the task."""
        task = await store.create("Gone soon", assigned_to="Bob")

        assert await store.delete(task.id) is True
        assert store.get(task.id) is None
        assert len(store) == 0

    async def test_delete_unknown_id(self, store):
        """Test deleting a missing id is a no-op."""
        await store.create("Stays", assigned_to="Bob")

        assert await store.delete(999) is False
        assert len(store) == 1


class TestTaskStorePersistence:
    """Tests for load() and persist()."""

    async def test_every_mutation_writes_full_collection(self, store, backend):
        """Test the stored document mirrors the collection after each change."""
        a = await store.create("a", assigned_to="Bob")
        assert [r["id"] for r in await _persisted(backend)] == [a.id]

        b = await store.create("b", assigned_to="Bob")
        await store.toggle(a.id)
        records = await _persisted(backend)
        assert [r["id"] for r in records] == [a.id, b.id]
        assert records[0]["completed"] is True
        assert "completedAt" in records[0]
        assert "completedAt" not in records[1]

        await store.delete(a.id)
        assert [r["id"] for r in await _persisted(backend)] == [b.id]

    async def test_load_roundtrip(self, store, backend, clock):
        """Test a fresh store sees the same tasks in the same order."""
        from tasktrack.services.tasks import TaskStore

        a = await store.create("a", priority="low", assigned_to="Bob")
        b = await store.create("b", priority="high", assigned_to="Ana")
        clock.advance(MINUTE)
        await store.toggle(b.id)

        fresh = TaskStore(backend=backend, clock=clock)
        loaded = await fresh.load()

        assert loaded == store.snapshot()
        assert fresh.last_load.ok is True
        assert loaded[0] == a

    async def test_load_without_data(self, store):
        """Test loading with no stored key gives an empty collection."""
        assert await store.load() == ()
        assert store.last_load.ok is True

    @pytest.mark.parametrize("raw", [
        "not json at all",
        "{\"id\": 1}",
        "[{\"id\": 1, \"text\": \"\"}]",
        "[{\"id\": 1, \"text\": \"a\", \"completed\": true, \"priority\": \"low\", "
        "\"createdAt\": 1, \"assignedTo\": \"bob\"}]",
        "[{\"id\": Infinity, \"text\": \"a\", \"createdAt\": 1, \"assignedTo\": \"bob\"}]",
    ])
    async def test_load_malformed_data(self, backend, clock, raw):
        """Test malformed stored data loads as empty without raising."""
        from tasktrack.services.tasks import TaskStore

        await backend.set("todos", raw)
        store = TaskStore(backend=backend, clock=clock)

        assert await store.load() == ()
        assert store.last_load.ok is False
        assert store.last_load.error

    async def test_load_replaces_collection(self, store, backend):
        """Test load discards in-memory tasks in favour of storage."""
        await store.create("kept in storage", assigned_to="Bob")
        await backend.set("todos", "[]")

        assert await store.load() == ()
        assert len(store) == 0

    async def test_load_rejects_duplicate_ids(self, backend, clock):
        """Test a stored array that repeats an id is treated as malformed."""
        from tasktrack.services.tasks import TaskStore

        record = {
            "id": 5, "text": "twice", "completed": False,
            "priority": "low", "createdAt": 5, "assignedTo": "Bob",
        }
        await backend.set("todos", json.dumps([record, dict(record, text="again")]))
        store = TaskStore(backend=backend, clock=clock)

        assert await store.load() == ()
        assert store.last_load.ok is False
        assert "Duplicate task id: 5" in store.last_load.error

    async def test_load_without_usable_backend(self, monkeypatch, clock):
        """Test a backend that cannot be built loads as empty without raising."""
        from tasktrack.services import tasks as tasks_module

        def unknown_backend():
            raise ValueError("Unknown storage type: bogus")

        monkeypatch.setattr(tasks_module, "get_backend", unknown_backend)
        store = tasks_module.TaskStore(clock=clock)

        assert await store.load() == ()
        assert store.last_load.ok is False
        assert "Unknown storage type" in store.last_load.error

    async def test_ids_after_load_exceed_loaded_ids(self, backend, clock):
        """Test new ids stay above ids that came from storage."""
        from tasktrack.services.tasks import TaskStore

        future_id = clock.now + 10 * MINUTE
        await backend.set("todos", json.dumps([{
            "id": future_id, "text": "from the future", "completed": False,
            "priority": "medium", "createdAt": future_id, "assignedTo": "Bob",
        }]))
        store = TaskStore(backend=backend, clock=clock)
        await store.load()

        task = await store.create("now", assigned_to="Bob")

        assert task.id > future_id

    async def test_custom_storage_key(self, backend, clock):
        """Test the collection is written under the configured key."""
        from tasktrack.services.tasks import TaskStore

        store = TaskStore(backend=backend, storage_key="team-board", clock=clock)
        await store.create("a", assigned_to="Bob")

        assert await backend.get("team-board") is not None
        assert await backend.get("todos") is None

    async def test_write_failure_keeps_mutation(self, clock):
        """Test a failed write is reported but does not undo the change."""
        from tasktrack.services.tasks import TaskStore

        store = TaskStore(backend=FailingBackend(), clock=clock)

        task = await store.create("Still here", assigned_to="Bob")

        assert task is not None
        assert store.snapshot() == (task,)
        assert store.last_persist.ok is False
        assert "quota exceeded" in store.last_persist.error

        toggled = await store.toggle(task.id)
        assert toggled.completed is True

    async def test_read_failure_loads_empty(self, clock):
        """Test an unreadable backend loads as empty."""
        from tasktrack.services.tasks import TaskStore

        store = TaskStore(backend=FailingBackend(), clock=clock)

        assert await store.load() == ()
        assert "storage unavailable" in store.last_load.error

    async def test_persist_explicit_snapshot(self, store, backend):
        """Test persist() can write a given snapshot."""
        task = await store.create("a", assigned_to="Bob")

        result = await store.persist(())

        assert result.ok is True
        assert await _persisted(backend) == []
        assert store.snapshot() == (task,)


class TestTaskLifecycleScenario:
    """End-to-end lifecycle of a single task."""

    async def test_create_toggle_delete_reload(self, backend, clock):
        """Test create, complete, delete, then reload without the task."""
        from tasktrack.services.tasks import TaskStore

        store = TaskStore(backend=backend, clock=clock)
        t0 = clock.now

        task = await store.create("Write report", priority="high", assigned_to="Ana")
        assert task.completed is False
        assert task.completed_at is None
        assert task.priority == "high"

        clock.advance(10 * MINUTE)
        done = await store.toggle(task.id)
        assert done.completed is True
        assert done.completed_at == t0 + 10 * MINUTE

        await store.delete(task.id)
        assert store.get(task.id) is None

        reloaded = TaskStore(backend=backend, clock=clock)
        assert all(t.id != task.id for t in await reloaded.load())
