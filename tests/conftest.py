"""
Pytest configuration and fixtures for tasktrack tests.
"""

import pytest
import sys
from pathlib import Path

# Configure pytest-asyncio
pytest_plugins = ["pytest_asyncio"]

# Add packages to path for testing
packages_dir = Path(__file__).parent.parent / "packages"
sys.path.insert(0, str(packages_dir / "tasktrack-core"))
sys.path.insert(0, str(packages_dir / "tasktrack-mcp"))

# 2023-11-14 22:13:20 UTC
T0 = 1_700_000_000_000
MINUTE = 60_000


class FakeClock:
    """Callable epoch-millisecond clock that only moves when told to."""

    def __init__(self, now: int = T0):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeHandle:
    def __init__(self, when: float, callback):
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Just enough of an event loop for timer scheduling tests."""

    def __init__(self):
        self.now = 0.0
        self.handles: list[FakeHandle] = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay: float, callback) -> FakeHandle:
        return self.call_at(self.now + delay, callback)

    def call_at(self, when: float, callback) -> FakeHandle:
        handle = FakeHandle(when, callback)
        self.handles.append(handle)
        return handle

    def pending(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance(self, seconds: float) -> None:
        """Move time forward, firing due callbacks in deadline order."""
        target = self.now + seconds
        while True:
            due = [h for h in self.pending() if h.when <= target]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.now = handle.when
            handle.fired = True
            handle.callback()
        self.now = target


@pytest.fixture
def clock():
    """Controllable clock starting at T0."""
    return FakeClock()


@pytest.fixture
def fake_loop():
    return FakeLoop()


@pytest.fixture
def make_task():
    """Build Task objects directly, bypassing the store."""
    from tasktrack.models.task import Completed, PENDING, Task

    counter = {"id": 0}

    def _make(
        text="Task",
        assigned_to="ana",
        priority="medium",
        created_at=T0,
        completed_at=None,
    ):
        counter["id"] += 1
        state = Completed(at=completed_at) if completed_at is not None else PENDING
        return Task(
            id=counter["id"],
            text=text,
            assigned_to=assigned_to,
            created_at=created_at,
            priority=priority,
            state=state,
        )

    return _make


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / ".tasktrack"
    config_dir.mkdir()
    return config_dir
