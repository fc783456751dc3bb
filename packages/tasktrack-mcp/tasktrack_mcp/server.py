"""
Tasktrack MCP Server

Exposes the task store and its analytics as MCP tools: create, toggle and
delete tasks, list them with relative times, view statistics and export
completed work.
"""

import asyncio
import json
import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from tasktrack.models.task import Task
from tasktrack.services import TaskStore

# Initialize FastMCP server
mcp = FastMCP("tasktrack")

logger = logging.getLogger(__name__)

# Global state
_store: Optional[TaskStore] = None

TASK_VIEWS = ("active", "completed", "all")


async def ensure_initialized() -> TaskStore:
    """
    Ensure the store exists and tasks are loaded.

    The backend connects on first use inside load(); unreachable storage
    leaves an empty, degraded store rather than failing the tool call.
    """
    global _store
    if _store is not None:
        return _store

    from tasktrack.config import get_config
    from tasktrack.storage import get_backend

    config = get_config()
    backend = get_backend(config)

    store = TaskStore(backend=backend, storage_key=config.storage_key)
    await store.load()

    _store = store
    logger.info("Tasktrack initialized")
    return _store


def use_store(store: Optional[TaskStore]) -> None:
    """Install (or clear, with None) the store the tools operate on."""
    global _store
    _store = store


def _task_view(task: Task) -> dict:
    from tasktrack.services import time_since, time_to_complete

    data = task.to_dict()
    data["created"] = time_since(task.created_at)
    if task.completed_at is not None:
        data["completion"] = time_to_complete(task.created_at, task.completed_at)
    return data


# =============================================================================
# TASK TOOLS
# =============================================================================

@mcp.tool()
async def task_create(
    text: str,
    assigned_to: str,
    priority: str = "medium",
) -> dict:
    """
    Create a new task.

    Args:
        text: What needs doing
        assigned_to: Who it is assigned to
        priority: Priority (low, medium, high)

    Returns:
        Created task details, or created=false when text or assignee is blank
    """
    store = await ensure_initialized()

    try:
        task = await store.create(text, priority=priority, assigned_to=assigned_to)
    except ValueError as e:
        return {"error": str(e)}

    if task is None:
        return {"created": False, "reason": "text and assigned_to must not be blank"}

    return {"created": True, "task": _task_view(task)}


@mcp.tool()
async def task_toggle(task_id: int) -> dict:
    """
    Mark a task completed, or reopen a completed one.

    Args:
        task_id: Task id

    Returns:
        Updated task details
    """
    store = await ensure_initialized()
    task = await store.toggle(task_id)

    if task is None:
        return {"toggled": False, "task_id": task_id}

    return {"toggled": True, "task": _task_view(task)}


@mcp.tool()
async def task_delete(task_id: int) -> dict:
    """
    Delete a task.

    Args:
        task_id: Task id

    Returns:
        Whether a task was removed
    """
    store = await ensure_initialized()
    deleted = await store.delete(task_id)
    return {"deleted": deleted, "task_id": task_id}


@mcp.tool()
async def task_list(view: str = "active") -> dict:
    """
    List tasks with their relative creation times.

    Args:
        view: active (pending tasks), completed, or all

    Returns:
        Tasks in creation order
    """
    store = await ensure_initialized()

    if view not in TASK_VIEWS:
        return {"error": f"Invalid view. Must be one of: {', '.join(TASK_VIEWS)}"}

    if view == "active":
        tasks = store.active()
    elif view == "completed":
        tasks = store.completed()
    else:
        tasks = list(store.snapshot())

    return {
        "tasks": [_task_view(t) for t in tasks],
        "count": len(tasks),
        "completed_count": len(store.completed()),
    }


@mcp.tool()
async def task_stats() -> dict:
    """
    Completion statistics for all tasks.

    Returns:
        Totals, average completion time, distribution by priority and
        assignee, and completions per day for the last 14 days
    """
    store = await ensure_initialized()
    from tasktrack.config import get_config
    from tasktrack.services import compute_stats

    display = get_config().display
    stats = compute_stats(
        store.snapshot(),
        tz=display.zone,
        recent_limit=display.recent_completions,
    )
    return stats.to_dict()


@mcp.tool()
async def task_export() -> dict:
    """
    Completed tasks for export, most recently completed first.

    Returns:
        Column names and one row per completed task
    """
    store = await ensure_initialized()
    from tasktrack.config import get_config
    from tasktrack.services.export import EXPORT_COLUMNS, completed_snapshot

    tz = get_config().display.zone
    rows = completed_snapshot(store.snapshot())

    return {
        "columns": list(EXPORT_COLUMNS),
        "rows": [row.to_dict(tz) for row in rows],
        "count": len(rows),
    }


# =============================================================================
# UTILITY TOOLS
# =============================================================================

@mcp.tool()
async def task_health() -> dict:
    """
    Check storage health.

    Returns:
        Storage backend, key, task count and last load/save outcome
    """
    store = await ensure_initialized()

    def outcome(result):
        if result is None:
            return None
        return {"ok": result.ok, "error": result.error}

    healthy = all(r is None or r.ok for r in (store.last_load, store.last_persist))

    return {
        "status": "healthy" if healthy else "degraded",
        "storage_type": store.backend.name,
        "storage_key": store.storage_key,
        "task_count": len(store),
        "last_load": outcome(store.last_load),
        "last_persist": outcome(store.last_persist),
    }


# =============================================================================
# CLI ENTRY POINT
# =============================================================================

def main():
    """Main entry point for tasktrack-mcp command."""
    import argparse

    from tasktrack.config import get_config
    from tasktrack.logging_setup import setup_logging

    parser = argparse.ArgumentParser(description="Tasktrack MCP Server")
    parser.add_argument("command", nargs="?", default="serve", help="Command to run (serve, stats)")
    args = parser.parse_args()

    config = get_config()
    setup_logging(config.logging.level, config.logging.file)

    if args.command == "stats":
        async def do_stats():
            from tasktrack.storage import close_backend

            try:
                stats = await task_stats()
                print(json.dumps(stats, indent=2, ensure_ascii=False))
            finally:
                await close_backend()

        asyncio.run(do_stats())
    else:
        mcp.run()


if __name__ == "__main__":
    main()
