"""
Task store protocol and registry.

This module defines the TaskStore protocol that every storage implementation
must satisfy so the dependency engine can read task snapshots and commit
dependency edges without knowing where they live (SQLite, memory, ...).
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from contextlib import AbstractContextManager
from typing import Any, Protocol, runtime_checkable

from .models import Dependency, DependencyType, TaskNode


@runtime_checkable
class TaskStore(Protocol):
    """
    Protocol for task store implementations.

    Stores are responsible for:
    - Returning consistent snapshots of tasks and dependency edges
    - Persisting and deleting dependency edges
    - Providing a critical section (``transaction()``) so a cycle check and
      the insert that follows it cannot interleave with another writer
    """

    def list_tasks(self, board_id: str | None = None) -> list[TaskNode]:
        """
        List all tasks, optionally restricted to one board.

        Args:
            board_id: Only return tasks on this board

        Returns:
            Tasks ordered by id
        """
        ...

    def get_task(self, task_id: str) -> TaskNode | None:
        """
        Get a specific task by ID.

        Returns:
            TaskNode if found, None otherwise
        """
        ...

    def get_tasks(self, task_ids: Iterable[str]) -> list[TaskNode]:
        """
        Fetch several tasks in one round-trip.

        Unknown ids are silently omitted from the result.
        """
        ...

    def save_task(self, task: TaskNode) -> TaskNode:
        """
        Insert or replace a task snapshot.

        Task CRUD belongs to the host application; this hook exists so the
        host (and tests) can seed the store.
        """
        ...

    def list_dependencies(
        self,
        board_id: str | None = None,
        dependency_types: Iterable[DependencyType] | None = None,
    ) -> list[Dependency]:
        """
        List dependency edges.

        Args:
            board_id: Only return edges where either endpoint is on this board
            dependency_types: Only return edges of these types (None = all)

        Returns:
            Edges ordered by creation time
        """
        ...

    def get_dependency(self, task_id: str, depends_on_task_id: str) -> Dependency | None:
        """Return the edge for the pair, if any."""
        ...

    def insert_dependency(self, dependency: Dependency) -> Dependency:
        """
        Persist a dependency edge.

        Callers are expected to validate the edge (existence, duplicates,
        cycles) inside ``transaction()`` first.

        Raises:
            StoreError: If the write fails
        """
        ...

    def delete_dependency(self, task_id: str, depends_on_task_id: str) -> bool:
        """
        Delete the edge for the pair.

        Returns:
            True if an edge was removed
        """
        ...

    def transaction(self) -> AbstractContextManager[TaskStore]:
        """
        Open a critical section for read-validate-write sequences.

        Commits on normal exit, rolls back if the block raises.
        """
        ...

    @property
    def store_name(self) -> str:
        """Name of this store (e.g., 'sqlite', 'memory')."""
        ...


# Store registry
_stores: dict[str, type[Any]] = {}


def register_store(name: str) -> Callable[[type[Any]], type[Any]]:
    """
    Decorator to register a task store implementation.

    Usage:
        @register_store('sqlite')
        class SqliteTaskStore:
            def list_tasks(self, ...):
                ...
    """

    def decorator(store_class: type[Any]) -> type[Any]:
        _stores[name] = store_class
        return store_class

    return decorator


def get_store(name: str = "sqlite", **kwargs: Any) -> TaskStore:
    """
    Instantiate a registered task store.

    Args:
        name: Store name ('sqlite' or 'memory')
        **kwargs: Passed to the store constructor (e.g. ``db_path``)

    Returns:
        TaskStore instance

    Raises:
        ValueError: If the store name is not registered
    """
    store_class = _stores.get(name)
    if store_class is None:
        raise ValueError(
            f"Store '{name}' not registered. Available stores: {', '.join(_stores.keys())}"
        )
    store: TaskStore = store_class(**kwargs)
    return store


def list_stores() -> list[str]:
    """List all registered store names."""
    return list(_stores.keys())


def is_store_available(name: str) -> bool:
    """Check if a store is registered."""
    return name in _stores
