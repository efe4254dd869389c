"""
In-memory task store.

Dict-backed store for library callers that already hold their tasks in
memory, and for tests. Unlike the SQLite store it does not enforce
referential integrity, so it can also hold the dangling edges a damaged
host database may contain.
"""

from __future__ import annotations

import copy
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from .models import Dependency, DependencyType, TaskNode
from .store import register_store


@register_store("memory")
class MemoryTaskStore:
    """
    Task store that keeps everything in process memory.

    ``transaction()`` holds a re-entrant lock and restores a snapshot of
    the edges if the block raises.

    Example:
        >>> store = MemoryTaskStore([TaskNode(id="a"), TaskNode(id="b")])
        >>> store.insert_dependency(Dependency(task_id="b", depends_on_task_id="a"))
    """

    def __init__(
        self,
        tasks: Iterable[TaskNode] | None = None,
        dependencies: Iterable[Dependency] | None = None,
    ) -> None:
        self._tasks: dict[str, TaskNode] = {t.id: t for t in tasks or []}
        self._dependencies: dict[tuple[str, str], Dependency] = {
            (d.task_id, d.depends_on_task_id): d for d in dependencies or []
        }
        self._lock = threading.RLock()

    @property
    def store_name(self) -> str:
        return "memory"

    @contextmanager
    def transaction(self) -> Iterator[MemoryTaskStore]:
        with self._lock:
            snapshot = copy.copy(self._dependencies)
            try:
                yield self
            except BaseException:
                self._dependencies = snapshot
                raise

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def list_tasks(self, board_id: str | None = None) -> list[TaskNode]:
        with self._lock:
            tasks = [
                t for t in self._tasks.values() if board_id is None or t.board_id == board_id
            ]
        return sorted(tasks, key=lambda t: t.id)

    def get_task(self, task_id: str) -> TaskNode | None:
        with self._lock:
            return self._tasks.get(task_id)

    def get_tasks(self, task_ids: Iterable[str]) -> list[TaskNode]:
        with self._lock:
            found = [self._tasks[tid] for tid in set(task_ids) if tid in self._tasks]
        return sorted(found, key=lambda t: t.id)

    def save_task(self, task: TaskNode) -> TaskNode:
        with self._lock:
            self._tasks[task.id] = task
        return task

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def list_dependencies(
        self,
        board_id: str | None = None,
        dependency_types: Iterable[DependencyType] | None = None,
    ) -> list[Dependency]:
        types = (
            {DependencyType(t) for t in dependency_types} if dependency_types is not None else None
        )
        with self._lock:
            board_ids = (
                {t.id for t in self._tasks.values() if t.board_id == board_id}
                if board_id is not None
                else None
            )
            edges = [
                dep
                for dep in self._dependencies.values()
                if (types is None or dep.dependency_type in types)
                and (
                    board_ids is None
                    or dep.task_id in board_ids
                    or dep.depends_on_task_id in board_ids
                )
            ]
        return sorted(edges, key=lambda d: (d.created_at, d.id))

    def get_dependency(self, task_id: str, depends_on_task_id: str) -> Dependency | None:
        with self._lock:
            return self._dependencies.get((task_id, depends_on_task_id))

    def insert_dependency(self, dependency: Dependency) -> Dependency:
        with self._lock:
            self._dependencies[(dependency.task_id, dependency.depends_on_task_id)] = dependency
        return dependency

    def delete_dependency(self, task_id: str, depends_on_task_id: str) -> bool:
        with self._lock:
            return self._dependencies.pop((task_id, depends_on_task_id), None) is not None
