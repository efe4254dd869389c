"""
Typed exceptions for the dependency engine.

Every failure on the read and write paths is raised as a subclass of
TaskGraphError so interfaces (CLI, agent layer) can map them to messages
and exit codes without string matching.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import Dependency


class TaskGraphError(Exception):
    """Base exception for dependency engine errors."""


class StoreError(TaskGraphError):
    """The backing task store failed to read or write."""


class TaskNotFoundError(TaskGraphError):
    """Referenced task id is absent from the store or the loaded graph."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task '{task_id}' not found")


class DanglingReferenceError(TaskGraphError):
    """A stored dependency edge points at a task that does not exist."""

    def __init__(self, dependency: Dependency, missing_task_id: str) -> None:
        self.dependency = dependency
        self.missing_task_id = missing_task_id
        super().__init__(
            f"Dependency {dependency.task_id} -> {dependency.depends_on_task_id} "
            f"references missing task '{missing_task_id}'"
        )


class SelfDependencyError(TaskGraphError):
    """A task cannot depend on itself."""

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task '{task_id}' cannot depend on itself")


class CycleDetectedError(TaskGraphError):
    """Adding the dependency would close a loop in the blocking graph."""

    def __init__(self, task_id: str, depends_on_task_id: str, path: list[str]) -> None:
        self.task_id = task_id
        self.depends_on_task_id = depends_on_task_id
        # path runs task_id -> depends_on_task_id -> ... -> task_id
        self.path = path
        chain = " -> ".join(path) if path else f"{task_id} -> {depends_on_task_id}"
        super().__init__(f"Cannot add dependency: would create a cycle ({chain})")


class DuplicateDependencyError(TaskGraphError):
    """The pair already has a dependency edge."""

    def __init__(self, task_id: str, depends_on_task_id: str) -> None:
        self.task_id = task_id
        self.depends_on_task_id = depends_on_task_id
        super().__init__(f"Dependency {task_id} -> {depends_on_task_id} already exists")


class DependencyNotFoundError(TaskGraphError):
    """No dependency edge exists for the pair."""

    def __init__(self, task_id: str, depends_on_task_id: str) -> None:
        self.task_id = task_id
        self.depends_on_task_id = depends_on_task_id
        super().__init__(f"Dependency {task_id} -> {depends_on_task_id} not found")


class GraphCorruptedError(TaskGraphError):
    """Topological sort could not order the graph.

    Implies a cycle got past the write-path guard.
    """

    def __init__(self, unordered_task_ids: list[str]) -> None:
        self.unordered_task_ids = sorted(unordered_task_ids)
        preview = ", ".join(self.unordered_task_ids[:10])
        if len(self.unordered_task_ids) > 10:
            preview += f", +{len(self.unordered_task_ids) - 10} more"
        super().__init__(
            f"Dependency graph contains a cycle; "
            f"{len(self.unordered_task_ids)} task(s) could not be ordered: {preview}"
        )
