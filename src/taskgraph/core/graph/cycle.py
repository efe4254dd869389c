"""
Cycle guard for the dependency write path.

Adding ``task depends_on other`` closes a loop exactly when ``other`` can
already reach ``task`` by following dependencies. The search is an
iterative DFS with a visited set, so deep chains cannot exhaust the
Python stack and the work is bounded by O(V + E).
"""

from __future__ import annotations

from taskgraph.core.graph.model import TaskGraph
from taskgraph.core.tasks.errors import CycleDetectedError, SelfDependencyError
from taskgraph.core.tasks.models import DependencyType


def find_cycle_path(graph: TaskGraph, from_task: str, to_task: str) -> list[str] | None:
    """Return the loop that ``from_task depends_on to_task`` would create.

    The returned path starts and ends at *from_task*:
    ``[from_task, to_task, ..., from_task]``. Returns None when the edge is
    safe to add.
    """
    if from_task == to_task:
        return [from_task, from_task]

    # parent[x] = node we reached x from, following dependencies from to_task
    parent: dict[str, str | None] = {to_task: None}
    stack: list[str] = [to_task]

    while stack:
        current = stack.pop()
        if current == from_task:
            chain: list[str] = []
            node: str | None = current
            while node is not None:
                chain.append(node)
                node = parent[node]
            # chain runs from_task <- ... <- to_task; flip to to_task -> ... -> from_task
            chain.reverse()
            return [from_task, *chain]
        # sorted + reversed keeps the traversal order deterministic (smallest id first)
        for dep in sorted(graph.dependencies_of(current), reverse=True):
            if dep not in parent:
                parent[dep] = current
                stack.append(dep)

    return None


def would_create_cycle(graph: TaskGraph, from_task: str, to_task: str) -> bool:
    """True if adding ``from_task depends_on to_task`` would close a loop."""
    return find_cycle_path(graph, from_task, to_task) is not None


def check_dependency(
    graph: TaskGraph,
    from_task: str,
    to_task: str,
    dependency_type: DependencyType = DependencyType.BLOCKS,
) -> None:
    """Validate a proposed edge against the current graph.

    Self-dependencies are rejected for every type, before any graph search.
    Only BLOCKS edges are checked for cycles; informational edge types never
    constrain scheduling.

    Raises:
        SelfDependencyError: If ``from_task == to_task``
        CycleDetectedError: If a BLOCKS edge would close a loop
    """
    if from_task == to_task:
        raise SelfDependencyError(from_task)

    if dependency_type != DependencyType.BLOCKS:
        return

    path = find_cycle_path(graph, from_task, to_task)
    if path is not None:
        raise CycleDetectedError(from_task, to_task, path)
