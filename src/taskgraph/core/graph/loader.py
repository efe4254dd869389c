"""
Graph loading from a task store.

Builds a fresh TaskGraph for every request from a consistent read of the
store: one round-trip for tasks, one for edges, and one more for
placeholder nodes when a board filter cuts across edges.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from taskgraph.core.graph.model import TaskGraph
from taskgraph.core.tasks.errors import DanglingReferenceError
from taskgraph.core.tasks.models import Dependency, DependencyType, TaskNode
from taskgraph.core.tasks.store import TaskStore

logger = logging.getLogger(__name__)

BLOCKING_ONLY: tuple[DependencyType, ...] = (DependencyType.BLOCKS,)
ALL_TYPES: tuple[DependencyType, ...] = tuple(DependencyType)


class GraphLoader:
    """
    Reads tasks and dependency edges from a store and builds a TaskGraph.

    With a board filter, only the board's tasks and the edges touching them
    are loaded. An edge whose other endpoint lives on another board pulls
    that task in as a placeholder node, provided it exists in storage. An
    edge pointing at a task id that does not exist anywhere raises
    DanglingReferenceError.

    Example:
        >>> loader = GraphLoader(store)
        >>> graph = loader.load(board_id="board-1")
    """

    def __init__(self, store: TaskStore) -> None:
        self._store = store

    def load(
        self,
        board_id: str | None = None,
        dependency_types: Iterable[DependencyType] = BLOCKING_ONLY,
    ) -> TaskGraph:
        """
        Load a graph snapshot.

        Args:
            board_id: Restrict to one board (None = all tasks)
            dependency_types: Edge types to load; adjacency always uses BLOCKS only

        Returns:
            Newly built TaskGraph

        Raises:
            DanglingReferenceError: If an edge references a task missing from storage
            StoreError: If the store read fails
        """
        tasks = self._store.list_tasks(board_id=board_id)
        edges = self._store.list_dependencies(
            board_id=board_id, dependency_types=tuple(dependency_types)
        )

        known: dict[str, TaskNode] = {t.id: t for t in tasks}
        missing: set[str] = set()
        for edge in edges:
            for endpoint in (edge.task_id, edge.depends_on_task_id):
                if endpoint not in known:
                    missing.add(endpoint)

        placeholders: set[str] = set()
        if missing:
            found = {t.id: t for t in self._store.get_tasks(missing)}
            for edge in edges:
                for endpoint in (edge.task_id, edge.depends_on_task_id):
                    if endpoint not in known and endpoint not in found:
                        self._report_dangling(edge, endpoint)
            known.update(found)
            placeholders = set(found)

        graph = TaskGraph(known.values(), edges, placeholders)
        logger.debug(
            f"Loaded graph (board={board_id or 'all'}): {len(graph)} tasks, "
            f"{len(graph.edges)} edges, {len(placeholders)} placeholders"
        )
        return graph

    @staticmethod
    def _report_dangling(edge: Dependency, missing_task_id: str) -> None:
        logger.error(
            f"Dependency {edge.id} ({edge.task_id} -> {edge.depends_on_task_id}) "
            f"references missing task '{missing_task_id}'"
        )
        raise DanglingReferenceError(edge, missing_task_id)
