"""
Dependency service - clean API for the dependency engine.

Composes the task store, graph loader, cycle guard and analyses into the
operations every interface (CLI, agent layer, host application) calls.
The service holds no graph state between calls: each analysis loads a
fresh snapshot.

Usage:
    >>> from taskgraph.core.services.dependencies import DependencyService
    >>> service = DependencyService.from_config(load_config())
    >>> service.add_dependency("t-2", "t-1")
    >>> result = service.find_critical_path(board_id="board-1")
    >>> print(f"{result.total_duration:.1f}h")
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from taskgraph.core.config.models import TaskGraphConfig
from taskgraph.core.graph.critical_path import CriticalPathFinder, topological_order
from taskgraph.core.graph.cycle import check_dependency
from taskgraph.core.graph.impact import ImpactAnalyzer
from taskgraph.core.graph.loader import ALL_TYPES, BLOCKING_ONLY, GraphLoader
from taskgraph.core.graph.model import TaskGraph
from taskgraph.core.graph.render import GraphRenderer, RenderOptions
from taskgraph.core.tasks.errors import (
    CycleDetectedError,
    DependencyNotFoundError,
    DuplicateDependencyError,
    GraphCorruptedError,
    SelfDependencyError,
    TaskGraphError,
    TaskNotFoundError,
)
from taskgraph.core.tasks.models import (
    BulkAction,
    BulkDependencyOperation,
    BulkDependencyResult,
    BulkOperationOutcome,
    CriticalPathResult,
    Dependency,
    DependencyType,
    ImpactResult,
    TaskNode,
)
from taskgraph.core.tasks.store import TaskStore, get_store

logger = logging.getLogger(__name__)


class DependencyService:
    """
    Service for managing and analyzing task dependencies.

    The write path (``add_dependency``) runs the existence, duplicate and
    cycle checks inside the store's transaction, so two concurrent inserts
    cannot each see "no cycle" and jointly create one.

    Example:
        >>> service = DependencyService(MemoryTaskStore(tasks))
        >>> impact = service.analyze_task_impact("t-1")
        >>> impact.risk_level
    """

    def __init__(
        self,
        store: TaskStore,
        finder: CriticalPathFinder | None = None,
        analyzer: ImpactAnalyzer | None = None,
        renderer: GraphRenderer | None = None,
    ) -> None:
        """
        Initialize service with its collaborators.

        Args:
            store: Task store to read snapshots from and commit edges to
            finder: Critical path finder (default instance if None)
            analyzer: Impact analyzer (default instance if None)
            renderer: Graph renderer (default instance if None)
        """
        self._store = store
        self._loader = GraphLoader(store)
        self._finder = finder or CriticalPathFinder()
        self._analyzer = analyzer or ImpactAnalyzer()
        self._renderer = renderer or GraphRenderer()

    @classmethod
    def from_config(
        cls, config: TaskGraphConfig, project_dir: Path | None = None
    ) -> DependencyService:
        """
        Create a service with the store selected by configuration.

        Args:
            config: Loaded configuration
            project_dir: Base directory for a relative store path (defaults to cwd)
        """
        kwargs: dict[str, Any] = {}
        if config.store.backend == "sqlite":
            db_path = Path(config.store.path).expanduser()
            if not db_path.is_absolute():
                db_path = (project_dir or Path.cwd()) / db_path
            kwargs = {"db_path": db_path, "timeout": config.store.timeout_seconds}
        return cls(get_store(config.store.backend, **kwargs))

    @property
    def store(self) -> TaskStore:
        return self._store

    # ============================================================================
    # Write path
    # ============================================================================

    def add_dependency(
        self,
        task_id: str,
        depends_on_task_id: str,
        dependency_type: DependencyType = DependencyType.BLOCKS,
        metadata: dict[str, Any] | None = None,
    ) -> Dependency:
        """
        Record that *task_id* depends on *depends_on_task_id*.

        Raises:
            SelfDependencyError: If both ids are the same
            TaskNotFoundError: If either task does not exist
            DuplicateDependencyError: If the pair already has an edge
            CycleDetectedError: If a BLOCKS edge would close a loop
        """
        if task_id == depends_on_task_id:
            raise SelfDependencyError(task_id)

        with self._store.transaction() as tx:
            found = {t.id for t in tx.get_tasks([task_id, depends_on_task_id])}
            for tid in (task_id, depends_on_task_id):
                if tid not in found:
                    raise TaskNotFoundError(tid)

            if tx.get_dependency(task_id, depends_on_task_id) is not None:
                raise DuplicateDependencyError(task_id, depends_on_task_id)

            if dependency_type == DependencyType.BLOCKS:
                graph = GraphLoader(tx).load(dependency_types=BLOCKING_ONLY)
                try:
                    check_dependency(graph, task_id, depends_on_task_id, dependency_type)
                except CycleDetectedError as e:
                    logger.warning(f"Rejected dependency {task_id} -> {depends_on_task_id}: {e}")
                    raise

            dependency = tx.insert_dependency(
                Dependency(
                    task_id=task_id,
                    depends_on_task_id=depends_on_task_id,
                    dependency_type=dependency_type,
                    metadata=metadata,
                )
            )

        logger.info(
            f"Task dependency added: {task_id} -> {depends_on_task_id} "
            f"({dependency_type.value}, id={dependency.id})"
        )
        return dependency

    def remove_dependency(self, task_id: str, depends_on_task_id: str) -> None:
        """
        Remove the edge between the pair.

        Raises:
            DependencyNotFoundError: If no edge exists
        """
        with self._store.transaction() as tx:
            if not tx.delete_dependency(task_id, depends_on_task_id):
                raise DependencyNotFoundError(task_id, depends_on_task_id)

        logger.info(f"Task dependency removed: {task_id} -> {depends_on_task_id}")

    def bulk_dependency_operations(
        self, operations: Iterable[BulkDependencyOperation]
    ) -> BulkDependencyResult:
        """
        Apply several add/remove operations.

        Each operation is independent: failures are collected in the result
        instead of aborting the batch.
        """
        result = BulkDependencyResult()

        for op in operations:
            outcome = BulkOperationOutcome(
                task_id=op.task_id,
                depends_on_task_id=op.depends_on_task_id,
                action=op.action,
            )
            try:
                if op.action == BulkAction.ADD:
                    self.add_dependency(op.task_id, op.depends_on_task_id, op.dependency_type)
                else:
                    self.remove_dependency(op.task_id, op.depends_on_task_id)
            except TaskGraphError as e:
                result.failed.append(outcome.model_copy(update={"error": str(e)}))
            else:
                result.successful.append(outcome)

        logger.info(
            f"Bulk dependency operations completed: "
            f"{len(result.successful)} succeeded, {len(result.failed)} failed"
        )
        return result

    # ============================================================================
    # Lookups
    # ============================================================================

    def get_task(self, task_id: str) -> TaskNode:
        """
        Fetch a task or raise.

        Raises:
            TaskNotFoundError: If the task does not exist
        """
        task = self._store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def get_task_dependencies(self, task_id: str) -> list[Dependency]:
        """Edges (any type) where *task_id* is the dependent task."""
        self.get_task(task_id)
        return [d for d in self._store.list_dependencies() if d.task_id == task_id]

    def get_task_dependents(self, task_id: str) -> list[Dependency]:
        """Edges (any type) where *task_id* is the prerequisite."""
        self.get_task(task_id)
        return [d for d in self._store.list_dependencies() if d.depends_on_task_id == task_id]

    # ============================================================================
    # Analyses
    # ============================================================================

    def load_graph(self, board_id: str | None = None, include_all_types: bool = False) -> TaskGraph:
        """Load a fresh graph snapshot."""
        types = ALL_TYPES if include_all_types else BLOCKING_ONLY
        return self._loader.load(board_id=board_id, dependency_types=types)

    def find_critical_path(self, board_id: str | None = None) -> CriticalPathResult:
        """
        Compute the critical path, optionally for one board.

        Raises:
            GraphCorruptedError: If the stored blocking graph has a cycle
            DanglingReferenceError: If an edge references a missing task
        """
        graph = self.load_graph(board_id)
        return self._finder.find(graph)

    def analyze_task_impact(self, task_id: str) -> ImpactResult:
        """
        Compute the blast radius of *task_id* over the whole graph.

        Raises:
            TaskNotFoundError: If the task is not in the graph
        """
        graph = self.load_graph()
        return self._analyzer.analyze(graph, task_id)

    def visualize(
        self,
        options: RenderOptions | None = None,
        highlight_critical_path: bool = False,
    ) -> str:
        """
        Render the dependency graph as text.

        Args:
            options: Format, detail flag, board filter and optional root task
            highlight_critical_path: Emphasize the critical path (DOT only)

        Raises:
            TaskNotFoundError: If ``options.root_task_id`` is not in the graph
        """
        options = options or RenderOptions()
        graph = self.load_graph(options.board_id, include_all_types=True)

        if options.root_task_id is not None and options.root_task_id not in graph:
            raise TaskNotFoundError(options.root_task_id)

        highlight = self._finder.find(graph) if highlight_critical_path else None
        return self._renderer.render(graph, options, highlight=highlight)

    def render_critical_path(
        self, result: CriticalPathResult, options: RenderOptions | None = None
    ) -> str:
        """Render a critical path as an ASCII chain."""
        return self._renderer.render_critical_path(result, options)

    def check_graph(self, board_id: str | None = None) -> list[str]:
        """
        Verify the stored blocking graph is acyclic.

        Returns:
            Ids of tasks that could not be topologically ordered (empty if healthy)
        """
        graph = self.load_graph(board_id)
        try:
            topological_order(graph)
        except GraphCorruptedError as e:
            return e.unordered_task_ids
        return []
