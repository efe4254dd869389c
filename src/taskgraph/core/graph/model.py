"""
In-memory task dependency graph.

Provides a pure data structure built from a snapshot of tasks and edges.
Immutable after construction and rebuilt for every query; nothing here does
I/O. Used by the critical path finder, the impact analyzer, the cycle guard
and the renderers.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable, Iterable, Iterator

from taskgraph.core.tasks.models import Dependency, DependencyType, TaskNode


class TaskGraph:
    """Immutable dependency graph built from a snapshot of tasks and edges.

    The graph keeps two adjacency maps, both over BLOCKS edges only:

    * **dependencies** (forward): ``dependencies[A] = {B}`` means A depends
      on B, so A cannot start until B is done.
    * **dependents** (reverse): ``dependents[B] = {A}`` means finishing B
      unblocks A.

    All loaded edges (of any type) are retained in ``edges`` for rendering.
    Edges whose endpoints are not nodes of the graph are kept out of the
    adjacency maps.

    Example::

        graph = TaskGraph(store.list_tasks(), store.list_dependencies())
        graph.dependents_of("t-1")
    """

    __slots__ = (
        "_tasks",
        "_dependencies",
        "_dependents",
        "_edges",
        "_placeholders",
        "_depths",
    )

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def __init__(
        self,
        tasks: Iterable[TaskNode],
        edges: Iterable[Dependency] = (),
        placeholders: Iterable[str] = (),
    ) -> None:
        # Arena build: all nodes first, then adjacency by id lookup
        self._tasks: dict[str, TaskNode] = {t.id: t for t in sorted(tasks, key=lambda t: t.id)}
        self._dependencies: dict[str, set[str]] = {tid: set() for tid in self._tasks}
        self._dependents: dict[str, set[str]] = {tid: set() for tid in self._tasks}
        self._placeholders: frozenset[str] = frozenset(placeholders) & frozenset(self._tasks)

        kept: list[Dependency] = []
        for edge in edges:
            if edge.task_id not in self._tasks or edge.depends_on_task_id not in self._tasks:
                continue
            kept.append(edge)
            if edge.dependency_type == DependencyType.BLOCKS:
                self._dependencies[edge.task_id].add(edge.depends_on_task_id)
                self._dependents[edge.depends_on_task_id].add(edge.task_id)
        self._edges: tuple[Dependency, ...] = tuple(kept)
        self._depths: dict[str, int] | None = None

    # ------------------------------------------------------------------
    # Nodes and edges
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._tasks)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __iter__(self) -> Iterator[TaskNode]:
        return iter(self._tasks.values())

    @property
    def task_ids(self) -> list[str]:
        """All node ids, sorted."""
        return list(self._tasks)

    @property
    def tasks(self) -> list[TaskNode]:
        """All nodes, sorted by id."""
        return list(self._tasks.values())

    @property
    def edges(self) -> tuple[Dependency, ...]:
        """Every loaded edge whose endpoints are both nodes, any type."""
        return self._edges

    @property
    def blocking_edges(self) -> list[tuple[str, str]]:
        """``(task_id, depends_on_task_id)`` pairs of the BLOCKS subgraph, sorted."""
        return sorted(
            (tid, dep) for tid, deps in self._dependencies.items() for dep in deps
        )

    @property
    def edge_count(self) -> int:
        """Number of BLOCKS edges."""
        return sum(len(deps) for deps in self._dependencies.values())

    def get(self, task_id: str) -> TaskNode | None:
        return self._tasks.get(task_id)

    def task(self, task_id: str) -> TaskNode:
        """Return the node for *task_id*; raises KeyError if absent."""
        return self._tasks[task_id]

    def is_placeholder(self, task_id: str) -> bool:
        """True if the node was pulled in from outside the loaded board."""
        return task_id in self._placeholders

    # ------------------------------------------------------------------
    # Adjacency (read-only views)
    # ------------------------------------------------------------------

    def dependencies_of(self, task_id: str) -> frozenset[str]:
        """Tasks *task_id* depends on."""
        return frozenset(self._dependencies.get(task_id, ()))

    def dependents_of(self, task_id: str) -> frozenset[str]:
        """Tasks that depend on *task_id*."""
        return frozenset(self._dependents.get(task_id, ()))

    def in_degree(self, task_id: str) -> int:
        return len(self._dependencies.get(task_id, ()))

    def out_degree(self, task_id: str) -> int:
        return len(self._dependents.get(task_id, ()))

    @property
    def roots(self) -> list[str]:
        """Tasks with no dependencies, sorted."""
        return [tid for tid, deps in self._dependencies.items() if not deps]

    @property
    def leaves(self) -> list[str]:
        """Tasks nothing depends on, sorted."""
        return [tid for tid, deps in self._dependents.items() if not deps]

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    def depth(self, task_id: str) -> int:
        """Longest hop distance from a root (roots have depth 0).

        Nodes that sit on a cycle never get a depth from the BFS and
        report -1.
        """
        if self._depths is None:
            self._depths = self._compute_depths()
        return self._depths.get(task_id, -1)

    def _compute_depths(self) -> dict[str, int]:
        remaining = {tid: len(deps) for tid, deps in self._dependencies.items()}
        depths: dict[str, int] = {}
        queue: deque[str] = deque(tid for tid, n in remaining.items() if n == 0)
        for tid in queue:
            depths[tid] = 0

        while queue:
            current = queue.popleft()
            for dependent in sorted(self._dependents[current]):
                depths[dependent] = max(depths.get(dependent, 0), depths[current] + 1)
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    queue.append(dependent)
        return {tid: d for tid, d in depths.items() if remaining[tid] == 0}

    @property
    def max_depth(self) -> int:
        if not self._tasks:
            return 0
        return max(self.depth(tid) for tid in self._tasks)

    def subgraph(self, predicate: Callable[[TaskNode], bool]) -> TaskGraph:
        """Return a new graph restricted to nodes matching *predicate*.

        Edges touching an excluded node are dropped.
        """
        kept = [t for t in self._tasks.values() if predicate(t)]
        return TaskGraph(kept, self._edges, self._placeholders)

    @property
    def stats(self) -> dict[str, int]:
        """Summary statistics: node_count, edge_count, root_count, leaf_count, max_depth."""
        return {
            "node_count": len(self._tasks),
            "edge_count": self.edge_count,
            "root_count": len(self.roots),
            "leaf_count": len(self.leaves),
            "max_depth": self.max_depth,
        }
