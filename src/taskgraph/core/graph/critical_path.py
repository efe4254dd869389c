"""
Critical path analysis over the blocking graph.

The critical path is the longest chain of dependent work when each task is
weighted by its estimated hours. It determines the minimum time needed to
finish everything that is not done yet.

Algorithm:
  1.  Drop tasks whose status is ``done``.
  2.  Topologically sort with Kahn's algorithm (ready nodes taken in id
      order). Leftover nodes mean a cycle slipped past the write-path
      guard: GraphCorruptedError.
  3.  Walk nodes in topological order. For each node n,
      ``best[n] = weight(n) + max(best[p] for p in dependencies(n))``,
      remembering the predecessor that achieved the max.
  4.  The path ends at the node with the largest ``best``; follow the
      predecessors back to a task with no dependencies.

Ties are broken the same way at every step: equal duration prefers the
chain with more tasks, then the lexicographically smallest sequence of ids.
Because every candidate chain at a node ends with that node, the choice is
consistent with comparing complete paths.
"""

from __future__ import annotations

import heapq
import logging
from typing import NamedTuple

from taskgraph.core.graph.model import TaskGraph
from taskgraph.core.tasks.errors import GraphCorruptedError
from taskgraph.core.tasks.models import CriticalPathResult, TaskNode, TaskStatus

logger = logging.getLogger(__name__)

# Weight of a task that has no estimate, in hours
DEFAULT_TASK_WEIGHT = 1.0

# Durations are compared after rounding so float noise cannot flip a tie
_DURATION_PRECISION = 9


def task_weight(task: TaskNode) -> float:
    """Estimated hours, or DEFAULT_TASK_WEIGHT when the task has no estimate."""
    if task.estimated_hours is None:
        return DEFAULT_TASK_WEIGHT
    return float(task.estimated_hours)


def topological_order(graph: TaskGraph) -> list[str]:
    """Order task ids so every task comes after everything it depends on.

    Raises:
        GraphCorruptedError: If the blocking graph contains a cycle
    """
    in_degree = {tid: graph.in_degree(tid) for tid in graph.task_ids}
    ready = [tid for tid, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)

    order: list[str] = []
    while ready:
        current = heapq.heappop(ready)
        order.append(current)
        for dependent in graph.dependents_of(current):
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, dependent)

    if len(order) != len(graph):
        ordered = set(order)
        unordered = [tid for tid in graph.task_ids if tid not in ordered]
        logger.error(
            f"Topological sort left {len(unordered)} task(s) unordered; "
            f"the blocking graph has a cycle: {', '.join(unordered)}"
        )
        raise GraphCorruptedError(unordered)

    return order


class _Chain(NamedTuple):
    """Best chain found so far ending at a node."""

    duration: float
    length: int
    ids: tuple[str, ...]

    def beats(self, other: _Chain) -> bool:
        mine = round(self.duration, _DURATION_PRECISION)
        theirs = round(other.duration, _DURATION_PRECISION)
        if mine != theirs:
            return mine > theirs
        if self.length != other.length:
            return self.length > other.length
        return self.ids < other.ids


def find_bottlenecks(graph: TaskGraph) -> list[TaskNode]:
    """Unfinished tasks with more than one direct dependent.

    Ranked by ``dependent_count * priority`` descending, then dependent
    count descending, then id.
    """
    candidates: list[tuple[int, int, str]] = []
    for task in graph:
        if task.is_terminal:
            continue
        count = graph.out_degree(task.id)
        if count > 1:
            candidates.append((count * task.priority, count, task.id))
    candidates.sort(key=lambda c: (-c[0], -c[1], c[2]))
    return [graph.task(tid) for _, _, tid in candidates]


class CriticalPathFinder:
    """
    Computes the critical path of a task graph.

    Stateless; one instance can serve any number of graphs.

    Example:
        >>> finder = CriticalPathFinder()
        >>> result = finder.find(GraphLoader(store).load(board_id="b1"))
        >>> [t.id for t in result.critical_path]
    """

    def find(self, graph: TaskGraph) -> CriticalPathResult:
        """
        Find the critical path among tasks that are not done.

        Args:
            graph: Graph snapshot (may include done tasks; they are excluded)

        Returns:
            CriticalPathResult; an empty path with duration 0 when no
            blocking edges remain

        Raises:
            GraphCorruptedError: If the blocking graph contains a cycle
        """
        active = graph.subgraph(lambda t: t.status != TaskStatus.DONE)

        starting = [active.task(tid) for tid in active.roots]
        ending = [active.task(tid) for tid in active.leaves]
        edge_count = active.edge_count

        if edge_count == 0:
            logger.debug(f"No blocking edges among {len(active)} active tasks")
            return CriticalPathResult(
                starting_tasks=starting,
                ending_tasks=ending,
                dependency_count=0,
            )

        order = topological_order(active)

        best: dict[str, _Chain] = {}
        predecessor: dict[str, str | None] = {}
        for tid in order:
            weight = task_weight(active.task(tid))
            chosen: str | None = None
            for dep in active.dependencies_of(tid):
                if chosen is None or best[dep].beats(best[chosen]):
                    chosen = dep

            if chosen is None:
                best[tid] = _Chain(weight, 1, (tid,))
            else:
                prev = best[chosen]
                best[tid] = _Chain(prev.duration + weight, prev.length + 1, prev.ids + (tid,))
            predecessor[tid] = chosen

        end = order[0]
        for tid in order[1:]:
            if best[tid].beats(best[end]):
                end = tid

        path: list[TaskNode] = []
        node: str | None = end
        while node is not None:
            path.append(active.task(node))
            node = predecessor[node]
        path.reverse()

        total = sum(task_weight(t) for t in path)
        logger.debug(
            f"Critical path: {' -> '.join(t.id for t in path)} ({total:.1f}h over "
            f"{edge_count} edges)"
        )

        return CriticalPathResult(
            critical_path=path,
            total_duration=total,
            dependency_count=edge_count,
            starting_tasks=starting,
            ending_tasks=ending,
            bottlenecks=find_bottlenecks(active),
        )
