"""
Impact analysis: how far a delay or failure of one task spreads.

Reachability over the ``dependents`` direction of the blocking graph. The
graph is acyclic by construction, but the traversal keeps a visited set
anyway so a damaged graph cannot make it loop.
"""

from __future__ import annotations

from collections import deque

from taskgraph.core.graph.model import TaskGraph
from taskgraph.core.tasks.errors import TaskNotFoundError
from taskgraph.core.tasks.models import ImpactResult, RiskLevel, TaskNode, TaskStatus

# Risk thresholds on total impact (strictly greater than)
HIGH_RISK_THRESHOLD = 5
MEDIUM_RISK_THRESHOLD = 2

# Recommend splitting a task once it would block more than this many tasks
BLOCKING_RISK_THRESHOLD = 3


def classify_risk(total_impact: int) -> RiskLevel:
    """Map a total impact count to a risk level."""
    if total_impact > HIGH_RISK_THRESHOLD:
        return RiskLevel.HIGH
    if total_impact > MEDIUM_RISK_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def recommend(task: TaskNode, total_impact: int, would_block_count: int) -> list[str]:
    """Actionable hints for a task with downstream impact."""
    if total_impact == 0:
        return []
    hints: list[str] = []
    if would_block_count > BLOCKING_RISK_THRESHOLD:
        hints.append("High blocking risk - Consider breaking this task into smaller parts")
    if task.status == TaskStatus.BLOCKED:
        hints.append("Currently blocked - Prioritize unblocking this task")
    if total_impact > HIGH_RISK_THRESHOLD:
        hints.append("High impact task - Monitor progress closely")
    return hints


class ImpactAnalyzer:
    """
    Computes the blast radius of a task.

    Example:
        >>> analyzer = ImpactAnalyzer()
        >>> result = analyzer.analyze(graph, "t-1")
        >>> result.risk_level
        <RiskLevel.MEDIUM: 'MEDIUM'>
    """

    def analyze(self, graph: TaskGraph, task_id: str) -> ImpactResult:
        """
        Analyze the impact of *task_id* on everything downstream of it.

        Direct dependents are one hop away. Indirect dependents are found by
        BFS from the direct set, in discovery order with neighbours visited
        in id order.

        Raises:
            TaskNotFoundError: If *task_id* is not a node of the graph
        """
        origin = graph.get(task_id)
        if origin is None:
            raise TaskNotFoundError(task_id)

        direct_ids = sorted(graph.dependents_of(task_id))
        visited: set[str] = {task_id, *direct_ids}
        queue: deque[str] = deque(direct_ids)
        indirect_ids: list[str] = []

        while queue:
            current = queue.popleft()
            for neighbour in sorted(graph.dependents_of(current)):
                if neighbour not in visited:
                    visited.add(neighbour)
                    indirect_ids.append(neighbour)
                    queue.append(neighbour)

        direct = [graph.task(tid) for tid in direct_ids]
        indirect = [graph.task(tid) for tid in indirect_ids]
        total_impact = len(direct) + len(indirect)
        would_block = sum(1 for t in (*direct, *indirect) if not t.is_terminal)

        return ImpactResult(
            task=origin,
            direct_dependents=direct,
            indirect_dependents=indirect,
            total_impact=total_impact,
            would_block_count=would_block,
            risk_level=classify_risk(total_impact),
            recommendations=recommend(origin, total_impact, would_block),
        )
