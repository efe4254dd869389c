"""Tests for ImpactAnalyzer: blast radius of a task."""

from __future__ import annotations

import random

import pytest

from taskgraph.core.graph.impact import (
    HIGH_RISK_THRESHOLD,
    ImpactAnalyzer,
    classify_risk,
    recommend,
)
from taskgraph.core.graph.loader import GraphLoader
from taskgraph.core.graph.model import TaskGraph
from taskgraph.core.tasks.errors import TaskNotFoundError
from taskgraph.core.tasks.models import Dependency, RiskLevel, TaskNode, TaskStatus


def _task(tid: str, status: TaskStatus = TaskStatus.TODO) -> TaskNode:
    return TaskNode(id=tid, title=f"Task {tid}", status=status)


def _graph(tasks: list[TaskNode], pairs: list[tuple[str, str]]) -> TaskGraph:
    return TaskGraph(tasks, [Dependency(task_id=t, depends_on_task_id=d) for t, d in pairs])


def _fan_out(n: int, origin_status: TaskStatus = TaskStatus.TODO) -> TaskGraph:
    """Origin 'o' with n direct dependents."""
    tasks = [_task("o", origin_status), *[_task(f"d{i}") for i in range(n)]]
    return _graph(tasks, [(f"d{i}", "o") for i in range(n)])


def _brute_force_reach(graph: TaskGraph, origin: str) -> set[str]:
    reached: set[str] = set()
    frontier = {origin}
    while frontier:
        step = set().union(*(graph.dependents_of(t) for t in frontier)) - reached - {origin}
        reached |= step
        frontier = step
    return reached


@pytest.fixture
def analyzer() -> ImpactAnalyzer:
    return ImpactAnalyzer()


class TestScenario:
    def test_impact_of_root(self, analyzer, memory_store) -> None:
        result = analyzer.analyze(GraphLoader(memory_store).load(), "A")
        assert [t.id for t in result.direct_dependents] == ["B"]
        assert [t.id for t in result.indirect_dependents] == ["C", "D"]
        assert result.total_impact == 3
        assert result.risk_level == RiskLevel.MEDIUM

    def test_leaf_has_no_impact(self, analyzer, memory_store) -> None:
        result = analyzer.analyze(GraphLoader(memory_store).load(), "C")
        assert result.total_impact == 0
        assert result.risk_level == RiskLevel.LOW
        assert result.recommendations == []

    def test_unknown_task(self, analyzer, memory_store) -> None:
        with pytest.raises(TaskNotFoundError):
            analyzer.analyze(GraphLoader(memory_store).load(), "nope")


class TestTraversal:
    def test_diamond_counted_once(self, analyzer) -> None:
        graph = _graph(
            [_task("a"), _task("b"), _task("c"), _task("d")],
            [("b", "a"), ("c", "a"), ("d", "b"), ("d", "c")],
        )
        result = analyzer.analyze(graph, "a")
        assert [t.id for t in result.direct_dependents] == ["b", "c"]
        assert [t.id for t in result.indirect_dependents] == ["d"]
        assert result.total_impact == 3

    def test_damaged_graph_terminates(self, analyzer) -> None:
        graph = _graph([_task("a"), _task("b"), _task("c")], [("b", "a"), ("c", "b"), ("b", "c")])
        result = analyzer.analyze(graph, "a")
        assert result.total_impact == 2

    @pytest.mark.parametrize("seed", range(6))
    def test_matches_brute_force_reachability(self, analyzer, seed) -> None:
        rng = random.Random(seed)
        ids = [f"n{i:02d}" for i in range(12)]
        pairs = [(ids[j], ids[i]) for j in range(12) for i in range(j) if rng.random() < 0.2]
        graph = _graph([_task(t) for t in ids], pairs)
        for origin in ids:
            result = analyzer.analyze(graph, origin)
            found = {t.id for t in (*result.direct_dependents, *result.indirect_dependents)}
            assert found == _brute_force_reach(graph, origin)
            assert result.total_impact == len(found)


class TestWouldBlock:
    def test_terminal_dependents_not_counted(self, analyzer) -> None:
        graph = _graph(
            [
                _task("o"),
                _task("a", TaskStatus.DONE),
                _task("b", TaskStatus.ARCHIVED),
                _task("c", TaskStatus.BLOCKED),
            ],
            [("a", "o"), ("b", "o"), ("c", "a")],
        )
        result = analyzer.analyze(graph, "o")
        assert result.total_impact == 3
        assert result.would_block_count == 1


class TestRiskLevels:
    @pytest.mark.parametrize(
        "total,level",
        [
            (0, RiskLevel.LOW),
            (2, RiskLevel.LOW),
            (3, RiskLevel.MEDIUM),
            (5, RiskLevel.MEDIUM),
            (6, RiskLevel.HIGH),
            (40, RiskLevel.HIGH),
        ],
    )
    def test_thresholds(self, total, level) -> None:
        assert classify_risk(total) == level

    def test_fan_out_high(self, analyzer) -> None:
        assert analyzer.analyze(_fan_out(HIGH_RISK_THRESHOLD + 1), "o").risk_level == RiskLevel.HIGH


class TestRecommendations:
    def test_large_blast_radius(self, analyzer) -> None:
        result = analyzer.analyze(_fan_out(6), "o")
        assert result.recommendations == [
            "High blocking risk - Consider breaking this task into smaller parts",
            "High impact task - Monitor progress closely",
        ]

    def test_blocked_origin(self, analyzer) -> None:
        result = analyzer.analyze(_fan_out(1, TaskStatus.BLOCKED), "o")
        assert result.recommendations == ["Currently blocked - Prioritize unblocking this task"]

    def test_small_impact_no_hints(self, analyzer) -> None:
        assert analyzer.analyze(_fan_out(2), "o").recommendations == []

    def test_no_hints_without_impact(self) -> None:
        assert recommend(_task("o", TaskStatus.BLOCKED), 0, 0) == []
