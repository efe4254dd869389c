"""Tests for CriticalPathFinder, topological ordering and bottleneck ranking."""

from __future__ import annotations

import logging
import random

import pytest

from taskgraph.core.graph.critical_path import (
    DEFAULT_TASK_WEIGHT,
    CriticalPathFinder,
    find_bottlenecks,
    task_weight,
    topological_order,
)
from taskgraph.core.graph.loader import GraphLoader
from taskgraph.core.graph.model import TaskGraph
from taskgraph.core.tasks.errors import GraphCorruptedError
from taskgraph.core.tasks.models import Dependency, TaskNode, TaskStatus

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _task(
    tid: str,
    hours: float | None = None,
    status: TaskStatus = TaskStatus.TODO,
    priority: int = 0,
) -> TaskNode:
    return TaskNode(
        id=tid, title=f"Task {tid}", estimated_hours=hours, status=status, priority=priority
    )


def _graph(tasks: list[TaskNode], pairs: list[tuple[str, str]]) -> TaskGraph:
    """Graph with BLOCKS edges given as (task, depends_on) pairs."""
    return TaskGraph(tasks, [Dependency(task_id=t, depends_on_task_id=d) for t, d in pairs])


def _ids(tasks: list[TaskNode]) -> list[str]:
    return [t.id for t in tasks]


@pytest.fixture
def finder() -> CriticalPathFinder:
    return CriticalPathFinder()


@pytest.fixture
def scenario(memory_store) -> TaskGraph:
    return GraphLoader(memory_store).load()


# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------


class TestTaskWeight:
    def test_estimate_used(self) -> None:
        assert task_weight(_task("a", 2.5)) == 2.5

    def test_missing_estimate_defaults(self) -> None:
        assert task_weight(_task("a")) == DEFAULT_TASK_WEIGHT == 1.0

    def test_explicit_zero_is_zero(self) -> None:
        assert task_weight(_task("a", 0)) == 0.0


# ---------------------------------------------------------------------------
# Topological order
# ---------------------------------------------------------------------------


class TestTopologicalOrder:
    def test_dependencies_come_first(self, scenario) -> None:
        order = topological_order(scenario)
        assert order == ["A", "B", "C", "D"]

    def test_ready_nodes_in_id_order(self) -> None:
        graph = _graph([_task("c"), _task("a"), _task("b")], [])
        assert topological_order(graph) == ["a", "b", "c"]

    def test_cycle_raises_graph_corrupted(self, caplog) -> None:
        graph = _graph([_task("a"), _task("b"), _task("c")], [("a", "b"), ("b", "a")])
        with caplog.at_level(logging.ERROR, logger="taskgraph.core.graph.critical_path"):
            with pytest.raises(GraphCorruptedError) as exc_info:
                topological_order(graph)
        assert exc_info.value.unordered_task_ids == ["a", "b"]
        assert "a, b" in caplog.text


# ---------------------------------------------------------------------------
# Reference scenarios
# ---------------------------------------------------------------------------


class TestScenarioChain:
    def test_path(self, finder, scenario) -> None:
        result = finder.find(scenario)
        assert result.task_ids == ["A", "B", "C"]

    def test_duration(self, finder, scenario) -> None:
        assert finder.find(scenario).total_duration == 9.0

    def test_bottlenecks(self, finder, scenario) -> None:
        assert _ids(finder.find(scenario).bottlenecks) == ["B"]

    def test_starting_and_ending(self, finder, scenario) -> None:
        result = finder.find(scenario)
        assert _ids(result.starting_tasks) == ["A"]
        assert _ids(result.ending_tasks) == ["C", "D"]

    def test_dependency_count(self, finder, scenario) -> None:
        assert finder.find(scenario).dependency_count == 3


class TestNoEdges:
    def test_empty_result(self, finder) -> None:
        graph = _graph([_task("a", 5), _task("b", 3), _task("c")], [])
        result = finder.find(graph)
        assert result.critical_path == []
        assert result.total_duration == 0
        assert result.dependency_count == 0
        assert result.bottlenecks == []
        assert _ids(result.starting_tasks) == ["a", "b", "c"]

    def test_empty_graph(self, finder) -> None:
        result = finder.find(TaskGraph([]))
        assert result.critical_path == []
        assert result.starting_tasks == []


# ---------------------------------------------------------------------------
# Status filtering
# ---------------------------------------------------------------------------


class TestDoneTasksExcluded:
    def test_done_root_dropped(self, finder) -> None:
        graph = _graph(
            [_task("A", 2, TaskStatus.DONE), _task("B", 3), _task("C", 4), _task("D", 1)],
            [("B", "A"), ("C", "B"), ("D", "B")],
        )
        result = finder.find(graph)
        assert result.task_ids == ["B", "C"]
        assert result.total_duration == 7.0
        assert _ids(result.starting_tasks) == ["B"]
        assert result.dependency_count == 2

    def test_archived_tasks_stay(self, finder) -> None:
        graph = _graph([_task("a", 1, TaskStatus.ARCHIVED), _task("b", 1)], [("b", "a")])
        assert finder.find(graph).task_ids == ["a", "b"]

    def test_all_done_gives_empty_path(self, finder) -> None:
        graph = _graph(
            [_task("a", 1, TaskStatus.DONE), _task("b", 1, TaskStatus.DONE)], [("b", "a")]
        )
        result = finder.find(graph)
        assert result.critical_path == []
        assert result.starting_tasks == []


# ---------------------------------------------------------------------------
# Tie-breaking and determinism
# ---------------------------------------------------------------------------


class TestTieBreaks:
    def test_more_tasks_wins_equal_duration(self, finder) -> None:
        graph = _graph([_task("p", 1), _task("q", 1), _task("r", 2)], [("q", "p")])
        assert finder.find(graph).task_ids == ["p", "q"]

    def test_smallest_ids_win_full_tie(self, finder) -> None:
        graph = _graph(
            [_task("c"), _task("d"), _task("a"), _task("b")], [("d", "c"), ("b", "a")]
        )
        assert finder.find(graph).task_ids == ["a", "b"]

    def test_predecessor_choice_is_smallest_id(self, finder) -> None:
        graph = _graph([_task("y"), _task("x"), _task("z")], [("z", "x"), ("z", "y")])
        assert finder.find(graph).task_ids == ["x", "z"]

    def test_float_noise_does_not_break_tie(self, finder) -> None:
        graph = _graph(
            [_task("a", 0.1), _task("b", 0.2), _task("c", 0.3), _task("d", 0.0)],
            # a+b = 0.30000000000000004, c+d = 0.3
            [("b", "a"), ("d", "c")],
        )
        assert finder.find(graph).task_ids == ["a", "b"]

    def test_repeated_calls_identical(self, finder, scenario) -> None:
        first = finder.find(scenario)
        for _ in range(5):
            assert finder.find(scenario) == first

    def test_input_order_does_not_matter(self, finder) -> None:
        tasks = [_task(f"t{i}", hours=(i % 3) + 1) for i in range(8)]
        pairs = [("t1", "t0"), ("t2", "t1"), ("t3", "t0"), ("t4", "t3"), ("t5", "t2"), ("t6", "t4")]
        baseline = finder.find(_graph(tasks, pairs))

        rng = random.Random(7)
        for _ in range(5):
            shuffled_tasks = tasks[:]
            shuffled_pairs = pairs[:]
            rng.shuffle(shuffled_tasks)
            rng.shuffle(shuffled_pairs)
            assert finder.find(_graph(shuffled_tasks, shuffled_pairs)) == baseline


# ---------------------------------------------------------------------------
# Properties over random DAGs
# ---------------------------------------------------------------------------


def _random_dag(rng: random.Random, n: int = 10) -> tuple[list[TaskNode], list[tuple[str, str]]]:
    ids = [f"n{i:02d}" for i in range(n)]
    tasks = [_task(tid, hours=rng.choice([None, 0, 0.5, 1, 2, 3, 8])) for tid in ids]
    # Edges only point from higher to lower index, so the graph is acyclic
    pairs = [(ids[j], ids[i]) for j in range(n) for i in range(j) if rng.random() < 0.25]
    return tasks, pairs


class TestProperties:
    @pytest.mark.parametrize("seed", range(8))
    def test_bounds(self, finder, seed) -> None:
        tasks, pairs = _random_dag(random.Random(seed))
        result = finder.find(_graph(tasks, pairs))
        assert len(result.critical_path) <= len(tasks)
        assert result.total_duration >= 0
        assert result.total_duration == pytest.approx(
            sum(task_weight(t) for t in result.critical_path)
        )

    @pytest.mark.parametrize("seed", range(8))
    def test_path_follows_dependencies(self, finder, seed) -> None:
        tasks, pairs = _random_dag(random.Random(seed))
        graph = _graph(tasks, pairs)
        path = finder.find(graph).task_ids
        for earlier, later in zip(path, path[1:]):
            assert earlier in graph.dependencies_of(later)

    @pytest.mark.parametrize("seed", range(8))
    def test_increasing_a_weight_never_shortens(self, finder, seed) -> None:
        rng = random.Random(seed)
        tasks, pairs = _random_dag(rng)
        if not pairs:
            pytest.skip("random graph has no edges")
        before = finder.find(_graph(tasks, pairs)).total_duration

        index = rng.randrange(len(tasks))
        bumped = tasks[:]
        bumped[index] = tasks[index].model_copy(
            update={"estimated_hours": task_weight(tasks[index]) + 5}
        )
        after = finder.find(_graph(bumped, pairs)).total_duration
        assert after >= before


# ---------------------------------------------------------------------------
# Bottlenecks
# ---------------------------------------------------------------------------


class TestBottlenecks:
    def test_ranked_by_count_times_priority(self) -> None:
        tasks = [
            _task("hub3", priority=1),
            _task("hub2", priority=5),
            *[_task(f"x{i}") for i in range(5)],
        ]
        pairs = [("x0", "hub3"), ("x1", "hub3"), ("x2", "hub3"), ("x3", "hub2"), ("x4", "hub2")]
        assert _ids(find_bottlenecks(_graph(tasks, pairs))) == ["hub2", "hub3"]

    def test_count_breaks_score_tie(self) -> None:
        tasks = [_task("b"), _task("a"), *[_task(f"x{i}") for i in range(5)]]
        pairs = [("x0", "a"), ("x1", "a"), ("x2", "b"), ("x3", "b"), ("x4", "b")]
        assert _ids(find_bottlenecks(_graph(tasks, pairs))) == ["b", "a"]

    def test_single_dependent_is_not_a_bottleneck(self) -> None:
        graph = _graph([_task("a"), _task("b")], [("b", "a")])
        assert find_bottlenecks(graph) == []

    def test_terminal_tasks_skipped(self) -> None:
        graph = _graph(
            [_task("a", status=TaskStatus.ARCHIVED), _task("b"), _task("c")],
            [("b", "a"), ("c", "a")],
        )
        assert find_bottlenecks(graph) == []


class TestCorruptedGraph:
    def test_stored_cycle_raises(self, finder) -> None:
        graph = _graph([_task("a"), _task("b")], [("a", "b"), ("b", "a")])
        with pytest.raises(GraphCorruptedError):
            finder.find(graph)
