"""Tests for the write-path cycle guard."""

from __future__ import annotations

import random

import pytest

from taskgraph.core.graph.critical_path import topological_order
from taskgraph.core.graph.cycle import check_dependency, find_cycle_path, would_create_cycle
from taskgraph.core.graph.model import TaskGraph
from taskgraph.core.tasks.errors import CycleDetectedError, SelfDependencyError
from taskgraph.core.tasks.models import Dependency, DependencyType, TaskNode


def _graph(ids: list[str], pairs: list[tuple[str, str]]) -> TaskGraph:
    """Graph with BLOCKS edges given as (task, depends_on) pairs."""
    return TaskGraph(
        [TaskNode(id=i) for i in ids],
        [Dependency(task_id=t, depends_on_task_id=d) for t, d in pairs],
    )


@pytest.fixture
def chain() -> TaskGraph:
    """B depends on A, C depends on B, D depends on B."""
    return _graph(["A", "B", "C", "D"], [("B", "A"), ("C", "B"), ("D", "B")])


# ---------------------------------------------------------------------------
# Reachability
# ---------------------------------------------------------------------------


class TestWouldCreateCycle:
    def test_closing_the_chain(self, chain) -> None:
        assert would_create_cycle(chain, "A", "C") is True

    def test_direct_back_edge(self, chain) -> None:
        assert would_create_cycle(chain, "A", "B") is True

    def test_safe_edge(self, chain) -> None:
        assert would_create_cycle(chain, "C", "D") is False
        assert would_create_cycle(chain, "D", "A") is False

    def test_unknown_tasks_are_safe(self, chain) -> None:
        assert would_create_cycle(chain, "X", "Y") is False

    def test_deep_chain_does_not_recurse(self) -> None:
        n = 5000
        ids = [f"t{i:05d}" for i in range(n)]
        graph = _graph(ids, [(ids[i + 1], ids[i]) for i in range(n - 1)])
        assert would_create_cycle(graph, ids[0], ids[-1]) is True


class TestFindCyclePath:
    def test_path_runs_from_new_edge_back_to_start(self, chain) -> None:
        assert find_cycle_path(chain, "A", "C") == ["A", "C", "B", "A"]

    def test_two_cycle(self, chain) -> None:
        assert find_cycle_path(chain, "A", "B") == ["A", "B", "A"]

    def test_self_edge(self, chain) -> None:
        assert find_cycle_path(chain, "A", "A") == ["A", "A"]

    def test_none_when_safe(self, chain) -> None:
        assert find_cycle_path(chain, "C", "D") is None


# ---------------------------------------------------------------------------
# check_dependency
# ---------------------------------------------------------------------------


class TestCheckDependency:
    def test_cycle_rejected_with_path(self, chain) -> None:
        with pytest.raises(CycleDetectedError) as exc_info:
            check_dependency(chain, "A", "C")
        assert exc_info.value.path == ["A", "C", "B", "A"]
        assert "would create a cycle" in str(exc_info.value)
        assert "A -> C -> B -> A" in str(exc_info.value)

    def test_graph_unchanged_after_rejection(self, chain) -> None:
        before = chain.blocking_edges
        with pytest.raises(CycleDetectedError):
            check_dependency(chain, "A", "C")
        assert chain.blocking_edges == before

    @pytest.mark.parametrize("dep_type", list(DependencyType))
    def test_self_dependency_rejected_for_every_type(self, chain, dep_type) -> None:
        with pytest.raises(SelfDependencyError):
            check_dependency(chain, "B", "B", dep_type)

    def test_self_dependency_on_unknown_task(self) -> None:
        with pytest.raises(SelfDependencyError):
            check_dependency(TaskGraph([]), "X", "X")

    @pytest.mark.parametrize("dep_type", [DependencyType.RELATES_TO, DependencyType.DUPLICATES])
    def test_informational_edges_skip_reachability(self, chain, dep_type) -> None:
        check_dependency(chain, "A", "C", dep_type)

    def test_safe_blocking_edge_passes(self, chain) -> None:
        check_dependency(chain, "C", "D")


# ---------------------------------------------------------------------------
# Acyclicity under random insertion
# ---------------------------------------------------------------------------


class TestRandomInsertions:
    @pytest.mark.parametrize("seed", range(10))
    def test_accepted_edges_keep_graph_acyclic(self, seed) -> None:
        rng = random.Random(seed)
        ids = [f"n{i}" for i in range(12)]
        accepted: list[tuple[str, str]] = []

        for _ in range(60):
            a, b = rng.choice(ids), rng.choice(ids)
            if (a, b) in accepted:
                continue
            graph = _graph(ids, accepted)
            try:
                check_dependency(graph, a, b)
            except (CycleDetectedError, SelfDependencyError):
                # Rejected inserts leave the edge set as it was
                assert _graph(ids, accepted).blocking_edges == graph.blocking_edges
                continue
            accepted.append((a, b))

        final = _graph(ids, accepted)
        assert len(topological_order(final)) == len(ids)
