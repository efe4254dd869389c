"""Tests for AgentFormatter: markdown output for LLM callers."""

from __future__ import annotations

import pytest

from taskgraph.core.graph.critical_path import CriticalPathFinder
from taskgraph.core.graph.impact import ImpactAnalyzer
from taskgraph.core.graph.loader import GraphLoader
from taskgraph.core.graph.model import TaskGraph
from taskgraph.core.services.agent_format import AgentFormatter
from taskgraph.core.tasks.models import CriticalPathResult, Dependency, TaskNode


@pytest.fixture
def scenario(memory_store) -> TaskGraph:
    return GraphLoader(memory_store).load()


def _fan_out(n: int) -> TaskGraph:
    tasks = [TaskNode(id="o", title="Origin"), *[TaskNode(id=f"d{i:02d}") for i in range(n)]]
    return TaskGraph(tasks, [Dependency(task_id=f"d{i:02d}", depends_on_task_id="o") for i in range(n)])


class TestFormatCriticalPath:
    def test_envelope(self, scenario) -> None:
        output = AgentFormatter.format_critical_path(CriticalPathFinder().find(scenario))
        lines = output.splitlines()
        assert lines[0] == "# taskgraph deps critical-path"
        assert lines[2] == "Critical path: 3 tasks, 9.0 hours across 3 dependencies."
        assert "## Path" in output
        assert "## Analysis" in output

    def test_path_rows(self, scenario) -> None:
        output = AgentFormatter.format_critical_path(CriticalPathFinder().find(scenario))
        assert "| 1 | A | Design | todo | 2 |" in output
        assert "| 3 | C | Test | todo | 4 |" in output

    def test_analysis(self, scenario) -> None:
        output = AgentFormatter.format_critical_path(CriticalPathFinder().find(scenario))
        assert "- **Start with**: A" in output
        assert "- **Bottlenecks**: B" in output
        assert "- **Ready to start**: A" in output

    def test_single_dependency_wording(self) -> None:
        graph = TaskGraph(
            [TaskNode(id="a"), TaskNode(id="b")], [Dependency(task_id="b", depends_on_task_id="a")]
        )
        output = AgentFormatter.format_critical_path(CriticalPathFinder().find(graph))
        assert "Critical path: 2 tasks, 2.0 hours across 1 dependency." in output

    def test_no_path(self) -> None:
        result = CriticalPathResult(starting_tasks=[TaskNode(id="a"), TaskNode(id="b")])
        assert AgentFormatter.format_critical_path(result) == (
            "# taskgraph deps critical-path\n\nNo critical path: no dependencies among 2 tasks."
        )


class TestFormatImpact:
    def test_summary(self, scenario) -> None:
        output = AgentFormatter.format_impact(ImpactAnalyzer().analyze(scenario, "A"))
        lines = output.splitlines()
        assert lines[0] == "# taskgraph deps impact A"
        assert lines[2] == "A impacts 3 tasks (1 direct, 2 indirect). Risk: MEDIUM."

    def test_dependents_table(self, scenario) -> None:
        output = AgentFormatter.format_impact(ImpactAnalyzer().analyze(scenario, "A"))
        assert "| B | Build | todo | 0 |" in output
        assert "| D | Docs | todo | 0 |" in output
        assert "- **Would block**: 3 tasks" in output

    def test_no_impact_stops_after_summary(self, scenario) -> None:
        output = AgentFormatter.format_impact(ImpactAnalyzer().analyze(scenario, "C"))
        assert output == "# taskgraph deps impact C\n\nC impacts 0 tasks (0 direct, 0 indirect). Risk: LOW."

    def test_truncation_notice(self) -> None:
        output = AgentFormatter.format_impact(ImpactAnalyzer().analyze(_fan_out(12), "o"))
        assert "| d09 |" in output
        assert "| d10 |" not in output
        assert "Showing 10 of 12." in output

    def test_recommendations_listed(self) -> None:
        output = AgentFormatter.format_impact(ImpactAnalyzer().analyze(_fan_out(6), "o"))
        assert "- **Recommendation**: High impact task - Monitor progress closely" in output
