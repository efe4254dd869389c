"""
Pytest configuration and shared fixtures.

Provides task stores seeded with the reference scenario, an isolated
configuration environment, and other test utilities used across the suite.
"""

from pathlib import Path

import pytest

from taskgraph.core.config import clear_cache
from taskgraph.core.services.dependencies import DependencyService
from taskgraph.core.tasks.memory import MemoryTaskStore
from taskgraph.core.tasks.models import Dependency, TaskNode
from taskgraph.core.tasks.sqlite import SqliteTaskStore

# ==============================================================================
# Environment Isolation
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """
    Keep tests away from the developer's real configuration.

    Points XDG_CONFIG_HOME at a temp dir, removes TASKGRAPH_* variables,
    and resets the config cache before and after each test.
    """
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for name in (
        "TASKGRAPH_STORE",
        "TASKGRAPH_DB",
        "TASKGRAPH_FORMAT",
        "TASKGRAPH_SHOW_DETAILS",
        "TASKGRAPH_LOG_LEVEL",
    ):
        # setenv first so teardown also removes values a test loads from .env
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    clear_cache()
    yield
    clear_cache()


# ==============================================================================
# Scenario Fixtures
# ==============================================================================


@pytest.fixture
def scenario_tasks() -> list[TaskNode]:
    """
    Four tasks: A(2h), B(3h), C(4h), D(1h).

    With the scenario edges B depends on A, and both C and D depend on B.
    """
    return [
        TaskNode(id="A", title="Design", estimated_hours=2),
        TaskNode(id="B", title="Build", estimated_hours=3),
        TaskNode(id="C", title="Test", estimated_hours=4),
        TaskNode(id="D", title="Docs", estimated_hours=1),
    ]


@pytest.fixture
def scenario_edges() -> list[Dependency]:
    return [
        Dependency(task_id="B", depends_on_task_id="A"),
        Dependency(task_id="C", depends_on_task_id="B"),
        Dependency(task_id="D", depends_on_task_id="B"),
    ]


@pytest.fixture
def memory_store(scenario_tasks, scenario_edges) -> MemoryTaskStore:
    """In-memory store seeded with the scenario graph."""
    return MemoryTaskStore(scenario_tasks, scenario_edges)


@pytest.fixture
def db_path(tmp_path) -> Path:
    return tmp_path / "tasks.db"


@pytest.fixture
def sqlite_store(db_path, scenario_tasks, scenario_edges):
    """SQLite store on a temp file seeded with the scenario graph."""
    store = SqliteTaskStore(db_path)
    for task in scenario_tasks:
        store.save_task(task)
    for edge in scenario_edges:
        store.insert_dependency(edge)
    yield store
    store.close()


@pytest.fixture
def service(memory_store) -> DependencyService:
    """Dependency service over the seeded in-memory store."""
    return DependencyService(memory_store)
