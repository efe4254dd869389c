"""
taskgraph - Task dependency graph and critical-path engine

Models blocking relationships between tasks as a DAG, keeps it acyclic on
the write path, and answers critical path, impact and visualization
queries over fresh snapshots of a task store.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from taskgraph.core.tasks.models import Dependency, DependencyType, TaskNode, TaskStatus

__all__ = ["Dependency", "DependencyType", "TaskNode", "TaskStatus", "__version__"]
