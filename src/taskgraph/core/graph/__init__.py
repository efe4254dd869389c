"""
Task dependency graph engine.

Graph model and loader, the write-path cycle guard, and the read-only
analyses built on top of them: critical path, impact, and visualization.
"""

from .critical_path import (
    DEFAULT_TASK_WEIGHT,
    CriticalPathFinder,
    find_bottlenecks,
    task_weight,
    topological_order,
)
from .cycle import check_dependency, find_cycle_path, would_create_cycle
from .impact import ImpactAnalyzer, classify_risk
from .loader import ALL_TYPES, BLOCKING_ONLY, GraphLoader
from .model import TaskGraph
from .render import GraphFormat, GraphRenderer, RenderOptions, TreeDirection

__all__ = [
    # Model and loading
    "TaskGraph",
    "GraphLoader",
    "BLOCKING_ONLY",
    "ALL_TYPES",
    # Cycle guard
    "check_dependency",
    "find_cycle_path",
    "would_create_cycle",
    # Critical path
    "CriticalPathFinder",
    "DEFAULT_TASK_WEIGHT",
    "find_bottlenecks",
    "task_weight",
    "topological_order",
    # Impact
    "ImpactAnalyzer",
    "classify_risk",
    # Rendering
    "GraphFormat",
    "GraphRenderer",
    "RenderOptions",
    "TreeDirection",
]
