"""
Task snapshot models, errors, and store implementations.

This module provides the data models the dependency engine reads (tasks,
dependency edges, analysis results), the typed error hierarchy, and the
TaskStore protocol with its registry of pluggable stores.
"""

from .errors import (
    CycleDetectedError,
    DanglingReferenceError,
    DependencyNotFoundError,
    DuplicateDependencyError,
    GraphCorruptedError,
    SelfDependencyError,
    StoreError,
    TaskGraphError,
    TaskNotFoundError,
)
from .models import (
    BulkAction,
    BulkDependencyOperation,
    BulkDependencyResult,
    BulkOperationOutcome,
    CriticalPathResult,
    Dependency,
    DependencyType,
    ImpactResult,
    RiskLevel,
    TaskNode,
    TaskStatus,
)
from .store import TaskStore, get_store, is_store_available, list_stores, register_store

# Import store implementations to trigger registration
from . import memory, sqlite  # noqa: F401, E402

__all__ = [
    # Models
    "TaskNode",
    "TaskStatus",
    "Dependency",
    "DependencyType",
    "RiskLevel",
    "CriticalPathResult",
    "ImpactResult",
    "BulkAction",
    "BulkDependencyOperation",
    "BulkDependencyResult",
    "BulkOperationOutcome",
    # Errors
    "TaskGraphError",
    "StoreError",
    "TaskNotFoundError",
    "DanglingReferenceError",
    "SelfDependencyError",
    "CycleDetectedError",
    "DuplicateDependencyError",
    "DependencyNotFoundError",
    "GraphCorruptedError",
    # Store protocol and registry
    "TaskStore",
    "register_store",
    "get_store",
    "list_stores",
    "is_store_available",
]
