"""
Task and dependency data models.

These models describe the read snapshot the dependency engine works on:
task nodes owned by the host task store and the dependency edges between
them. Validation and type safety via Pydantic.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    """Task lifecycle status."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    BLOCKED = "blocked"
    ARCHIVED = "archived"

    @property
    def is_terminal(self) -> bool:
        """Done and archived tasks no longer block anything."""
        return self in (TaskStatus.DONE, TaskStatus.ARCHIVED)


class DependencyType(str, Enum):
    """Kind of relationship between two tasks.

    Only BLOCKS edges take part in scheduling and cycle detection; the
    other types are informational.
    """

    BLOCKS = "blocks"
    RELATES_TO = "relates_to"
    DUPLICATES = "duplicates"


class RiskLevel(str, Enum):
    """Blast-radius classification for impact analysis."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TaskNode(BaseModel):
    """
    One task as seen by the dependency graph.

    Tasks are owned by the external store; a TaskNode is a read-only copy
    taken when the graph is loaded.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Opaque task identifier")
    title: str = Field(default="", description="Task title")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Task status")
    priority: int = Field(default=0, ge=0, description="Priority (higher is more urgent)")
    estimated_hours: float | None = Field(
        default=None, ge=0.0, description="Estimated duration in hours"
    )
    due_date: datetime | None = Field(default=None, description="Optional due date")
    board_id: str | None = Field(default=None, description="Owning board")
    assignee: str | None = Field(default=None, description="Assigned person or agent")

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def is_overdue(self, now: datetime | None = None) -> bool:
        """Return True if the task has a due date in the past and is not finished."""
        if self.due_date is None or self.is_terminal:
            return False
        now = now or _utcnow()
        due = self.due_date
        # Compare naive and aware datetimes by assuming UTC for the naive side
        if due.tzinfo is None and now.tzinfo is not None:
            due = due.replace(tzinfo=timezone.utc)
        elif due.tzinfo is not None and now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return due < now


class Dependency(BaseModel):
    """
    Directed edge: ``task_id`` depends on ``depends_on_task_id``.

    For a BLOCKS edge, ``depends_on_task_id`` must be finished before
    ``task_id`` can start.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Edge identifier")
    task_id: str = Field(..., min_length=1, description="Dependent task")
    depends_on_task_id: str = Field(..., min_length=1, description="Prerequisite task")
    dependency_type: DependencyType = Field(
        default=DependencyType.BLOCKS, description="Relationship type"
    )
    created_at: datetime = Field(default_factory=_utcnow, description="Creation timestamp")
    metadata: dict[str, Any] | None = Field(default=None, description="Free-form metadata")

    @property
    def is_blocking(self) -> bool:
        return self.dependency_type == DependencyType.BLOCKS


class CriticalPathResult(BaseModel):
    """Longest weighted chain of dependent work in a (filtered) graph."""

    critical_path: list[TaskNode] = Field(default_factory=list)
    total_duration: float = Field(default=0.0, ge=0.0)
    dependency_count: int = Field(default=0, ge=0, description="Blocking edges considered")
    starting_tasks: list[TaskNode] = Field(default_factory=list)
    ending_tasks: list[TaskNode] = Field(default_factory=list)
    bottlenecks: list[TaskNode] = Field(default_factory=list)

    @property
    def task_ids(self) -> list[str]:
        return [task.id for task in self.critical_path]


class ImpactResult(BaseModel):
    """Blast radius of a single task."""

    task: TaskNode
    direct_dependents: list[TaskNode] = Field(default_factory=list)
    indirect_dependents: list[TaskNode] = Field(default_factory=list)
    total_impact: int = Field(default=0, ge=0)
    would_block_count: int = Field(default=0, ge=0)
    risk_level: RiskLevel = RiskLevel.LOW
    recommendations: list[str] = Field(default_factory=list)


class BulkAction(str, Enum):
    ADD = "add"
    REMOVE = "remove"


class BulkDependencyOperation(BaseModel):
    """One entry of a bulk add/remove request."""

    task_id: str
    depends_on_task_id: str
    action: BulkAction = BulkAction.ADD
    dependency_type: DependencyType = DependencyType.BLOCKS


class BulkOperationOutcome(BaseModel):
    task_id: str
    depends_on_task_id: str
    action: BulkAction
    error: str | None = None


class BulkDependencyResult(BaseModel):
    """Outcome of a bulk request; failed entries carry the error message."""

    successful: list[BulkOperationOutcome] = Field(default_factory=list)
    failed: list[BulkOperationOutcome] = Field(default_factory=list)
