"""
Standardized error handling and exit codes for the taskgraph CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum

from rich.console import Console

from taskgraph.core.tasks.errors import (
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

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for taskgraph CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error: store failure, corrupted graph, failed bulk entries."""

    USER_ERROR = 2
    """Input the user can fix: unknown task, cycle, self or duplicate dependency."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Task not found: t-9",
        ...     reason="The task ID may be incorrect",
        ...     solution="taskgraph deps graph",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}", highlight=False)

    if reason:
        console.print(f"[dim]{reason}[/dim]", highlight=False)

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}", highlight=False)


def print_task_not_found_error(task_id: str) -> None:
    """Print error when a specific task is not found."""
    print_error(
        f"Task not found: {task_id}",
        reason="The task ID may be incorrect or the task may have been deleted",
        solution="taskgraph deps graph  # to see available tasks",
    )


def print_cycle_error(error: CycleDetectedError) -> None:
    """Print error when a new dependency would close a loop."""
    print_error(
        f"Cannot make {error.task_id} depend on {error.depends_on_task_id}",
        reason=f"It would create a cycle: {' -> '.join(error.path)}",
        solution=(
            f"taskgraph deps list {error.depends_on_task_id}  "
            "# to inspect the existing chain"
        ),
    )


def print_graph_corrupted_error(error: GraphCorruptedError) -> None:
    """Print error when the stored blocking graph already contains a cycle."""
    print_error(
        "Dependency graph contains a cycle",
        reason=f"Could not order: {', '.join(error.unordered_task_ids)}",
        solution="taskgraph deps remove TASK_ID DEPENDS_ON_ID  # to break the loop",
    )


def report_error(error: TaskGraphError) -> ExitCode:
    """
    Print an engine error and return the matching exit code.

    Args:
        error: Exception raised by the dependency service

    Returns:
        USER_ERROR for problems with the request, GENERAL_ERROR otherwise
    """
    if isinstance(error, TaskNotFoundError):
        print_task_not_found_error(error.task_id)
        return ExitCode.USER_ERROR
    if isinstance(error, CycleDetectedError):
        print_cycle_error(error)
        return ExitCode.USER_ERROR
    if isinstance(error, SelfDependencyError):
        print_error(str(error), solution="Pick two different task IDs")
        return ExitCode.USER_ERROR
    if isinstance(error, DuplicateDependencyError):
        print_error(
            str(error),
            solution=f"taskgraph deps list {error.task_id}  # to see existing edges",
        )
        return ExitCode.USER_ERROR
    if isinstance(error, DependencyNotFoundError):
        print_error(str(error), solution=f"taskgraph deps list {error.task_id}")
        return ExitCode.USER_ERROR
    if isinstance(error, GraphCorruptedError):
        print_graph_corrupted_error(error)
        return ExitCode.GENERAL_ERROR
    if isinstance(error, DanglingReferenceError):
        print_error(
            str(error),
            reason="The task store holds an edge to a deleted task",
            solution=(
                f"taskgraph deps remove {error.dependency.task_id} "
                f"{error.dependency.depends_on_task_id}"
            ),
        )
        return ExitCode.GENERAL_ERROR
    if isinstance(error, StoreError):
        print_error(str(error), reason="The task store could not be read or written")
        return ExitCode.GENERAL_ERROR

    print_error(str(error))
    return ExitCode.GENERAL_ERROR


__all__ = [
    "ExitCode",
    "print_error",
    "print_task_not_found_error",
    "print_cycle_error",
    "print_graph_corrupted_error",
    "report_error",
]
