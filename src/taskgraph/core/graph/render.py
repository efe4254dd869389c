"""
Text renderings of a task graph and of a critical path.

Three formats:

* **tree** - indentation per level from each root, with a summary footer
* **ascii** - connector-based subtrees (``├──``/``└──``) for a graph, and a
  linear ``├─``/``└─`` chain for a critical path
* **dot** - Graphviz source for external rendering tools

Renderers are pure: they return strings and never print or write files.
Traversals use explicit stacks so very deep chains cannot hit the
recursion limit.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from taskgraph.core.graph.model import TaskGraph
from taskgraph.core.tasks.models import (
    CriticalPathResult,
    DependencyType,
    TaskNode,
    TaskStatus,
)

NO_TASKS_MESSAGE = "No tasks found."
NO_DEPENDENCIES_MESSAGE = "No dependencies found."
NO_CRITICAL_PATH_MESSAGE = "No critical path found - no dependencies exist."
UNREACHED_HEADER = "⚠️ Not reachable from any root (dependency cycle):"


class GraphFormat(str, Enum):
    TREE = "tree"
    ASCII = "ascii"
    DOT = "dot"


class TreeDirection(str, Enum):
    """Which adjacency the tree view follows downwards."""

    DEPENDENTS = "dependents"
    DEPENDENCIES = "dependencies"


class RenderOptions(BaseModel):
    """Options for graph visualization."""

    format: GraphFormat = Field(default=GraphFormat.TREE, description="Output format")
    show_task_details: bool = Field(default=False, description="Include per-task details")
    board_id: str | None = Field(default=None, description="Board filter used to load the graph")
    root_task_id: str | None = Field(
        default=None, description="Render only the tree below this task"
    )
    direction: TreeDirection = Field(
        default=TreeDirection.DEPENDENTS, description="Tree direction"
    )
    now: datetime | None = Field(
        default=None, description="Reference time for overdue flags (defaults to current time)"
    )


# ----------------------------------------------------------------------
# Glyphs
# ----------------------------------------------------------------------

_STATUS_ICONS = {
    TaskStatus.TODO: "⭕",
    TaskStatus.IN_PROGRESS: "🔄",
    TaskStatus.DONE: "✅",
    TaskStatus.BLOCKED: "🚫",
    TaskStatus.ARCHIVED: "📦",
}

_STATUS_COLORS = {
    TaskStatus.TODO: "lightblue",
    TaskStatus.IN_PROGRESS: "yellow",
    TaskStatus.DONE: "lightgreen",
    TaskStatus.BLOCKED: "red",
    TaskStatus.ARCHIVED: "gray",
}


def status_icon(status: TaskStatus) -> str:
    return _STATUS_ICONS.get(status, "❓")


def status_color(status: TaskStatus) -> str:
    return _STATUS_COLORS.get(status, "white")


def priority_icon(priority: int) -> str:
    if priority >= 8:
        return "🔥"
    if priority >= 6:
        return "⚡"
    if priority >= 4:
        return "📈"
    return "📝"


def _badge(task: TaskNode) -> str:
    return f"{status_icon(task.status)} {priority_icon(task.priority)} {task.title}"


def _format_hours(hours: float) -> str:
    return f"{hours:g}h"


def _detail_lines(
    task: TaskNode, graph: TaskGraph | None, now: datetime | None
) -> list[str]:
    """Detail fields shown under a task when show_task_details is set."""
    lines = [f"ID: {task.id} | Status: {task.status.value}"]
    if task.estimated_hours is not None:
        lines.append(f"Estimated: {_format_hours(task.estimated_hours)}")
    if task.due_date is not None:
        overdue = " (OVERDUE)" if task.is_overdue(now) else ""
        lines.append(f"Due: {task.due_date.date().isoformat()}{overdue}")
    if task.assignee:
        lines.append(f"Assigned to: {task.assignee}")
    if graph is not None:
        deps = graph.in_degree(task.id)
        dependents = graph.out_degree(task.id)
        if deps or dependents:
            lines.append(f"Depends on: {deps} task(s) | Blocks: {dependents} task(s)")
        if graph.is_placeholder(task.id):
            lines.append(f"External: board {task.board_id or '?'}")
    return lines


def _empty_message(graph: TaskGraph) -> str | None:
    if len(graph) == 0:
        return NO_TASKS_MESSAGE
    if not graph.edges:
        return NO_DEPENDENCIES_MESSAGE
    return None


class GraphRenderer:
    """
    Formats graphs and critical paths as text.

    Example:
        >>> renderer = GraphRenderer()
        >>> print(renderer.render(graph, RenderOptions(format=GraphFormat.DOT)))
    """

    def render(
        self,
        graph: TaskGraph,
        options: RenderOptions | None = None,
        highlight: CriticalPathResult | None = None,
    ) -> str:
        """Render *graph* in the format selected by *options*."""
        options = options or RenderOptions()

        if options.format == GraphFormat.DOT:
            return self.render_dot(graph, options, highlight)

        if (message := _empty_message(graph)) is not None:
            return message

        if options.format == GraphFormat.TREE:
            return self.render_tree(graph, options)
        return self.render_ascii(graph, options)

    # ------------------------------------------------------------------
    # Tree
    # ------------------------------------------------------------------

    def render_tree(self, graph: TaskGraph, options: RenderOptions) -> str:
        """Indented tree from each root (or from ``options.root_task_id``).

        A task reachable along several branches is expanded the first time
        only; later occurrences are marked ``(see above)``.
        """
        follow_dependents = options.direction == TreeDirection.DEPENDENTS
        if options.root_task_id is not None:
            if options.root_task_id not in graph:
                return NO_TASKS_MESSAGE
            starts = [options.root_task_id]
        else:
            starts = graph.roots if follow_dependents else graph.leaves

        lines = ["🌳 Task Dependency Tree", ""]
        expanded: set[str] = set()

        def walk(start: str) -> None:
            stack: list[tuple[str, int]] = [(start, 0)]
            while stack:
                task_id, level = stack.pop()
                task = graph.task(task_id)
                indent = "  " * level
                label = _badge(task)
                if not options.show_task_details:
                    label += f" ({task.id})"

                if task_id in expanded:
                    lines.append(f"{indent}{label} (see above)")
                    continue
                expanded.add(task_id)

                lines.append(f"{indent}{label}")
                if options.show_task_details:
                    for detail in _detail_lines(task, graph, options.now):
                        lines.append(f"{indent}    {detail}")

                children = (
                    graph.dependents_of(task_id)
                    if follow_dependents
                    else graph.dependencies_of(task_id)
                )
                for child in sorted(children, reverse=True):
                    stack.append((child, level + 1))

        for start in starts:
            walk(start)
        if options.root_task_id is None:
            _append_unreached(lines, graph, expanded, walk)

        stats = graph.stats
        lines.extend(
            [
                "",
                "📊 Summary:",
                f"   Total tasks: {stats['node_count']}",
                f"   Dependencies: {len(graph.edges)}",
                f"   Root tasks: {stats['root_count']}",
                f"   Leaf tasks: {stats['leaf_count']}",
                f"   Max depth: {stats['max_depth']}",
            ]
        )
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # ASCII
    # ------------------------------------------------------------------

    def render_ascii(self, graph: TaskGraph, options: RenderOptions) -> str:
        """Connector-based subtrees of dependents, one per root."""
        starts = (
            [options.root_task_id]
            if options.root_task_id is not None and options.root_task_id in graph
            else graph.roots
        )
        lines = ["📊 Task Dependencies (ASCII)", ""]
        expanded: set[str] = set()

        def walk(start: str) -> None:
            # (task_id, line prefix, prefix for children, ancestors on this branch)
            stack: list[tuple[str, str, str, frozenset[str]]] = [(start, "", "", frozenset())]
            while stack:
                task_id, line_prefix, child_prefix, ancestors = stack.pop()
                if task_id in ancestors:
                    lines.append(f"{line_prefix}🔄 [CYCLE] {task_id}")
                    continue

                task = graph.task(task_id)
                label = _badge(task)
                if options.show_task_details:
                    label += f" ({task.id})"
                if task_id in expanded and graph.out_degree(task_id) > 0:
                    lines.append(f"{line_prefix}{label} (see above)")
                    continue
                expanded.add(task_id)
                lines.append(f"{line_prefix}{label}")

                children = sorted(graph.dependents_of(task_id))
                branch = ancestors | {task_id}
                pending: list[tuple[str, str, str, frozenset[str]]] = []
                for index, child in enumerate(children):
                    is_last = index == len(children) - 1
                    connector = "└── " if is_last else "├── "
                    extension = "    " if is_last else "│   "
                    pending.append(
                        (child, child_prefix + connector, child_prefix + extension, branch)
                    )
                stack.extend(reversed(pending))

        for start in starts:
            walk(start)
        if options.root_task_id is None:
            _append_unreached(lines, graph, expanded, walk)

        return "\n".join(lines) + "\n"

    def render_critical_path(
        self, result: CriticalPathResult, options: RenderOptions | None = None
    ) -> str:
        """Linear chain view of a critical path, followed by a summary."""
        options = options or RenderOptions(format=GraphFormat.ASCII)
        if not result.critical_path:
            return NO_CRITICAL_PATH_MESSAGE

        lines = ["🎯 Critical Path (Longest Chain)", ""]
        last = len(result.critical_path) - 1
        for index, task in enumerate(result.critical_path):
            is_last = index == last
            connector = "└─" if is_last else "├─"
            lines.append(f"{connector} {_badge(task)}")
            if options.show_task_details:
                for detail in _detail_lines(task, None, options.now):
                    lines.append(f"   {detail}")
            if not is_last:
                lines.append("   │")

        lines.extend(
            [
                "",
                "📊 Critical Path Summary:",
                f"   Total Duration: {result.total_duration:.1f} hours",
                f"   Tasks in Path: {len(result.critical_path)}",
                f"   Dependencies: {result.dependency_count}",
            ]
        )

        if result.bottlenecks:
            lines.extend(["", "🚧 Bottleneck Tasks:"])
            lines.extend(f"   • {t.title} ({t.id})" for t in result.bottlenecks)

        if result.starting_tasks:
            lines.extend(["", "🚀 Starting Tasks (No Dependencies):"])
            lines.extend(f"   • {t.title} ({t.id})" for t in result.starting_tasks)

        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # DOT
    # ------------------------------------------------------------------

    def render_dot(
        self,
        graph: TaskGraph,
        options: RenderOptions,
        highlight: CriticalPathResult | None = None,
    ) -> str:
        """Graphviz source: one node per task, one edge per loaded dependency.

        Edges point from the prerequisite to the dependent task. BLOCKS edges
        are solid red, informational edges dashed blue. Tasks and edges on
        *highlight*'s path are drawn with a heavier pen.
        """
        path_ids = highlight.task_ids if highlight else []
        on_path = set(path_ids)
        path_edges = set(zip(path_ids, path_ids[1:]))

        lines = [
            "digraph TaskDependencies {",
            "  rankdir=TB;",
            "  node [shape=box, style=rounded];",
            "",
        ]

        for task in graph:
            parts = [task.title]
            if options.show_task_details:
                parts.extend([task.status.value, f"Priority: {task.priority}"])
                if task.estimated_hours is not None:
                    parts.append(f"Estimated: {_format_hours(task.estimated_hours)}")
            label = "\\n".join(_dot_escape(p) for p in parts)

            style = "rounded,filled,dashed" if graph.is_placeholder(task.id) else "rounded,filled"
            attrs = [
                f'label="{label}"',
                f'fillcolor="{status_color(task.status)}"',
                f'style="{style}"',
            ]
            if task.id in on_path:
                attrs.append("penwidth=2")
            lines.append(f'  "{_dot_escape(task.id)}" [{", ".join(attrs)}];')

        lines.append("")

        for edge in sorted(graph.edges, key=lambda e: (e.depends_on_task_id, e.task_id)):
            blocking = edge.dependency_type == DependencyType.BLOCKS
            attrs = ["style=solid", "color=red"] if blocking else ["style=dashed", "color=blue"]
            if not blocking:
                attrs.append(f'label="{edge.dependency_type.value}"')
            if (edge.depends_on_task_id, edge.task_id) in path_edges:
                attrs.append("penwidth=2")
            lines.append(
                f'  "{_dot_escape(edge.depends_on_task_id)}" -> '
                f'"{_dot_escape(edge.task_id)}" [{", ".join(attrs)}];'
            )

        lines.append("}")
        return "\n".join(lines) + "\n"


def _append_unreached(
    lines: list[str],
    graph: TaskGraph,
    expanded: set[str],
    walk: Callable[[str], None],
) -> None:
    """Render tasks no start reached, which only happens when a stored cycle has no root."""
    unreached = [tid for tid in graph.task_ids if tid not in expanded]
    if not unreached:
        return
    lines.extend(["", UNREACHED_HEADER])
    for task_id in unreached:
        if task_id not in expanded:
            walk(task_id)


def _dot_escape(text: str) -> str:
    """Escape text for use inside a double-quoted DOT string."""
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\r", "")
        .replace("\n", "\\n")
    )
