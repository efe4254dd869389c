"""
AgentFormatter - structured markdown output for LLM consumption.

Transforms dependency analysis results into structured markdown following
the envelope template: heading, summary line, data tables, truncation
notice, analysis section.

The formatter returns plain strings; no Rich, no console.

Design principles:
- Summary line first (the agent can echo it directly)
- Tables for lists (compact, parseable)
- Truncation with explicit notices
- Analysis section with pre-computed hints
"""

from __future__ import annotations

from taskgraph.core.graph.critical_path import task_weight
from taskgraph.core.tasks.models import CriticalPathResult, ImpactResult, TaskNode


class AgentFormatter:
    """Static methods that transform analysis results into structured markdown.

    Each method follows the envelope template:
    1. Heading (# command name)
    2. Summary line (key numbers)
    3. Data tables (compact, scannable)
    4. Truncation notice (if applicable)
    5. Analysis section (pre-computed insights)

    Example:
        >>> result = service.find_critical_path()
        >>> print(AgentFormatter.format_critical_path(result))
    """

    # Default truncation limit for lists
    DEFAULT_LIMIT = 10

    # ============================================================================
    # Shared helpers
    # ============================================================================

    @staticmethod
    def _truncate_table(
        items: list[str], limit: int | None = None, total: int | None = None
    ) -> str:
        """Join table rows, appending a truncation notice when rows were cut."""
        if limit is None:
            limit = AgentFormatter.DEFAULT_LIMIT

        total = total or len(items)
        rows = items[:limit]
        result = "\n".join(rows)

        if total > limit:
            result += f"\n\nShowing {limit} of {total}."

        return result

    @staticmethod
    def _plural(count: int, noun: str) -> str:
        return f"{count} {noun}{'s' if count != 1 else ''}"

    @staticmethod
    def _task_rows(tasks: list[TaskNode]) -> list[str]:
        return [
            f"| {t.id} | {t.title} | {t.status.value} | {t.priority} |" for t in tasks
        ]

    # ============================================================================
    # format_critical_path
    # ============================================================================

    @staticmethod
    def format_critical_path(result: CriticalPathResult) -> str:
        """Format a critical path as structured markdown.

        Example output:
            # taskgraph deps critical-path

            Critical path: 3 tasks, 9.0 hours across 3 dependencies.

            ## Path

            | # | ID | Title | Status | Hours |
            |---|----|-------|--------|-------|
            | 1 | A | Design | todo | 2 |

            ## Analysis

            - **Start with**: A
            - **Bottlenecks**: B
            - **Ready to start**: A
        """
        heading = "# taskgraph deps critical-path"
        if not result.critical_path:
            summary = (
                f"No critical path: no dependencies among "
                f"{AgentFormatter._plural(len(result.starting_tasks), 'task')}."
            )
            return f"{heading}\n\n{summary}"

        count = len(result.critical_path)
        edges = result.dependency_count
        summary = (
            f"Critical path: {AgentFormatter._plural(count, 'task')}, "
            f"{result.total_duration:.1f} hours across "
            f"{edges} {'dependency' if edges == 1 else 'dependencies'}."
        )

        output = f"{heading}\n\n{summary}\n\n"
        output += "## Path\n\n"
        output += "| # | ID | Title | Status | Hours |\n"
        output += "|---|----|-------|--------|-------|\n"
        rows = [
            f"| {i} | {t.id} | {t.title} | {t.status.value} | {task_weight(t):g} |"
            for i, t in enumerate(result.critical_path, 1)
        ]
        output += AgentFormatter._truncate_table(rows, limit=len(rows))

        output += "\n\n## Analysis\n\n"
        output += f"- **Start with**: {result.critical_path[0].id}\n"
        if result.bottlenecks:
            shown = ", ".join(t.id for t in result.bottlenecks[:3])
            if len(result.bottlenecks) > 3:
                shown += f", +{len(result.bottlenecks) - 3} more"
            output += f"- **Bottlenecks**: {shown}\n"
        if result.starting_tasks:
            ready = ", ".join(t.id for t in result.starting_tasks[:5])
            if len(result.starting_tasks) > 5:
                ready += f", +{len(result.starting_tasks) - 5} more"
            output += f"- **Ready to start**: {ready}\n"

        return output.rstrip()

    # ============================================================================
    # format_impact
    # ============================================================================

    @staticmethod
    def format_impact(result: ImpactResult) -> str:
        """Format an impact analysis as structured markdown.

        Example output:
            # taskgraph deps impact A

            A impacts 3 tasks (1 direct, 2 indirect). Risk: MEDIUM.

            ## Dependents

            | ID | Title | Status | Pri |
            |----|-------|--------|-----|
            | B | Build | todo | 0 |
        """
        task = result.task
        heading = f"# taskgraph deps impact {task.id}"
        summary = (
            f"{task.id} impacts {AgentFormatter._plural(result.total_impact, 'task')} "
            f"({len(result.direct_dependents)} direct, "
            f"{len(result.indirect_dependents)} indirect). "
            f"Risk: {result.risk_level.value}."
        )
        output = f"{heading}\n\n{summary}\n\n"

        if result.total_impact == 0:
            return output.rstrip()

        dependents = [*result.direct_dependents, *result.indirect_dependents]
        output += "## Dependents\n\n"
        output += "| ID | Title | Status | Pri |\n"
        output += "|----|-------|--------|-----|\n"
        output += AgentFormatter._truncate_table(
            AgentFormatter._task_rows(dependents), total=len(dependents)
        )

        output += "\n\n## Analysis\n\n"
        output += f"- **Would block**: {AgentFormatter._plural(result.would_block_count, 'task')}\n"
        for hint in result.recommendations:
            output += f"- **Recommendation**: {hint}\n"

        return output.rstrip()
