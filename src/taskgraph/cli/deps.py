"""
Taskgraph CLI - Dependency commands.

Visualize the blocking graph, find the critical path, measure the impact of
a task, and add or remove dependency edges. Every command loads a fresh
snapshot of the task store; nothing is cached between invocations.
"""

import json
from pathlib import Path

import typer
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.table import Table

from taskgraph.cli.errors import (
    ExitCode,
    print_error,
    print_graph_corrupted_error,
    report_error,
)
from taskgraph.core.config import load_config
from taskgraph.core.graph.render import GraphFormat, RenderOptions, TreeDirection
from taskgraph.core.services.agent_format import AgentFormatter
from taskgraph.core.services.dependencies import DependencyService
from taskgraph.core.tasks.errors import GraphCorruptedError, TaskGraphError
from taskgraph.core.tasks.models import (
    BulkDependencyOperation,
    Dependency,
    DependencyType,
    ImpactResult,
    RiskLevel,
)

console = Console()
app = typer.Typer(help="Analyze and manage task dependencies")

_RISK_STYLES = {
    RiskLevel.LOW: "green",
    RiskLevel.MEDIUM: "yellow",
    RiskLevel.HIGH: "red",
}


def _get_service(ctx: typer.Context) -> DependencyService:
    """Build a service from configuration, honouring the global --db option."""
    config = load_config()
    db_path = (ctx.obj or {}).get("db")
    if db_path:
        store = config.store.model_copy(update={"backend": "sqlite", "path": str(db_path)})
        config = config.model_copy(update={"store": store})
    return DependencyService.from_config(config)


def _fail(error: TaskGraphError) -> typer.Exit:
    return typer.Exit(report_error(error))


def _echo_json(data: object) -> None:
    typer.echo(json.dumps(data, indent=2))


def _print_text(text: str) -> None:
    # Rendered graphs contain literal brackets, so markup must stay off
    console.print(text.rstrip("\n"), markup=False, highlight=False, soft_wrap=True)


@app.command()
def graph(
    ctx: typer.Context,
    board: str | None = typer.Option(
        None,
        "--board",
        "-b",
        help="Only include tasks from this board",
    ),
    output_format: GraphFormat | None = typer.Option(
        None,
        "--format",
        "-f",
        help="Output format: tree, ascii, dot (default from config)",
    ),
    details: bool = typer.Option(
        False,
        "--details",
        "-d",
        help="Show id, status, estimate and due date for each task",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the rendering to a file instead of stdout",
    ),
    root: str | None = typer.Option(
        None,
        "--root",
        help="Render only the tree below this task",
    ),
    upstream: bool = typer.Option(
        False,
        "--upstream",
        help="Walk prerequisites instead of dependents (tree format)",
    ),
    critical: bool = typer.Option(
        False,
        "--critical",
        help="Emphasize the critical path (dot format)",
    ),
) -> None:
    """
    Visualize the dependency graph.

    Examples:
        taskgraph deps graph
        taskgraph deps graph --board web --format ascii --details
        taskgraph deps graph -f dot --critical -o deps.dot
    """
    config = load_config()
    options = RenderOptions(
        format=output_format or config.render.format,
        show_task_details=details or config.render.show_task_details,
        board_id=board,
        root_task_id=root,
        direction=TreeDirection.DEPENDENCIES if upstream else TreeDirection.DEPENDENTS,
    )

    try:
        text = _get_service(ctx).visualize(options, highlight_critical_path=critical)
    except TaskGraphError as e:
        raise _fail(e)

    if output is not None:
        output.write_text(text, encoding="utf-8")
        console.print(f"[green]Wrote {options.format.value} graph to[/green] {output}")
        return

    if options.format == GraphFormat.DOT:
        typer.echo(text, nl=False)
    else:
        _print_text(text)


@app.command("critical-path")
def critical_path(
    ctx: typer.Context,
    board: str | None = typer.Option(
        None,
        "--board",
        "-b",
        help="Only include tasks from this board",
    ),
    details: bool = typer.Option(
        False,
        "--details",
        "-d",
        help="Show id, status, estimate and due date for each task",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
    agent: bool = typer.Option(
        False,
        "--agent",
        help="Output in agent-friendly markdown format",
    ),
    dot: bool = typer.Option(
        False,
        "--dot",
        help="Output the whole graph as Graphviz DOT with the path highlighted",
    ),
) -> None:
    """
    Show the longest chain of dependent work.

    Done tasks are excluded. Tasks without an estimate count as one hour.

    Examples:
        taskgraph deps critical-path
        taskgraph deps critical-path --board web --json
        taskgraph deps critical-path --dot | dot -Tsvg > path.svg
    """
    try:
        service = _get_service(ctx)
        if dot:
            options = RenderOptions(format=GraphFormat.DOT, board_id=board)
            typer.echo(service.visualize(options, highlight_critical_path=True), nl=False)
            return
        result = service.find_critical_path(board_id=board)
    except TaskGraphError as e:
        raise _fail(e)

    # --agent wins over --json
    if agent:
        typer.echo(AgentFormatter.format_critical_path(result))
    elif json_output:
        _echo_json(result.model_dump(mode="json"))
    else:
        options = RenderOptions(format=GraphFormat.ASCII, show_task_details=details)
        _print_text(service.render_critical_path(result, options))


def _print_impact(result: ImpactResult) -> None:
    task = result.task
    style = _RISK_STYLES[result.risk_level]

    console.print(f"[bold]💥 Impact Analysis:[/bold] {task.title} ({task.id})", highlight=False)
    console.print(f"   Direct dependents:   {len(result.direct_dependents)}")
    console.print(f"   Indirect dependents: {len(result.indirect_dependents)}")
    console.print(f"   Total impact:        {result.total_impact}")
    console.print(f"   Would block:         {result.would_block_count}")
    console.print(f"   Risk level:          [{style}]{result.risk_level.value}[/{style}]")

    if result.total_impact:
        table = Table(show_header=True, header_style="bold")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Title")
        table.add_column("Status")
        table.add_column("Relation")
        for dependent in result.direct_dependents:
            table.add_row(dependent.id, dependent.title, dependent.status.value, "direct")
        for dependent in result.indirect_dependents:
            table.add_row(dependent.id, dependent.title, dependent.status.value, "indirect")
        console.print()
        console.print(table)

    for hint in result.recommendations:
        console.print(f"[yellow]💡 {hint}[/yellow]")


@app.command()
def impact(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task whose blast radius to compute"),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
    agent: bool = typer.Option(
        False,
        "--agent",
        help="Output in agent-friendly markdown format",
    ),
) -> None:
    """
    Show every task that transitively depends on TASK_ID.

    Examples:
        taskgraph deps impact t-12
        taskgraph deps impact t-12 --agent
    """
    try:
        result = _get_service(ctx).analyze_task_impact(task_id)
    except TaskGraphError as e:
        raise _fail(e)

    if agent:
        typer.echo(AgentFormatter.format_impact(result))
    elif json_output:
        _echo_json(result.model_dump(mode="json"))
    else:
        _print_impact(result)


@app.command()
def add(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Dependent task"),
    depends_on: str = typer.Argument(..., help="Task that must come first"),
    dependency_type: DependencyType = typer.Option(
        DependencyType.BLOCKS,
        "--type",
        "-t",
        help="Relationship: blocks, relates_to, duplicates",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Record that TASK_ID depends on DEPENDS_ON.

    Blocking edges that would create a cycle are rejected.

    Examples:
        taskgraph deps add t-2 t-1
        taskgraph deps add t-7 t-3 --type relates_to
    """
    try:
        dependency = _get_service(ctx).add_dependency(task_id, depends_on, dependency_type)
    except TaskGraphError as e:
        raise _fail(e)

    if json_output:
        _echo_json(dependency.model_dump(mode="json"))
    else:
        console.print(
            f"[green]Added:[/green] {task_id} → {depends_on} ({dependency_type.value})",
            highlight=False,
        )


@app.command()
def remove(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Dependent task"),
    depends_on: str = typer.Argument(..., help="Prerequisite task"),
) -> None:
    """
    Remove the dependency between two tasks.

    Examples:
        taskgraph deps remove t-2 t-1
    """
    try:
        _get_service(ctx).remove_dependency(task_id, depends_on)
    except TaskGraphError as e:
        raise _fail(e)

    console.print(f"[green]Removed:[/green] {task_id} → {depends_on}", highlight=False)


@app.command("list")
def list_dependencies(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task to inspect"),
    incoming: bool = typer.Option(
        False,
        "--incoming",
        help="Only show tasks that depend on TASK_ID",
    ),
    outgoing: bool = typer.Option(
        False,
        "--outgoing",
        help="Only show tasks TASK_ID depends on",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    List the dependency edges of a task.

    Without --incoming or --outgoing both directions are shown.

    Examples:
        taskgraph deps list t-2
        taskgraph deps list t-2 --incoming --json
    """
    show_both = incoming == outgoing

    try:
        service = _get_service(ctx)
        depends_on: list[Dependency] = (
            service.get_task_dependencies(task_id) if show_both or outgoing else []
        )
        dependents: list[Dependency] = (
            service.get_task_dependents(task_id) if show_both or incoming else []
        )
    except TaskGraphError as e:
        raise _fail(e)

    if json_output:
        _echo_json(
            {
                "task_id": task_id,
                "depends_on": [d.model_dump(mode="json") for d in depends_on],
                "dependents": [d.model_dump(mode="json") for d in dependents],
            }
        )
        return

    if not depends_on and not dependents:
        console.print(f"[dim]No dependencies for {task_id}[/dim]", highlight=False)
        return

    table = Table(title=f"Dependencies of {task_id}", show_header=True, header_style="bold")
    table.add_column("Direction")
    table.add_column("Task", style="cyan", no_wrap=True)
    table.add_column("Type")
    table.add_column("Created")
    for dep in depends_on:
        table.add_row(
            "depends on",
            dep.depends_on_task_id,
            dep.dependency_type.value,
            dep.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    for dep in dependents:
        table.add_row(
            "required by",
            dep.task_id,
            dep.dependency_type.value,
            dep.created_at.strftime("%Y-%m-%d %H:%M"),
        )
    console.print(table)


@app.command()
def bulk(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="JSON file with a list of {task_id, depends_on_task_id, action, dependency_type}",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output as JSON",
    ),
) -> None:
    """
    Apply many add/remove operations from a JSON file.

    Each operation succeeds or fails on its own; the command exits non-zero
    if any of them failed.

    Examples:
        taskgraph deps bulk ops.json
    """
    try:
        operations = TypeAdapter(list[BulkDependencyOperation]).validate_json(
            file.read_text(encoding="utf-8")
        )
    except ValidationError as e:
        print_error(
            f"Invalid bulk file: {file}",
            reason=f"{e.error_count()} validation error(s)",
            solution='Provide a JSON list like [{"task_id": "t-2", "depends_on_task_id": "t-1"}]',
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    try:
        result = _get_service(ctx).bulk_dependency_operations(operations)
    except TaskGraphError as e:
        raise _fail(e)

    if json_output:
        _echo_json(result.model_dump(mode="json"))
    else:
        console.print(
            f"[green]{len(result.successful)} succeeded[/green], "
            f"[red]{len(result.failed)} failed[/red]"
        )
        for outcome in result.failed:
            console.print(
                f"  [red]✗[/red] {outcome.action.value} "
                f"{outcome.task_id} → {outcome.depends_on_task_id}: {outcome.error}",
                highlight=False,
            )

    if result.failed:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.command()
def check(
    ctx: typer.Context,
    board: str | None = typer.Option(
        None,
        "--board",
        "-b",
        help="Only check tasks from this board",
    ),
) -> None:
    """
    Verify that the stored blocking graph has no cycles.

    Examples:
        taskgraph deps check
        taskgraph deps check --board web
    """
    try:
        service = _get_service(ctx)
        unordered = service.check_graph(board_id=board)
        stats = service.load_graph(board_id=board).stats
    except TaskGraphError as e:
        raise _fail(e)

    if unordered:
        print_graph_corrupted_error(GraphCorruptedError(unordered))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(
        f"[green]✓[/green] Dependency graph is acyclic "
        f"({stats['node_count']} tasks, {stats['edge_count']} dependencies)"
    )
