"""
Taskgraph CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console

from taskgraph import __version__
from taskgraph.cli import deps
from taskgraph.cli.errors import ExitCode, print_error
from taskgraph.core.config import load_config
from taskgraph.core.config.env import load_layered_env

# Create the main Typer app
app = typer.Typer(
    name="taskgraph",
    help="Task dependency graph and critical-path engine",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool = False, level: str = "WARNING") -> None:
    """
    Configure logging for all commands.

    Args:
        debug: If True, enable DEBUG level logging regardless of config
        level: Level name used when debug is off
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else getattr(logging, level, logging.WARNING),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    db: Path | None = typer.Option(
        None,
        "--db",
        help="SQLite database to use instead of the configured store",
    ),
) -> None:
    """
    Taskgraph - blocking dependencies between tasks.

    Keeps the graph of blocking dependencies acyclic and answers questions
    about it: what is the longest chain of work, what does a task hold up,
    and what does the whole graph look like.

    Common Workflows:
        taskgraph deps add t-2 t-1          # t-2 waits for t-1
        taskgraph deps critical-path        # Longest chain of work
        taskgraph deps impact t-1           # Everything t-1 holds up
        taskgraph deps graph -f dot         # Graphviz output
    """
    # Load layered env files before config so TASKGRAPH_* vars apply.
    # Precedence: OS env > project .env > user .env
    load_layered_env()

    try:
        config = load_config()
    except ValidationError as e:
        print_error(
            "Invalid configuration",
            reason=f"{e.error_count()} validation error(s) in .taskgraph.json or TASKGRAPH_*",
            solution="Fix or remove the offending setting",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    setup_logging(debug, config.logging.level)

    # Store global options in context for subcommands
    ctx.obj = {"debug": debug, "db": db}


app.add_typer(deps.app, name="deps")


@app.command()
def version() -> None:
    """Show taskgraph version and exit."""
    console.print(f"taskgraph version {__version__}")
    raise typer.Exit(0)


__all__ = ["app", "setup_logging"]
