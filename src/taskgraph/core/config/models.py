"""
Configuration data models for taskgraph.

These models define the structure of .taskgraph.json and
~/.config/taskgraph/config.json files, with validation and type safety via
Pydantic.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskgraph.core.graph.render import GraphFormat


class StoreConfig(BaseModel):
    """
    Where task snapshots and dependency edges are read from.
    """
    backend: str = Field(
        default="sqlite",
        pattern="^(sqlite|memory)$",
        description="Task store implementation: 'sqlite' or 'memory'"
    )
    path: str = Field(
        default=".taskgraph/tasks.db",
        description="SQLite database path, relative to the project directory"
    )
    timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="How long a writer waits for another writer's lock"
    )


class RenderConfig(BaseModel):
    """
    Defaults for `taskgraph deps graph`.
    """
    format: GraphFormat = Field(
        default=GraphFormat.TREE,
        description="Default visualization format: tree, ascii or dot"
    )
    show_task_details: bool = Field(
        default=False,
        description="Include id, status, estimate and due date in visualizations"
    )


class LoggingConfig(BaseModel):
    """
    Logging level used when --debug is not given.
    """
    level: str = Field(
        default="WARNING",
        description="Python logging level name"
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid logging level '{v}'")
        return level


class TaskGraphConfig(BaseModel):
    """
    Complete taskgraph configuration.

    Merged from defaults, user config, project config and environment
    variables (in increasing precedence).
    """
    model_config = ConfigDict(extra="ignore")

    store: StoreConfig = Field(default_factory=StoreConfig)
    render: RenderConfig = Field(default_factory=RenderConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
