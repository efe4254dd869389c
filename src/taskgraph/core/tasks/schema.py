"""
SQLite schema for the task store.

Mirrors the host application's ``tasks`` and ``task_dependencies`` tables,
reduced to the columns the dependency engine reads.

Schema Design:
- tasks: task snapshots (status, priority, estimate, due date, board)
- task_dependencies: directed edges, one per (task, prerequisite) pair
- schema_info: version tracking for migrations
"""

import sqlite3

# Schema version for migrations
SCHEMA_VERSION = 1

TASK_STATUSES = ["todo", "in_progress", "done", "blocked", "archived"]

DEPENDENCY_TYPES = ["blocks", "relates_to", "duplicates"]


SCHEMA_DDL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_info (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    description TEXT
);

-- Task snapshots
CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,
    board_id TEXT NULL,
    title TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL DEFAULT 'todo'
        CHECK(status IN ('todo', 'in_progress', 'done', 'blocked', 'archived')),
    priority INTEGER NOT NULL DEFAULT 0,
    estimated_hours REAL NULL CHECK(estimated_hours IS NULL OR estimated_hours >= 0),
    due_date TEXT NULL,
    assignee TEXT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Dependency edges: task_id depends on depends_on_task_id
CREATE TABLE IF NOT EXISTS task_dependencies (
    id TEXT PRIMARY KEY,
    task_id TEXT NOT NULL,
    depends_on_task_id TEXT NOT NULL,
    dependency_type TEXT NOT NULL DEFAULT 'blocks'
        CHECK(dependency_type IN ('blocks', 'relates_to', 'duplicates')),
    created_at TEXT NOT NULL,
    metadata TEXT NULL,
    FOREIGN KEY (task_id) REFERENCES tasks(id) ON DELETE CASCADE,
    FOREIGN KEY (depends_on_task_id) REFERENCES tasks(id) ON DELETE CASCADE,
    UNIQUE(task_id, depends_on_task_id),
    CHECK(task_id != depends_on_task_id)
);

CREATE INDEX IF NOT EXISTS idx_tasks_board_id ON tasks(board_id);
CREATE INDEX IF NOT EXISTS idx_task_deps_task_id ON task_dependencies(task_id);
CREATE INDEX IF NOT EXISTS idx_task_deps_depends_on ON task_dependencies(depends_on_task_id);
CREATE INDEX IF NOT EXISTS idx_task_deps_type ON task_dependencies(dependency_type);
"""


def create_schema(conn: sqlite3.Connection) -> None:
    """
    Create the database schema.

    Idempotent - safe to call on an existing database.

    Args:
        conn: SQLite database connection
    """
    conn.executescript(SCHEMA_DDL)

    conn.execute(
        """
        INSERT OR REPLACE INTO schema_info (version, description)
        VALUES (?, ?)
        """,
        (SCHEMA_VERSION, "Tasks and task dependencies"),
    )

    conn.commit()


def get_schema_version(conn: sqlite3.Connection) -> int | None:
    """
    Get the current schema version from the database.

    Returns:
        Current schema version, or None if schema_info table doesn't exist
    """
    try:
        cursor = conn.execute("SELECT MAX(version) AS version FROM schema_info")
        row = cursor.fetchone()
    except sqlite3.OperationalError:
        # schema_info table doesn't exist
        return None
    if row is None:
        return None
    version = row["version"] if isinstance(row, dict) else row[0]
    return int(version) if version is not None else None


def needs_migration(conn: sqlite3.Connection) -> bool:
    """Check if the database is missing the current schema version."""
    current_version = get_schema_version(conn)
    return current_version is None or current_version < SCHEMA_VERSION
