"""
SQLite task store implementation.

Reads task snapshots and dependency edges from a SQLite database whose
layout follows the host application's schema (see ``schema.py``).

The connection follows SQLite best practices:
- WAL mode for concurrent readers alongside a writer
- Foreign key enforcement
- Row factory for dict-like access
- ``BEGIN IMMEDIATE`` transactions so read-validate-write sequences from
  different connections (threads or processes) are serialized

Usage:
    store = SqliteTaskStore(Path(".taskgraph/tasks.db"))
    with store.transaction():
        if store.get_dependency("t-2", "t-1") is None:
            store.insert_dependency(Dependency(task_id="t-2", depends_on_task_id="t-1"))
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from .errors import StoreError
from .models import Dependency, DependencyType, TaskNode
from .schema import create_schema, needs_migration
from .store import register_store

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"


def dict_factory(cursor: sqlite3.Cursor, row: tuple[Any, ...]) -> dict[str, Any]:
    """
    Row factory that returns rows as dictionaries.

    Enables ``row["column_name"]`` instead of positional access.
    """
    fields = [column[0] for column in cursor.description]
    return dict(zip(fields, row))


def configure_connection(conn: sqlite3.Connection, *, wal: bool = True) -> None:
    """
    Configure a SQLite connection.

    Settings applied:
    - WAL mode (file databases only)
    - Foreign keys enforced
    - dict_factory rows
    """
    if wal:
        conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = dict_factory


def _row_to_task(row: dict[str, Any]) -> TaskNode:
    return TaskNode(
        id=row["id"],
        title=row["title"] or "",
        status=row["status"],
        priority=row["priority"] or 0,
        estimated_hours=row["estimated_hours"],
        due_date=row["due_date"],
        board_id=row["board_id"],
        assignee=row["assignee"],
    )


def _row_to_dependency(row: dict[str, Any]) -> Dependency:
    metadata = json.loads(row["metadata"]) if row["metadata"] else None
    return Dependency(
        id=row["id"],
        task_id=row["task_id"],
        depends_on_task_id=row["depends_on_task_id"],
        dependency_type=row["dependency_type"],
        created_at=row["created_at"],
        metadata=metadata,
    )


@register_store("sqlite")
class SqliteTaskStore:
    """
    Task store backed by a SQLite database file.

    One connection is shared by all threads of the process and guarded by a
    re-entrant lock. ``transaction()`` holds that lock for the whole block
    and opens the SQLite transaction with ``BEGIN IMMEDIATE``, which takes
    the database write lock up front; a second writer (another store
    instance or another process) waits until the first commits.

    Example:
        >>> store = SqliteTaskStore()  # in-memory database
        >>> store.save_task(TaskNode(id="t-1", title="Design schema"))
        >>> store.list_tasks()
    """

    def __init__(self, db_path: Path | str = MEMORY_DB, timeout: float = 5.0) -> None:
        """
        Open (and if needed create) the database.

        Args:
            db_path: Path to the database file, or ":memory:"
            timeout: Seconds to wait for another writer's lock
        """
        self.db_path = db_path if db_path == MEMORY_DB else Path(db_path)
        is_file = isinstance(self.db_path, Path)
        if is_file:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # isolation_level=None: autocommit, transactions are opened explicitly
        conn: sqlite3.Connection | None = None
        try:
            conn = sqlite3.connect(
                str(self.db_path),
                timeout=timeout,
                isolation_level=None,
                check_same_thread=False,
            )
            configure_connection(conn, wal=is_file)
            if needs_migration(conn):
                create_schema(conn)
        except sqlite3.Error as e:
            if conn is not None:
                conn.close()
            logger.error(f"Could not open task store {self.db_path}: {e}")
            raise StoreError(f"Failed to open task store {self.db_path}: {e}") from e
        self._conn = conn

        self._lock = threading.RLock()
        self._tx_depth = 0

    @property
    def store_name(self) -> str:
        return "sqlite"

    def close(self) -> None:
        """Close the underlying connection."""
        with self._lock:
            self._conn.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _query(self, sql: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                logger.error(f"Query failed on {self.db_path}: {e}")
                raise StoreError(f"Failed to read task store: {e}") from e

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> int:
        with self._lock:
            try:
                return self._conn.execute(sql, params).rowcount
            except sqlite3.Error as e:
                logger.error(f"Write failed on {self.db_path}: {e}")
                raise StoreError(f"Failed to write task store: {e}") from e

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[SqliteTaskStore]:
        """
        Serialize a read-validate-write sequence.

        Nested calls join the outer transaction.
        """
        with self._lock:
            if self._tx_depth > 0:
                self._tx_depth += 1
                try:
                    yield self
                finally:
                    self._tx_depth -= 1
                return

            try:
                self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise StoreError(f"Failed to open transaction: {e}") from e
            self._tx_depth = 1
            try:
                yield self
            except BaseException:
                if self._conn.in_transaction:
                    self._conn.execute("ROLLBACK")
                raise
            else:
                try:
                    self._conn.execute("COMMIT")
                except sqlite3.Error as e:
                    raise StoreError(f"Failed to commit transaction: {e}") from e
            finally:
                self._tx_depth = 0

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def list_tasks(self, board_id: str | None = None) -> list[TaskNode]:
        if board_id is None:
            rows = self._query("SELECT * FROM tasks ORDER BY id")
        else:
            rows = self._query("SELECT * FROM tasks WHERE board_id = ? ORDER BY id", (board_id,))
        return [_row_to_task(row) for row in rows]

    def get_task(self, task_id: str) -> TaskNode | None:
        rows = self._query("SELECT * FROM tasks WHERE id = ?", (task_id,))
        return _row_to_task(rows[0]) if rows else None

    def get_tasks(self, task_ids: Iterable[str]) -> list[TaskNode]:
        ids = sorted(set(task_ids))
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = self._query(
            f"SELECT * FROM tasks WHERE id IN ({placeholders}) ORDER BY id", tuple(ids)
        )
        return [_row_to_task(row) for row in rows]

    def save_task(self, task: TaskNode) -> TaskNode:
        self._execute(
            """
            INSERT INTO tasks (id, board_id, title, status, priority,
                               estimated_hours, due_date, assignee)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                board_id = excluded.board_id,
                title = excluded.title,
                status = excluded.status,
                priority = excluded.priority,
                estimated_hours = excluded.estimated_hours,
                due_date = excluded.due_date,
                assignee = excluded.assignee,
                updated_at = CURRENT_TIMESTAMP
            """,
            (
                task.id,
                task.board_id,
                task.title,
                task.status.value,
                task.priority,
                task.estimated_hours,
                task.due_date.isoformat() if task.due_date else None,
                task.assignee,
            ),
        )
        return task

    # ------------------------------------------------------------------
    # Dependencies
    # ------------------------------------------------------------------

    def list_dependencies(
        self,
        board_id: str | None = None,
        dependency_types: Iterable[DependencyType] | None = None,
    ) -> list[Dependency]:
        clauses: list[str] = []
        params: list[Any] = []

        if board_id is not None:
            clauses.append(
                "(task_id IN (SELECT id FROM tasks WHERE board_id = ?)"
                " OR depends_on_task_id IN (SELECT id FROM tasks WHERE board_id = ?))"
            )
            params.extend([board_id, board_id])

        if dependency_types is not None:
            types = [DependencyType(t).value for t in dependency_types]
            if not types:
                return []
            clauses.append(f"dependency_type IN ({', '.join('?' for _ in types)})")
            params.extend(types)

        sql = "SELECT * FROM task_dependencies"
        if clauses:
            sql += " WHERE " + " AND ".join(clauses)
        sql += " ORDER BY created_at, id"

        return [_row_to_dependency(row) for row in self._query(sql, tuple(params))]

    def get_dependency(self, task_id: str, depends_on_task_id: str) -> Dependency | None:
        rows = self._query(
            "SELECT * FROM task_dependencies WHERE task_id = ? AND depends_on_task_id = ?",
            (task_id, depends_on_task_id),
        )
        return _row_to_dependency(rows[0]) if rows else None

    def insert_dependency(self, dependency: Dependency) -> Dependency:
        self._execute(
            """
            INSERT INTO task_dependencies
                (id, task_id, depends_on_task_id, dependency_type, created_at, metadata)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                dependency.id,
                dependency.task_id,
                dependency.depends_on_task_id,
                dependency.dependency_type.value,
                dependency.created_at.isoformat(),
                json.dumps(dependency.metadata) if dependency.metadata is not None else None,
            ),
        )
        logger.debug(
            f"Inserted dependency {dependency.task_id} -> {dependency.depends_on_task_id} "
            f"({dependency.dependency_type.value})"
        )
        return dependency

    def delete_dependency(self, task_id: str, depends_on_task_id: str) -> bool:
        removed = self._execute(
            "DELETE FROM task_dependencies WHERE task_id = ? AND depends_on_task_id = ?",
            (task_id, depends_on_task_id),
        )
        return removed > 0
