# src/kie_task_store/tasks/task_store.py

from __future__ import annotations

import asyncio
import logging
import os
import sqlite3
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .task_models import LoadOutcome, StoreState, Task, TaskStatus

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

DEFAULT_DB_DIR = ".kie-ai"
DEFAULT_DB_NAME = "tasks.db"

# updated_at always moves forward by at least this much, even within one clock tick.
_UPDATED_AT_STEP = 1e-6


class StoreDirectoryError(RuntimeError):
    """The directory holding the database file could not be created."""


class TaskStore:
    """
    SQLite task store persisted as a single snapshot file.

    The database lives in an in-memory connection:
    - lazily loaded from the file on first use (or started empty)
    - exported in full and written back after every mutation

    A file that exists but is not a usable database is replaced by an empty one
    (logged, not raised).

    Concurrency:
    - one asyncio.Lock per instance serializes init, reads and writes
    - several processes sharing one file are not supported
    """

    def __init__(self, db_path: str | Path | None = None) -> None:
        self._db_path = self.resolve_db_path(db_path)

        db_dir = self._db_path.parent
        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except OSError as err:
            logger.exception("Failed to create database directory %s", db_dir)
            raise StoreDirectoryError(f"Cannot create database directory: {db_dir}") from err

        self._conn: sqlite3.Connection | None = None
        self._state = StoreState.UNINITIALIZED
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> TaskStore:
        return cls(settings.db_path)

    @staticmethod
    def resolve_db_path(db_path: str | Path | None = None) -> Path:
        """Explicit path (relative to cwd) or ~/.kie-ai/tasks.db."""
        if db_path:
            return Path(db_path).expanduser().resolve()
        return (Path.home() / DEFAULT_DB_DIR / DEFAULT_DB_NAME).resolve()

    @property
    def db_path(self) -> Path:
        return self._db_path

    @property
    def state(self) -> StoreState:
        return self._state

    async def __aenter__(self) -> TaskStore:
        await self.ensure_initialized()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ---- low-level helpers ----

    @staticmethod
    def _new_conn() -> sqlite3.Connection:
        conn = sqlite3.connect(":memory:")
        conn.row_factory = sqlite3.Row
        return conn

    def _load_or_create(self) -> tuple[sqlite3.Connection, LoadOutcome]:
        if not self._db_path.exists():
            return self._new_conn(), LoadOutcome.CREATED_FRESH

        conn = self._new_conn()
        try:
            conn.deserialize(self._db_path.read_bytes())
            # deserialize() does not validate the image; the first read does.
            conn.execute("SELECT COUNT(*) FROM sqlite_master").fetchone()
        except Exception:
            conn.close()
            logger.warning(
                "Database file %s is not readable as a database; starting empty.",
                self._db_path,
                exc_info=True,
            )
            return self._new_conn(), LoadOutcome.RECOVERED_FRESH

        return conn, LoadOutcome.LOADED

    def _ensure_initialized(self) -> sqlite3.Connection:
        if self._state is StoreState.READY and self._conn is not None:
            return self._conn

        conn, outcome = self._load_or_create()
        self._conn = conn
        try:
            self._ensure_schema()
        except Exception:
            conn.close()
            self._conn = None
            raise
        self._state = StoreState.READY

        try:
            total = self._count(conn)
        except Exception:
            total = -1
        logger.info(
            "TaskStore ready db=%s outcome=%s total=%s", self._db_path, outcome.value, total
        )
        return conn

    def _ensure_schema(self) -> None:
        conn = self._conn
        if conn is None:
            return

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS tasks (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                task_id TEXT UNIQUE NOT NULL,
                api_type TEXT NOT NULL,
                status TEXT DEFAULT 'pending',
                created_at REAL NOT NULL,
                updated_at REAL NOT NULL,
                result_url TEXT,
                error_message TEXT
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_task_id ON tasks(task_id)")
        conn.execute("CREATE INDEX IF NOT EXISTS idx_status ON tasks(status)")
        conn.commit()

        # A freshly created file must not be left empty.
        self._flush()

    def _flush(self) -> None:
        """Write the full database image to disk (tmp file + os.replace)."""
        conn = self._conn
        if conn is None:
            return

        conn.commit()
        data = conn.serialize()
        tmp = self._db_path.with_name(self._db_path.name + ".tmp")
        try:
            tmp.write_bytes(data)
            os.replace(tmp, self._db_path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    @staticmethod
    def _count(conn: sqlite3.Connection) -> int:
        (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
        return int(n)

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            task_id=str(row["task_id"]),
            api_type=str(row["api_type"]),
            status=str(row["status"] or TaskStatus.PENDING),
            created_at=float(row["created_at"] or 0.0),
            updated_at=float(row["updated_at"] or 0.0),
            result_url=row["result_url"],
            error_message=row["error_message"],
        )

    # ---- public API ----

    async def ensure_initialized(self) -> None:
        """Open the database on first use. Safe to call any number of times."""
        async with self._lock:
            self._ensure_initialized()

    async def count_tasks(self) -> int:
        async with self._lock:
            conn = self._ensure_initialized()
            return self._count(conn)

    async def create_task(
        self,
        *,
        task_id: str,
        api_type: str,
        status: str = TaskStatus.PENDING,
        result_url: str | None = None,
        error_message: str | None = None,
    ) -> None:
        """
        Insert a new task.

        Raises sqlite3.IntegrityError if task_id already exists; the stored row
        is left as it was. Raises ValueError for an empty or blank task_id or
        api_type, which are rejected before any SQL runs.
        """
        if not task_id or not task_id.strip():
            raise ValueError("task_id is required")
        if not api_type or not api_type.strip():
            raise ValueError("api_type is required")

        status_value = str(status or TaskStatus.PENDING)

        async with self._lock:
            conn = self._ensure_initialized()
            now = time.time()
            try:
                conn.execute(
                    """
                    INSERT INTO tasks(
                        task_id, api_type, status,
                        created_at, updated_at,
                        result_url, error_message
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        task_id,
                        api_type,
                        status_value,
                        now,
                        now,
                        result_url or None,
                        error_message or None,
                    ),
                )
            except sqlite3.IntegrityError:
                conn.rollback()
                raise
            self._flush()

        logger.debug(
            "Task created task_id=%s api_type=%s status=%s", task_id, api_type, status_value
        )

    async def update_task(
        self,
        task_id: str,
        *,
        status: str | None = None,
        result_url: str | None = None,
        error_message: str | None = None,
    ) -> None:
        """
        Update the supplied fields of one task and refresh updated_at.

        Falsy values (None, "") count as "not supplied". When nothing is
        supplied the call does nothing. An unknown task_id matches no rows and
        is not an error.
        """
        fields: list[str] = []
        params: list[Any] = []

        if status:
            fields.append("status = ?")
            params.append(str(status))

        if result_url:
            fields.append("result_url = ?")
            params.append(result_url)

        if error_message:
            fields.append("error_message = ?")
            params.append(error_message)

        if not fields:
            logger.debug("Task update skipped task_id=%s: no fields", task_id)
            return

        fields.append("updated_at = MAX(?, updated_at + ?)")
        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE task_id = ?"

        async with self._lock:
            conn = self._ensure_initialized()
            params.extend([time.time(), _UPDATED_AT_STEP, task_id])
            cur = conn.execute(sql, params)
            self._flush()

        logger.debug("Task updated task_id=%s rows=%s", task_id, cur.rowcount)

    async def get_task(self, task_id: str) -> Task | None:
        async with self._lock:
            conn = self._ensure_initialized()
            row = conn.execute("SELECT * FROM tasks WHERE task_id = ?", (task_id,)).fetchone()
        return self._row_to_task(row) if row is not None else None

    async def get_all_tasks(self, limit: int = 100) -> list[Task]:
        """Most recently created first."""
        async with self._lock:
            conn = self._ensure_initialized()
            rows = conn.execute(
                """
                SELECT *
                FROM tasks
                ORDER BY created_at DESC, id DESC
                    LIMIT ?
                """,
                (int(limit),),
            ).fetchall()
        return [self._row_to_task(r) for r in rows]

    async def get_tasks_by_status(self, status: str, limit: int = 50) -> list[Task]:
        async with self._lock:
            conn = self._ensure_initialized()
            rows = conn.execute(
                """
                SELECT *
                FROM tasks
                WHERE status = ?
                ORDER BY created_at DESC, id DESC
                    LIMIT ?
                """,
                (str(status), int(limit)),
            ).fetchall()
        return [self._row_to_task(r) for r in rows]

    async def close(self) -> None:
        """Flush and release the database. The next call re-opens the file."""
        async with self._lock:
            conn = self._conn
            if conn is None:
                return
            try:
                self._flush()
            finally:
                conn.close()
                self._conn = None
                self._state = StoreState.UNINITIALIZED

        logger.info("TaskStore closed db=%s", self._db_path)
