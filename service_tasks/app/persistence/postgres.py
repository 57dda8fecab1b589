"""
PostgreSQL persistence layer for the tasks service.
"""

import re
from typing import List, Optional

import asyncpg
from pydantic import ValidationError

from shared.errors import StoreError
from shared.logging import get_logger
from shared.retry import RetryConfig, RetryError, retry_on_exception
from ..models import Task

CREATE_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS tasks (
        id SERIAL PRIMARY KEY,
        title TEXT,
        description TEXT,
        priority INT,
        start_time TEXT,
        end_time TEXT
    )
"""

SELECT_TASKS_SQL = """
    SELECT id::text AS id, title, description, priority,
           start_time AS start, end_time AS "end"
    FROM tasks
    ORDER BY tasks.id
"""

INSERT_TASK_SQL = """
    INSERT INTO tasks (title, description, priority, start_time, end_time)
    VALUES ($1, $2, $3, $4, $5)
    RETURNING id::text
"""

UPDATE_TASK_SQL = """
    UPDATE tasks
    SET title = $1, description = $2, priority = $3, start_time = $4, end_time = $5
    WHERE id = $6
"""

DELETE_TASK_SQL = "DELETE FROM tasks WHERE id = $1"

# Range of the SERIAL (int4) primary key
SERIAL_MIN = -2 ** 31
SERIAL_MAX = 2 ** 31 - 1

# Ids are handed out as plain ASCII decimal text
ROW_ID_PATTERN = re.compile(r"[+-]?[0-9]+")

# Errors worth retrying while the database container is still coming up
CONNECT_ERRORS = (OSError, asyncpg.PostgresError, asyncpg.InterfaceError)


class PostgresTaskStore:
    """Task store backed by a single PostgreSQL table.

    Each operation is one independent statement; nothing spans a
    transaction.
    """

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 10,
                 command_timeout: float = 10.0, connect_attempts: int = 5,
                 connect_delay: float = 2.0):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self.retry_config = RetryConfig(max_attempts=connect_attempts, delay=connect_delay)
        self.logger = get_logger("tasks.persistence.postgres")
        self.pool: Optional[asyncpg.Pool] = None

    async def start(self):
        """Open the pool, waiting for the database, and ensure the table exists."""
        connect = retry_on_exception(CONNECT_ERRORS, self.retry_config)(self._open_pool)
        try:
            self.pool = await connect()
        except RetryError as e:
            self.logger.error("Could not connect to database", error=str(e.last_exception))
            raise StoreError(str(e.last_exception)) from e

        try:
            await self._create_tables()
        except Exception as e:
            self.logger.error("Could not initialize database table", error=str(e))
            raise StoreError(str(e)) from e

        self.logger.info("PostgreSQL persistence started")

    async def stop(self):
        """Stop the persistence layer."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            self.logger.info("PostgreSQL persistence stopped")

    async def _open_pool(self) -> asyncpg.Pool:
        return await asyncpg.create_pool(
            self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=self.command_timeout
        )

    async def _create_tables(self):
        async with self.pool.acquire() as conn:
            await conn.execute(CREATE_TABLE_SQL)

    async def list_tasks(self) -> List[Task]:
        """Load every stored task.

        A row that cannot be decoded into a Task is logged and skipped; the
        rest of the listing is still returned.
        """
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch(SELECT_TASKS_SQL)
        except Exception as e:
            self.logger.error("Error listing tasks", error=str(e))
            raise StoreError(str(e)) from e

        tasks = []
        for row in rows:
            if any(value is None for value in row.values()):
                self.logger.warning("Skipping task row with NULL column", row_id=row["id"])
                continue
            try:
                tasks.append(Task.model_validate(dict(row)))
            except ValidationError as e:
                self.logger.warning("Skipping undecodable task row", row_id=row["id"], error=str(e))
        return tasks

    async def create_task(self, task: Task) -> str:
        """Insert a task and return its generated id."""
        try:
            async with self.pool.acquire() as conn:
                task_id = await conn.fetchval(
                    INSERT_TASK_SQL,
                    task.title, task.description, task.priority, task.start, task.end
                )
        except Exception as e:
            self.logger.error("Error creating task", error=str(e))
            raise StoreError(str(e)) from e

        self.logger.info("Task created", task_id=task_id)
        return task_id

    async def update_task(self, task_id: str, task: Task) -> bool:
        """Overwrite the mutable fields of a task. Unknown ids are a no-op."""
        row_id = _parse_row_id(task_id)
        if row_id is None:
            self.logger.info("Task not found for update", task_id=task_id)
            return False

        try:
            async with self.pool.acquire() as conn:
                result = await conn.execute(
                    UPDATE_TASK_SQL,
                    task.title, task.description, task.priority, task.start, task.end, row_id
                )
        except Exception as e:
            self.logger.error("Error updating task", task_id=task_id, error=str(e))
            raise StoreError(str(e)) from e

        matched = _affected_rows(result) > 0
        if matched:
            self.logger.info("Task updated", task_id=task_id)
        else:
            self.logger.info("Task not found for update", task_id=task_id)
        return matched

    async def delete_task(self, task_id: str) -> bool:
        """Delete a task. Unknown ids are a no-op."""
        row_id = _parse_row_id(task_id)
        if row_id is None:
            self.logger.info("Task not found for deletion", task_id=task_id)
            return False

        try:
            async with self.pool.acquire() as conn:
                result = await conn.execute(DELETE_TASK_SQL, row_id)
        except Exception as e:
            self.logger.error("Error deleting task", task_id=task_id, error=str(e))
            raise StoreError(str(e)) from e

        deleted = _affected_rows(result) > 0
        if deleted:
            self.logger.info("Task deleted", task_id=task_id)
        else:
            self.logger.info("Task not found for deletion", task_id=task_id)
        return deleted

    async def count_tasks(self) -> int:
        """Get total number of tasks."""
        try:
            async with self.pool.acquire() as conn:
                count = await conn.fetchval("SELECT COUNT(*) FROM tasks")
        except Exception as e:
            self.logger.error("Error counting tasks", error=str(e))
            raise StoreError(str(e)) from e
        return count or 0

    async def health_check(self) -> bool:
        """Check database health."""
        if self.pool is None:
            return False
        try:
            async with self.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
                return True
        except Exception as e:
            self.logger.warning("Database health check failed", error=str(e))
            return False


def _parse_row_id(task_id: str) -> Optional[int]:
    """Map a textual task id onto the integer key; None if it cannot match any row."""
    if not ROW_ID_PATTERN.fullmatch(task_id):
        return None
    row_id = int(task_id)
    if not SERIAL_MIN <= row_id <= SERIAL_MAX:
        return None
    return row_id


def _affected_rows(status: str) -> int:
    # asyncpg returns the command tag, e.g. "UPDATE 1" or "DELETE 0"
    try:
        return int(status.rsplit(" ", 1)[-1])
    except (AttributeError, ValueError):
        return 0
