"""
Unit tests for PostgresTaskStore against a mocked asyncpg pool.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from shared.errors import StoreError
from service_tasks.app.models import Task
from service_tasks.app.persistence.postgres import PostgresTaskStore


REPORT_TASK = Task(title="Write report", description="Q3 summary", priority=2, start="09:00", end="10:00")


def _mock_pool(conn):
    """Pool whose acquire() yields the given connection."""
    pool = MagicMock()
    pool.acquire.return_value.__aenter__.return_value = conn
    pool.acquire.return_value.__aexit__.return_value = False
    pool.close = AsyncMock()
    return pool


class TestPostgresTaskStore:
    """Test cases for PostgresTaskStore."""

    @pytest.fixture
    def conn(self):
        return AsyncMock()

    @pytest.fixture
    def store(self, conn):
        store = PostgresTaskStore(
            "postgresql://postgres@localhost:5432/postgres",
            connect_attempts=3,
            connect_delay=0
        )
        store.pool = _mock_pool(conn)
        return store

    @pytest.mark.asyncio
    async def test_list_tasks(self, store, conn):
        conn.fetch.return_value = [
            {"id": "1", "title": "a", "description": "b", "priority": 1, "start": "s", "end": "e"},
            {"id": "2", "title": "c", "description": "", "priority": 0, "start": "", "end": ""},
        ]

        tasks = await store.list_tasks()

        assert [t.id for t in tasks] == ["1", "2"]
        assert tasks[0] == Task(id="1", title="a", description="b", priority=1, start="s", end="e")
        query = conn.fetch.await_args.args[0]
        assert "id::text" in query
        assert "ORDER BY tasks.id" in query

    @pytest.mark.asyncio
    async def test_list_tasks_skips_undecodable_rows(self, store, conn):
        conn.fetch.return_value = [
            {"id": "1", "title": None, "description": "b", "priority": 1, "start": "s", "end": "e"},
            {"id": "2", "title": "ok", "description": "", "priority": 3, "start": "", "end": ""},
        ]

        tasks = await store.list_tasks()

        assert [t.id for t in tasks] == ["2"]

    @pytest.mark.asyncio
    async def test_list_tasks_failure_raises_store_error(self, store, conn):
        conn.fetch.side_effect = ConnectionError("connection reset")

        with pytest.raises(StoreError) as exc_info:
            await store.list_tasks()

        assert exc_info.value.message == "connection reset"
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    @pytest.mark.asyncio
    async def test_create_task_returns_generated_id(self, store, conn):
        conn.fetchval.return_value = "17"

        task_id = await store.create_task(REPORT_TASK.model_copy(update={"id": "ignored"}))

        assert task_id == "17"
        args = conn.fetchval.await_args.args
        assert "RETURNING id::text" in args[0]
        assert args[1:] == ("Write report", "Q3 summary", 2, "09:00", "10:00")

    @pytest.mark.asyncio
    async def test_create_task_failure_raises_store_error(self, store, conn):
        conn.fetchval.side_effect = ConnectionError("gone")

        with pytest.raises(StoreError):
            await store.create_task(REPORT_TASK)

    @pytest.mark.asyncio
    async def test_update_task_matched(self, store, conn):
        conn.execute.return_value = "UPDATE 1"

        assert await store.update_task("7", REPORT_TASK) is True

        args = conn.execute.await_args.args
        assert args[1:] == ("Write report", "Q3 summary", 2, "09:00", "10:00", 7)

    @pytest.mark.asyncio
    async def test_update_task_unmatched_is_noop(self, store, conn):
        conn.execute.return_value = "UPDATE 0"

        assert await store.update_task("7", REPORT_TASK) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("task_id", ["abc", "1.5", "99999999999", "١", "1_0", " 1", "1\n"])
    async def test_non_row_ids_never_reach_database(self, store, conn, task_id):
        assert await store.update_task(task_id, REPORT_TASK) is False
        assert await store.delete_task(task_id) is False

        conn.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_task_failure_raises_store_error(self, store, conn):
        conn.execute.side_effect = ConnectionError("timeout")

        with pytest.raises(StoreError):
            await store.update_task("1", REPORT_TASK)

    @pytest.mark.asyncio
    async def test_delete_task(self, store, conn):
        conn.execute.return_value = "DELETE 1"

        assert await store.delete_task("3") is True
        assert conn.execute.await_args.args[1:] == (3,)

    @pytest.mark.asyncio
    async def test_delete_task_unmatched_is_noop(self, store, conn):
        conn.execute.return_value = "DELETE 0"

        assert await store.delete_task("3") is False

    @pytest.mark.asyncio
    async def test_delete_task_failure_raises_store_error(self, store, conn):
        conn.execute.side_effect = ConnectionError("timeout")

        with pytest.raises(StoreError):
            await store.delete_task("3")

    @pytest.mark.asyncio
    async def test_count_tasks(self, store, conn):
        conn.fetchval.return_value = 4

        assert await store.count_tasks() == 4

    @pytest.mark.asyncio
    async def test_health_check(self, store, conn):
        conn.fetchval.return_value = 1
        assert await store.health_check() is True

        conn.fetchval.side_effect = ConnectionError("down")
        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_health_check_without_pool(self):
        store = PostgresTaskStore("postgresql://postgres@localhost/postgres")

        assert await store.health_check() is False

    @pytest.mark.asyncio
    async def test_start_retries_until_database_ready(self, conn):
        store = PostgresTaskStore("postgresql://postgres@localhost/postgres", connect_attempts=3, connect_delay=0)
        pool = _mock_pool(conn)
        create_pool = AsyncMock(side_effect=[OSError("refused"), OSError("refused"), pool])

        with patch("service_tasks.app.persistence.postgres.asyncpg.create_pool", create_pool):
            await store.start()

        assert store.pool is pool
        assert create_pool.await_count == 3
        assert "CREATE TABLE IF NOT EXISTS tasks" in conn.execute.await_args.args[0]

    @pytest.mark.asyncio
    async def test_start_gives_up_after_attempts(self):
        store = PostgresTaskStore("postgresql://postgres@localhost/postgres", connect_attempts=2, connect_delay=0)
        create_pool = AsyncMock(side_effect=OSError("refused"))

        with patch("service_tasks.app.persistence.postgres.asyncpg.create_pool", create_pool):
            with pytest.raises(StoreError) as exc_info:
                await store.start()

        assert exc_info.value.message == "refused"
        assert create_pool.await_count == 2
        assert store.pool is None

    @pytest.mark.asyncio
    async def test_start_fails_when_table_cannot_be_created(self, conn):
        store = PostgresTaskStore("postgresql://postgres@localhost/postgres", connect_delay=0)
        conn.execute.side_effect = ConnectionError("permission denied")

        with patch("service_tasks.app.persistence.postgres.asyncpg.create_pool",
                   AsyncMock(return_value=_mock_pool(conn))):
            with pytest.raises(StoreError):
                await store.start()

    @pytest.mark.asyncio
    async def test_stop_closes_pool(self, store):
        pool = store.pool

        await store.stop()

        pool.close.assert_awaited_once()
        assert store.pool is None
