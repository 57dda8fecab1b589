"""
Tasks service for DayOrg.
Create, list, update and delete tasks stored in PostgreSQL.
"""

from typing import Dict, Optional

from prometheus_client import CollectorRegistry

from shared.base_service import BaseService

from .config import TasksConfig
from .handlers import TaskHandler
from .persistence import PostgresTaskStore


class TasksService(BaseService):
    """Tasks service implementation."""

    def __init__(self, config: Optional[TasksConfig] = None, store=None,
                 registry: Optional[CollectorRegistry] = None):
        config = config or TasksConfig()
        self.store = store if store is not None else PostgresTaskStore(
            config.dsn,
            min_size=config.db_pool_min_size,
            max_size=config.db_pool_max_size,
            command_timeout=config.db_command_timeout,
            connect_attempts=config.db_connect_attempts,
            connect_delay=config.db_connect_delay,
        )
        super().__init__("tasks", config, registry)

        self.handler = TaskHandler(self.store, self.observability)
        self.handler.install(self.app)

    async def on_startup(self):
        """Connect the store and seed the active task gauge."""
        await self.store.start()
        self.metrics.set_gauge("active_tasks", await self.store.count_tasks())

    async def on_shutdown(self):
        await self.store.stop()

    async def _check_dependencies(self) -> Dict[str, str]:
        healthy = await self.store.health_check()
        return {"postgres": "ok" if healthy else "unavailable"}


def create_app():
    """Create FastAPI application."""
    service = TasksService()
    return service.app


def main():
    """Console entry point."""
    service = TasksService()
    service.run()


if __name__ == "__main__":
    main()
