"""
Configuration for the tasks service.
"""

from urllib.parse import quote

from pydantic import Field

from shared.config import BaseConfig


class TasksConfig(BaseConfig):
    """Tasks service settings, read from DB_* and common environment variables."""

    # PostgreSQL connection
    db_host: str = Field(default="localhost", description="Database host")
    db_port: int = Field(default=5432, description="Database port")
    db_user: str = Field(default="postgres", description="Database user")
    db_password: str = Field(default="", description="Database password")
    db_name: str = Field(default="postgres", description="Database name")
    db_sslmode: str = Field(default="disable", description="libpq-style sslmode")

    # Pool
    db_pool_min_size: int = Field(default=2, ge=0)
    db_pool_max_size: int = Field(default=10, ge=1)
    db_command_timeout: float = Field(default=10.0, gt=0, description="Per-statement timeout in seconds")

    # Startup connection retry
    db_connect_attempts: int = Field(default=5, ge=1)
    db_connect_delay: float = Field(default=2.0, ge=0, description="Seconds between connection attempts")

    @property
    def dsn(self) -> str:
        """PostgreSQL connection URL assembled from the DB_* settings."""
        credentials = quote(self.db_user, safe="")
        if self.db_password:
            credentials = f"{credentials}:{quote(self.db_password, safe='')}"
        return (
            f"postgresql://{credentials}@{self.db_host}:{self.db_port}/"
            f"{quote(self.db_name, safe='')}?sslmode={self.db_sslmode}"
        )
