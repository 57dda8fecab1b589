"""
Shared configuration management for DayOrg services.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment name")
    log_level: str = Field(default="info", description="Root log level")

    # Server
    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8080, description="Bind port")
    keep_alive_timeout: int = Field(default=5, description="Idle connection timeout in seconds")

    # Error surfacing
    expose_error_details: bool = Field(
        default=True,
        description="Return raw backend error text to clients"
    )
