"""Configuration management for the knowledge graph server.

Uses pydantic-settings for environment variable validation and type safety.
All configuration is loaded from environment variables (or a ``.env`` file)
with sensible defaults, so the server runs with no configuration at all.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Graph file storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="KG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    storage_path: Path | None = Field(
        default=None,
        description=(
            "Directory holding the graph file, or the graph file itself if it ends "
            "in .json. Defaults to the user's home directory."
        ),
    )
    storage_file_name: str = Field(
        default="knowledge-graph.json",
        description="File name used inside the storage directory",
    )
    save_retry_attempts: int = Field(
        default=3,
        ge=1,
        description="Total attempts for saves failing with a transient OS error",
    )
    save_retry_max_wait: float = Field(
        default=2.0,
        ge=0,
        description="Maximum backoff in seconds between save attempts",
    )

    @field_validator("storage_file_name")
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        """Ensure the file name is a bare name, not a path."""
        if not v or Path(v).name != v:
            raise ValueError("storage_file_name must be a plain file name")
        return v


class AppSettings(BaseSettings):
    """Application-level configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(
        default=False,
        alias="DEBUG",
        description="Enable debug mode",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    log_format: Literal["json", "console"] = Field(
        default="console",
        alias="LOG_FORMAT",
        description="Log output format: 'json' for production, 'console' for development",
    )
    app_name: str = Field(
        default="knowledge-graph-server",
        description="Application name for logging and identification",
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version",
    )
    run_mode: Literal["stdio", "http"] = Field(
        default="stdio",
        alias="KG_RUN_MODE",
        description="Transport: 'stdio' for MCP over stdio, 'http' for the HTTP gateway",
    )
    error_locale: Literal["ko", "en"] = Field(
        default="ko",
        alias="KG_ERROR_LOCALE",
        description="Locale of the secondary error message attached to failed tool calls",
    )
    api_host: str = Field(
        default="127.0.0.1",
        alias="API_HOST",
        description="Host to bind the HTTP gateway",
    )
    api_port: int = Field(
        default=8000,
        alias="API_PORT",
        description="Port to bind the HTTP gateway",
    )


class Settings(BaseSettings):
    """Main settings class that aggregates all configuration sections.

    Usage:
        from knowledge_graph_server.config import get_settings

        settings = get_settings()
        storage_dir = settings.storage.storage_path
        log_level = settings.app.log_level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    storage: StorageSettings = Field(default_factory=StorageSettings)
    app: AppSettings = Field(default_factory=AppSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings if needed.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
