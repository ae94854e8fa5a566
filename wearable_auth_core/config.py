"""
Centralized configuration management for the wearable auth core.

This module provides a unified configuration system with support for:
- Environment variables
- Provider, directory and queue endpoints
- Sync retry tuning
- Validation using Pydantic
"""

import os
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from .constants import EnvironmentVariable, Limits, LogLevel, QueueName, Timeouts


class QueueConfig(BaseModel):
    """Queue configuration for Azure Storage Queues."""

    connection_string: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.AZURE_STORAGE_CONNECTION.value, ""),
        description="Azure Storage connection string",
    )
    data_sync_queue_name: str = Field(
        default=QueueName.DATA_SYNC.value, description="Queue receiving sync events"
    )
    subscription_queue_name: str = Field(
        default=QueueName.SUBSCRIPTIONS.value, description="Queue receiving subscription events"
    )
    message_ttl_seconds: int = Field(
        default=604800, description="Time-to-live for published messages in seconds"
    )


class ProviderConfig(BaseModel):
    """Wearable provider Web API configuration."""

    api_url: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.PROVIDER_API_URL.value, "https://api.fitbit.com"
        ),
        description="Base URL of the provider Web API",
    )
    oauth_url: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.PROVIDER_OAUTH_URL.value, "https://api.fitbit.com/oauth2"
        ),
        description="Base URL of the provider OAuth endpoints",
    )
    client_id: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.PROVIDER_CLIENT_ID.value, ""),
        description="OAuth client id",
    )
    client_secret: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.PROVIDER_CLIENT_SECRET.value, ""),
        description="OAuth client secret",
    )
    timeout: int = Field(
        default=Timeouts.EXTERNAL_API_CALL, description="Request timeout in seconds"
    )


class DirectoryConfig(BaseModel):
    """Internal account service (user directory) configuration."""

    base_url: str = Field(
        default_factory=lambda: os.getenv(
            EnvironmentVariable.ACCOUNT_SERVICE_URL.value, "http://localhost:3001"
        ),
        description="Base URL of the account service",
    )
    timeout: int = Field(default=Timeouts.DIRECTORY_CALL, description="Request timeout in seconds")


class SyncConfig(BaseModel):
    """Configuration for data synchronization behavior."""

    initial_window_days: int = Field(
        default=Limits.DEFAULT_INITIAL_WINDOW_DAYS,
        description="Days of history fetched when a user has never synced",
    )
    retry_backoff_base: int = Field(default=2, description="Base for exponential backoff (seconds)")
    retry_backoff_max: int = Field(default=60, description="Maximum backoff time (seconds)")
    worker_threads: int = Field(
        default=Limits.DEFAULT_WORKER_THREADS, description="Background worker pool size"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.LOG_LEVEL.value, LogLevel.INFO.value),
        description="Logging level",
    )
    enable_logs_queue: bool = Field(
        default=False, description="Ship logs to an Azure Storage Queue"
    )

    @field_validator("level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {level.value for level in LogLevel}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class SecurityConfig(BaseModel):
    """Security-related configuration."""

    encryption_key: Optional[str] = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.ENCRYPTION_KEY.value) or None,
        description="Symmetric key used by pgcrypto for token columns",
    )


class AppConfig(BaseModel):
    """Main application configuration."""

    environment: str = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.APP_ENV.value, "development"),
        description="Application environment",
    )
    debug: bool = Field(
        default_factory=lambda: os.getenv(EnvironmentVariable.DEBUG.value, "false").lower()
        == "true",
        description="Debug mode",
    )

    # Sub-configurations
    queue: QueueConfig = Field(default_factory=QueueConfig, description="Queue configuration")
    provider: ProviderConfig = Field(
        default_factory=ProviderConfig, description="Provider API configuration"
    )
    directory: DirectoryConfig = Field(
        default_factory=DirectoryConfig, description="User directory configuration"
    )
    sync: SyncConfig = Field(default_factory=SyncConfig, description="Sync configuration")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    security: SecurityConfig = Field(
        default_factory=SecurityConfig, description="Security configuration"
    )

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create configuration from environment variables."""
        return cls()

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() in ["production", "prod"]


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance."""
    global _config
    _config = None
