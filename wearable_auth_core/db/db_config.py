"""
Database settings and engine/session management for the credential store.

Production runs on PostgreSQL (pgcrypto encrypts the token columns);
development and tests run on SQLite, usually in memory.
"""

import os
from typing import Any, Dict, Optional

from pydantic import BaseModel
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..exceptions import ErrorCode, ValidationError
from ..utils import get_logger

# Base class for all SQLAlchemy models
Base: Any = declarative_base()

SQLITE_MEMORY = ":memory:"


class DatabaseConfig(BaseModel):
    db_type: str = "postgres"
    database: str
    host: Optional[str] = None
    port: str = "5432"
    username: Optional[str] = None
    password: Optional[str] = None
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    echo: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.db_type.lower() == "sqlite"

    def get_connection_string(self) -> str:
        if self.is_sqlite:
            return f"sqlite:///{self.database}"
        if self.db_type.lower() != "postgres":
            raise ValidationError(
                f"Unsupported database type: {self.db_type}",
                field="db_type",
                error_code=ErrorCode.INVALID_FORMAT,
                value=self.db_type,
            )

        missing = [
            name for name in ("host", "database", "username", "password") if not getattr(self, name)
        ]
        if missing:
            raise ValidationError(
                "Missing required Postgres configuration parameters",
                field="database_config",
                error_code=ErrorCode.MISSING_REQUIRED,
                missing=missing,
            )
        return (
            f"postgresql://{self.username}:{self.password}@"
            f"{self.host}:{self.port}/{self.database}"
        )

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``create_engine`` suited to the backend."""
        if not self.is_sqlite:
            return {
                "pool_size": self.pool_size,
                "max_overflow": self.max_overflow,
                "pool_timeout": self.pool_timeout,
            }

        options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if self.database == SQLITE_MEMORY:
            # Background sync threads must see the same in-memory database
            options["poolclass"] = StaticPool
        return options

    def __repr__(self) -> str:
        return (
            f"DatabaseConfig(db_type='{self.db_type}', host='{self.host}', port='{self.port}', "
            f"database='{self.database}', username='{self.username}', password='***')"
        )


class DatabaseManager:
    """Owns the engine and hands out sessions to the repository."""

    def __init__(self, config: DatabaseConfig):
        self.config = config
        self.engine: Engine = create_engine(
            config.get_connection_string(), echo=config.echo, **config.engine_options()
        )
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)

    def create_tables(self) -> None:
        Base.metadata.create_all(self.engine)

    def get_session(self) -> Session:
        return self.session_factory()

    def close(self) -> None:
        self.engine.dispose()


def get_development_config() -> DatabaseConfig:
    """SQLite settings; ``DEV_DB_PATH`` selects a file instead of memory."""
    return DatabaseConfig(
        db_type="sqlite",
        database=os.environ.get("DEV_DB_PATH", SQLITE_MEMORY),
        echo=os.environ.get("DB_ECHO", "False").lower() == "true",
    )


def get_production_config() -> DatabaseConfig:
    """PostgreSQL settings from ``DB_*`` environment variables."""
    env = os.environ
    return DatabaseConfig(
        db_type="postgres",
        host=env.get("DB_HOST", "localhost"),
        port=env.get("DB_PORT", "5432"),
        database=env.get("DB_NAME", "wearable_auth"),
        username=env.get("DB_USER", "postgres"),
        password=env.get("DB_PASSWORD", ""),
        pool_size=int(env.get("DB_POOL_SIZE", "5")),
        max_overflow=int(env.get("DB_MAX_OVERFLOW", "10")),
        pool_timeout=int(env.get("DB_POOL_TIMEOUT", "30")),
        echo=env.get("DB_ECHO", "False").lower() == "true",
    )


def import_all_models():
    """Register every model with ``Base.metadata``."""
    from sqlalchemy.orm import configure_mappers

    from .db_auth_data_models import UserAuthDataRecord  # noqa

    configure_mappers()


def initialize_db(config: Optional[DatabaseConfig] = None) -> DatabaseManager:
    """
    Create a DatabaseManager and make sure the credential tables exist.

    Args:
        config: Database settings (default: production settings from the environment)
    """
    if config is None:
        config = get_production_config()

    get_logger().info(
        "Initializing database", extra={"db_type": config.db_type, "database": config.database}
    )
    manager = DatabaseManager(config)
    import_all_models()
    manager.create_tables()
    return manager
