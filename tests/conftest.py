"""
Shared test fixtures.

Provides an in-memory SQLite database manager and a deterministic
application configuration for every test.
"""

import pytest

from wearable_auth_core.config import (
    AppConfig,
    DirectoryConfig,
    LoggingConfig,
    ProviderConfig,
    QueueConfig,
    SecurityConfig,
    SyncConfig,
    reset_config,
    set_config,
)
from wearable_auth_core.db import DatabaseConfig, DatabaseManager, import_all_models
from wearable_auth_core.db.db_config import Base, initialize_db
from wearable_auth_core.exceptions import clear_correlation_id


@pytest.fixture(autouse=True)
def app_config():
    """Known configuration, independent of the developer's environment."""
    config = AppConfig(
        environment="test",
        queue=QueueConfig(connection_string="UseDevelopmentStorage=true"),
        provider=ProviderConfig(
            api_url="https://provider.test",
            oauth_url="https://provider.test/oauth2",
            client_id="client-id",
            client_secret="client-secret",
            timeout=5,
        ),
        directory=DirectoryConfig(base_url="http://accounts.test", timeout=5),
        sync=SyncConfig(
            initial_window_days=30, retry_backoff_base=2, retry_backoff_max=60, worker_threads=2
        ),
        logging=LoggingConfig(level="DEBUG"),
        security=SecurityConfig(encryption_key="test-encryption-key"),
    )
    set_config(config)
    yield config
    reset_config()
    clear_correlation_id()


@pytest.fixture(scope="session")
def db_config() -> DatabaseConfig:
    """Create SQLite in-memory database configuration for testing."""
    return DatabaseConfig(
        db_type="sqlite",
        database=":memory:",
        echo=False,
    )


@pytest.fixture(scope="session")
def db_manager(db_config: DatabaseConfig) -> DatabaseManager:
    """Create and initialize database manager with all models."""
    import_all_models()
    return initialize_db(db_config)


@pytest.fixture(scope="function")
def clean_db(db_manager: DatabaseManager) -> DatabaseManager:
    """Fresh tables for each test."""
    Base.metadata.drop_all(db_manager.engine)
    Base.metadata.create_all(db_manager.engine)
    yield db_manager
    Base.metadata.drop_all(db_manager.engine)


@pytest.fixture
def user_id() -> str:
    """Standard internal user id (object id format)."""
    return "5a62be07d6f33400146c9b61"


@pytest.fixture
def provider_user_id() -> str:
    """Standard provider-side user id."""
    return "7RX9PQ"
