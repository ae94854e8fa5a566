"""
SQLAlchemy models and database configuration.
"""

from .db_auth_data_models import UserAuthDataRecord
from .db_base import EncryptedBinary, TimestampMixin, UUIDMixin, utc_now
from .db_config import (
    Base,
    DatabaseConfig,
    DatabaseManager,
    get_development_config,
    get_production_config,
    import_all_models,
    initialize_db,
)

__all__ = [
    # Base definitions
    "Base",
    "EncryptedBinary",
    "TimestampMixin",
    "UUIDMixin",
    "utc_now",
    # Configuration
    "DatabaseConfig",
    "DatabaseManager",
    "get_development_config",
    "get_production_config",
    "import_all_models",
    "initialize_db",
    # Models
    "UserAuthDataRecord",
]
