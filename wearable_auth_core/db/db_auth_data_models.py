"""
Credential Record storage model.

Just the data structure - behavior lives in the repository. The provider
sub-structure is flattened into ``provider_*`` columns so the provider-side
user id can be indexed for webhook reverse lookups.
"""

from sqlalchemy import Column, Index, Integer, String, Text

from .db_base import EncryptedBinary, TimestampMixin, UUIDMixin
from .db_config import Base


class UserAuthDataRecord(Base, UUIDMixin, TimestampMixin):
    """One linked provider credential per internal user."""

    __tablename__ = "user_auth_data"

    user_id = Column(String(64), nullable=False)

    provider_user_id = Column(String(64), nullable=True)
    provider_access_token = Column(EncryptedBinary, nullable=True)
    provider_refresh_token = Column(EncryptedBinary, nullable=True)
    provider_expires_in = Column(Integer, nullable=True)
    provider_scope = Column(Text, nullable=True)
    provider_token_type = Column(String(32), nullable=True)
    provider_status = Column(String(32), nullable=True)
    provider_last_sync = Column(String(64), nullable=True)

    __table_args__ = (
        Index("ix_user_auth_data_user_id", "user_id", unique=True),
        Index("ix_user_auth_data_provider_user_id", "provider_user_id"),
    )
