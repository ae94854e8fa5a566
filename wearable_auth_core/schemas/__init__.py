"""Pydantic schemas and input validators for the wearable auth core."""

from .auth_data_schema import (
    DataSync,
    ProviderAuthData,
    TokenPayload,
    UserAuthData,
    WebhookNotification,
    parse_scope_capabilities,
)
from .validators import CreateUserAuthDataValidator, ObjectIdValidator

__all__ = [
    "DataSync",
    "ProviderAuthData",
    "TokenPayload",
    "UserAuthData",
    "WebhookNotification",
    "parse_scope_capabilities",
    "CreateUserAuthDataValidator",
    "ObjectIdValidator",
]
