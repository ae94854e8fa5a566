"""Repository layer for data access."""

from .auth_data_repository import AuthDataRepository

__all__ = [
    "AuthDataRepository",
]
