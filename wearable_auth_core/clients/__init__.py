"""HTTP clients for the provider API and the internal account service."""

from .provider_client import ProviderClient
from .user_directory_client import UserDirectoryClient

__all__ = [
    "ProviderClient",
    "UserDirectoryClient",
]
