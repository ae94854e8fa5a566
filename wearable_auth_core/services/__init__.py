"""Service layer for business logic."""

from .subscription_service import SubscriptionService
from .sync_service import SyncService
from .user_auth_data_service import UserAuthDataService

__all__ = [
    "SubscriptionService",
    "SyncService",
    "UserAuthDataService",
]
