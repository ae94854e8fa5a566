"""
Constants and enums for the wearable auth core.

This module centralizes the magic strings used throughout the package
(scope tokens, subscription categories, queue names, environment variables)
to keep them consistent across services, clients and tests.
"""

from enum import Enum, Flag, auto


class TokenStatus(str, Enum):
    """Status of a linked provider access token."""

    VALID = "valid_token"
    INVALID = "invalid_token"
    EXPIRED = "expired_token"


class ScopeCapability(Flag):
    """Data categories a granted OAuth scope allows us to sync."""

    NONE = 0
    BODY = auto()
    ACTIVITIES = auto()
    SLEEP = auto()


class SubscriptionCategory(str, Enum):
    """Provider collection paths used for subscriptions and sync."""

    BODY = "body"
    ACTIVITIES = "activities"
    SLEEP = "sleep"


# Scope token -> (capability, category, subscription label). Order is the
# order subscriptions are issued in.
SCOPE_SUBSCRIPTIONS = (
    ("weight-scope", ScopeCapability.BODY, SubscriptionCategory.BODY, "BODY"),
    ("activity-scope", ScopeCapability.ACTIVITIES, SubscriptionCategory.ACTIVITIES, "ACTIVITIES"),
    ("sleep-scope", ScopeCapability.SLEEP, SubscriptionCategory.SLEEP, "SLEEP"),
)

BEARER_TOKEN_TYPE = "Bearer"


class QueueName(str, Enum):
    """Standard queue names used by the event bus."""

    DATA_SYNC = "data-sync-events"
    SUBSCRIPTIONS = "subscription-events"
    LOGS = "logs-queue"


class EventName(str, Enum):
    """Event names published on the event bus."""

    DATA_SYNC = "DataSync"
    DATA_SYNC_FAILED = "DataSyncFailed"
    LAST_SYNC = "LastSync"
    SUBSCRIPTION_REGISTERED = "SubscriptionRegistered"


class SyncStatus(str, Enum):
    """Outcome of a data synchronization."""

    SUCCESS = "success"
    FAILED = "failed"


class LogLevel(str, Enum):
    """Standard logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    AZURE_STORAGE_CONNECTION = "AzureWebJobsStorage"
    APP_ENV = "APP_ENV"
    LOG_LEVEL = "LOG_LEVEL"
    PROVIDER_API_URL = "PROVIDER_API_URL"
    PROVIDER_OAUTH_URL = "PROVIDER_OAUTH_URL"
    PROVIDER_CLIENT_ID = "PROVIDER_CLIENT_ID"
    PROVIDER_CLIENT_SECRET = "PROVIDER_CLIENT_SECRET"
    ACCOUNT_SERVICE_URL = "ACCOUNT_SERVICE_URL"
    ENCRYPTION_KEY = "ENCRYPTION_KEY"
    DEBUG = "DEBUG"


class Limits:
    """System limits and thresholds."""

    INITIAL_SYNC_ATTEMPTS = 3
    ON_DEMAND_SYNC_ATTEMPTS = 1
    RELAY_SYNC_ATTEMPTS = 1
    DEFAULT_INITIAL_WINDOW_DAYS = 30
    DEFAULT_WORKER_THREADS = 4


class Timeouts:
    """Timeout values in seconds."""

    EXTERNAL_API_CALL = 30
    DIRECTORY_CALL = 10
    QUEUE_CONNECTION = 5
    QUEUE_READ = 10
