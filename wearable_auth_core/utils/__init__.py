"""Utility modules for the wearable auth core."""

from .encryption_utils import decrypt_token, decrypt_value, encrypt_token, encrypt_value
from .json_utils import dumps, loads
from .logger import (
    AzureQueueHandler,
    ContextAwareLogger,
    CorrelationContextFilter,
    configure_logging,
    get_logger,
)
from .retry_utils import calculate_exponential_backoff

__all__ = [
    # Encryption utilities
    "encrypt_value",
    "decrypt_value",
    "encrypt_token",
    "decrypt_token",
    # JSON utilities
    "dumps",
    "loads",
    # Logging utilities
    "ContextAwareLogger",
    "CorrelationContextFilter",
    "AzureQueueHandler",
    "configure_logging",
    "get_logger",
    # Retry utilities
    "calculate_exponential_backoff",
]
