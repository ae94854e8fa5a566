"""
Consolidated exception system with error codes, context, and correlation support.

This module provides a unified exception hierarchy for the package, with
automatic logging and correlation ID tracking. Each error carries the HTTP
status the API surface maps it to, so callers can tell "your request was
invalid" apart from "our infrastructure is down".
"""

import threading
import traceback
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

_thread_local = threading.local()


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # System errors (1xxx)
    INTERNAL_ERROR = "1000"
    DATABASE_ERROR = "1001"
    CONNECTION_ERROR = "1002"
    CONFIGURATION_ERROR = "1003"
    TIMEOUT_ERROR = "1004"

    # Validation errors (2xxx)
    VALIDATION_FAILED = "2000"
    INVALID_FORMAT = "2001"
    MISSING_REQUIRED = "2002"
    TYPE_MISMATCH = "2003"

    # Resource errors (3xxx)
    NOT_FOUND = "3000"
    DUPLICATE = "3001"
    CONFLICT = "3002"
    EXPIRED = "3004"
    LIMIT_EXCEEDED = "3005"

    # Business logic errors (4xxx)
    BUSINESS_RULE_VIOLATION = "4000"
    PERMISSION_DENIED = "4003"
    PRECONDITION_FAILED = "4004"
    INSUFFICIENT_SCOPE = "4005"
    INVALID_TOKEN = "4006"

    # External service errors (5xxx)
    QUEUE_ERROR = "5001"
    EXTERNAL_API_ERROR = "5002"
    INTEGRATION_ERROR = "5003"
    DOWNSTREAM_ERROR = "5004"


class BaseError(Exception):
    """Base exception with context, error codes, logging, and error chaining."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context: Any,
    ):
        """
        Initialize base error with rich context.

        Args:
            message: Human-readable error message
            error_code: Standardized error code from ErrorCode enum
            status_code: HTTP status code for API responses
            cause: Original exception that caused this error
            **context: Additional context information
        """
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.error_id = str(uuid.uuid4())
        self.context = context

        correlation_id = get_correlation_id()
        if correlation_id:
            self.context["correlation_id"] = correlation_id

        self.context["error_id"] = self.error_id

        if cause:
            self.context["cause"] = {
                "type": type(cause).__name__,
                "message": str(cause),
                "traceback": traceback.format_exception(type(cause), cause, cause.__traceback__),
            }

        self._log_error()

        super().__init__(message)

    def _log_error(self) -> None:
        """Log error with appropriate level based on status code."""
        # Lazy import, the logger module depends on config which imports nothing from here
        from .utils.logger import get_logger

        logger = get_logger()

        log_data = {
            "error_id": self.error_id,
            "error_code": self.error_code.value,
            "status_code": self.status_code,
            "error_message": self.message,
            "timestamp": self.timestamp,
            "context": {k: v for k, v in self.context.items() if k not in ["cause", "traceback"]},
        }

        if "correlation_id" in self.context:
            log_data["correlation_id"] = self.context["correlation_id"]

        if self.status_code >= 500:
            logger.error(f"Error {self.error_code}: {self.message}", extra=log_data)
        elif self.status_code >= 400:
            logger.warning(f"Client error {self.error_code}: {self.message}", extra=log_data)
        else:
            logger.info(f"Error {self.error_code}: {self.message}", extra=log_data)

    def to_dict(
        self, include_cause: bool = False, include_traceback: bool = False
    ) -> Dict[str, Any]:
        """
        Convert to dict for API responses.

        Args:
            include_cause: Include cause information (useful for debugging)
            include_traceback: Include full traceback (only in debug mode)

        Returns:
            Dictionary representation suitable for JSON serialization
        """
        result: Dict[str, Any] = {
            "error": {
                "id": self.error_id,
                "code": self.error_code.value,
                "message": self.message,
                "timestamp": self.timestamp,
                "context": {
                    k: v
                    for k, v in self.context.items()
                    if k not in ["cause", "error_id", "correlation_id"]
                },
            }
        }

        if "correlation_id" in self.context:
            result["error"]["correlation_id"] = self.context["correlation_id"]

        if include_cause and "cause" in self.context:
            result["error"]["cause"] = {
                "type": self.context["cause"]["type"],
                "message": self.context["cause"]["message"],
            }
            if include_traceback:
                result["error"]["cause"]["traceback"] = self.context["cause"]["traceback"]

        return result

    def add_context(self, **kwargs: Any) -> "BaseError":
        """
        Add additional context to the error (fluent interface).

        Returns:
            Self for method chaining
        """
        self.context.update(kwargs)
        return self


# Layer-specific base exceptions
class RepositoryError(BaseError):
    """Repository layer errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.DATABASE_ERROR,
        status_code: int = 500,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize repository error with database context."""
        super().__init__(message, error_code, status_code, cause, **context)


class ServiceError(BaseError):
    """Service layer errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        operation: Optional[str] = None,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize service error with operation context."""
        if operation:
            context["operation"] = operation
        super().__init__(message, error_code, 500, cause, **context)


class ValidationError(BaseError):
    """Malformed input; the caller must fix the request and retry."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_FAILED,
        cause: Optional[Exception] = None,
        description: Optional[str] = None,
        **context,
    ):
        """Initialize validation error with field context."""
        if field:
            context["field"] = field
        if description:
            context["description"] = description
        self.description = description
        super().__init__(message, error_code, 400, cause, **context)


class ExternalServiceError(BaseError):
    """External service integration errors."""

    def __init__(
        self,
        message: str,
        service_name: str,
        error_code: ErrorCode = ErrorCode.EXTERNAL_API_ERROR,
        status_code: int = 502,
        cause: Optional[Exception] = None,
        **context,
    ):
        """Initialize external service error with service context."""
        context["service_name"] = service_name
        super().__init__(message, error_code, status_code, cause, **context)


# ==================== PROVIDER AUTH EXCEPTIONS ====================


class InsufficientScopeError(BaseError):
    """Granted scopes do not cover any synced data category."""

    def __init__(
        self,
        message: str = (
            "The token must have permission for at least one of the features "
            "that are synced by the API."
        ),
        description: Optional[str] = None,
        **kwargs,
    ):
        if description:
            kwargs["description"] = description
        self.description = description
        super().__init__(
            message=message, error_code=ErrorCode.INSUFFICIENT_SCOPE, status_code=400, **kwargs
        )


class InvalidTokenError(BaseError):
    """The provider rejected the access token outright. Never retried."""

    def __init__(self, message: str = "The access token was rejected by the provider", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.INVALID_TOKEN, status_code=401, **kwargs
        )


class ProviderUnavailableError(ExternalServiceError):
    """Transient provider failure (network, rate limit, 5xx). Retry-eligible for syncs."""

    def __init__(
        self,
        message: str = "The wearable provider is temporarily unavailable",
        service_name: str = "provider",
        retry_after_seconds: Optional[int] = None,
        **kwargs,
    ):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(
            message,
            service_name=service_name,
            error_code=ErrorCode.EXTERNAL_API_ERROR,
            status_code=503,
            **kwargs,
        )


class MissingCredentialError(BaseError):
    """A sync was requested for a user that never linked a provider account."""

    def __init__(
        self,
        message: str = (
            "User does not have authentication data. "
            "Please, submit authentication data and try again."
        ),
        **kwargs,
    ):
        super().__init__(
            message=message, error_code=ErrorCode.PRECONDITION_FAILED, status_code=400, **kwargs
        )


class EventBusUnavailableError(BaseError):
    """Messaging infrastructure could not be reached during an operation."""

    def __init__(
        self,
        message: str = "Communication with the message bus cannot be performed.",
        description: str = "Probably, the message service is unavailable.",
        **kwargs,
    ):
        kwargs["description"] = description
        self.description = description
        super().__init__(message=message, error_code=ErrorCode.QUEUE_ERROR, status_code=503, **kwargs)


# ==================== TRANSPORT EXCEPTIONS ====================


class TransportUnavailableError(BaseError):
    """The transport itself (queue, RPC endpoint) could not be reached."""

    def __init__(self, message: str = "Transport unavailable", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.CONNECTION_ERROR, status_code=503, **kwargs
        )


class RemoteRejectedError(BaseError):
    """The transport was reachable but the remote side rejected the request."""

    def __init__(self, message: str = "Remote rejected the request", **kwargs):
        super().__init__(
            message=message, error_code=ErrorCode.DOWNSTREAM_ERROR, status_code=502, **kwargs
        )


# Factory functions for common error patterns
def not_found(
    resource_type: str, cause: Optional[Exception] = None, **identifiers
) -> RepositoryError:
    """
    Factory for not found errors.

    Args:
        resource_type: Type of resource (e.g., 'UserAuthData')
        cause: Original exception if any
        **identifiers: Resource identifiers (e.g., user_id='123')

    Returns:
        Configured RepositoryError instance with 404 status
    """
    id_parts = [f"{k}={v}" for k, v in identifiers.items()]
    message = f"{resource_type} not found"
    if id_parts:
        message += f": {', '.join(id_parts)}"

    return RepositoryError(
        message,
        error_code=ErrorCode.NOT_FOUND,
        status_code=404,
        cause=cause,
        resource_type=resource_type,
        **identifiers,
    )


# Correlation ID management
def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current thread."""
    _thread_local.correlation_id = correlation_id


def get_correlation_id() -> Optional[str]:
    """Get the current thread's correlation ID."""
    return getattr(_thread_local, "correlation_id", None)


def clear_correlation_id() -> None:
    """Clear the current thread's correlation ID."""
    if hasattr(_thread_local, "correlation_id"):
        delattr(_thread_local, "correlation_id")
