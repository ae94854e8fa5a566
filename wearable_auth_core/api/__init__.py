"""HTTP surface."""

from .http_handlers import AuthDataHttpHandlers, error_response, json_response

__all__ = [
    "AuthDataHttpHandlers",
    "error_response",
    "json_response",
]
