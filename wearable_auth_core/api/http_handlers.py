"""
Azure Functions HTTP handlers for the credential operations.

Handlers translate between ``func.HttpRequest``/``func.HttpResponse`` and the
orchestrator. Errors map to their BaseError status; 5xx bodies carry a generic
message so transport details never reach the caller.
"""

from typing import Any, Dict, List, Optional

import azure.functions as func
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import BaseError, ErrorCode, ValidationError, get_correlation_id, not_found
from ..schemas.auth_data_schema import ProviderAuthData, UserAuthData, WebhookNotification
from ..utils.json_utils import dumps
from ..utils.logger import get_logger

UNAVAILABLE_MESSAGE = "The service is temporarily unavailable. Please, try again later."


def json_response(body: Any, status_code: int = 200) -> func.HttpResponse:
    return func.HttpResponse(dumps(body), status_code=status_code, mimetype="application/json")


def error_response(error: Exception) -> func.HttpResponse:
    """Build the HTTP response for a failed operation."""
    if not isinstance(error, BaseError):
        get_logger().exception(
            "Unhandled error in HTTP handler", extra={"error_type": type(error).__name__}
        )
        return json_response(
            {
                "error": {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": UNAVAILABLE_MESSAGE,
                    "correlation_id": get_correlation_id(),
                }
            },
            status_code=500,
        )

    if error.status_code >= 500:
        body: Dict[str, Any] = {
            "error": {
                "id": error.error_id,
                "code": error.error_code.value,
                "message": UNAVAILABLE_MESSAGE,
            }
        }
        if "correlation_id" in error.context:
            body["error"]["correlation_id"] = error.context["correlation_id"]
        return json_response(body, status_code=error.status_code)

    body = error.to_dict()
    description = getattr(error, "description", None)
    if description:
        body["error"]["description"] = description
    return json_response(body, status_code=error.status_code)


def _json_body(req: func.HttpRequest) -> Any:
    try:
        return req.get_json()
    except ValueError as e:
        raise ValidationError("Request body must be valid JSON", field="body", cause=e)


def _auth_data_from_request(req: func.HttpRequest) -> UserAuthData:
    body = _json_body(req)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object", field="body")
    try:
        provider = ProviderAuthData(**body)
    except PydanticValidationError as e:
        raise ValidationError(
            "Request body has invalid fields",
            field="body",
            error_code=ErrorCode.INVALID_FORMAT,
            cause=e,
        )
    return UserAuthData(user_id=req.route_params.get("user_id"), provider=provider)


class AuthDataHttpHandlers:
    """Route handlers bound to a UserAuthDataService."""

    def __init__(self, service):
        self.service = service
        self.logger = get_logger()

    def link_credential_and_sync(self, req: func.HttpRequest) -> func.HttpResponse:
        """POST users/{user_id}/fitbit/auth[?init_sync=false]"""
        try:
            data = _auth_data_from_request(req)
            init_sync: Optional[str] = req.params.get("init_sync")
            result = self.service.link_credential_and_sync(
                data, init_sync if init_sync is not None else True
            )
            return json_response(result.to_json(), status_code=201)
        except Exception as e:
            return error_response(e)

    def link_credential(self, req: func.HttpRequest) -> func.HttpResponse:
        """PUT users/{user_id}/fitbit/auth"""
        try:
            result = self.service.link_credential(_auth_data_from_request(req))
            return json_response(result.to_json())
        except Exception as e:
            return error_response(e)

    def get_credential(self, req: func.HttpRequest) -> func.HttpResponse:
        """GET users/{user_id}/fitbit/auth"""
        try:
            provider = self.service.get_credential(req.route_params.get("user_id"))
            return json_response(provider.model_dump(mode="json", exclude_none=True))
        except Exception as e:
            return error_response(e)

    def revoke_credential(self, req: func.HttpRequest) -> func.HttpResponse:
        """POST users/{user_id}/fitbit/auth/revoke"""
        try:
            user_id = req.route_params.get("user_id")
            if not self.service.revoke_credential(user_id):
                raise not_found("UserAuthData", user_id=user_id)
            return func.HttpResponse(status_code=204)
        except Exception as e:
            return error_response(e)

    def request_sync(self, req: func.HttpRequest) -> func.HttpResponse:
        """POST users/{user_id}/fitbit/sync"""
        try:
            result = self.service.request_sync(req.route_params.get("user_id"))
            return json_response(result)
        except Exception as e:
            return error_response(e)

    def provider_notifications(self, req: func.HttpRequest) -> func.HttpResponse:
        """
        POST fitbit/notifications

        Accepts the provider's list of ``{collectionType, date, ownerId}``
        items and relays each one. Always answers 204 once parsed so the
        provider does not retry delivery.
        """
        try:
            body = _json_body(req)
            items: List[Any] = body if isinstance(body, list) else [body]
            try:
                notifications = [WebhookNotification.model_validate(item) for item in items]
            except PydanticValidationError as e:
                raise ValidationError(
                    "Notification payload is malformed",
                    field="body",
                    error_code=ErrorCode.INVALID_FORMAT,
                    cause=e,
                )

            for notification in notifications:
                self.service.relay_upstream_sync(
                    notification.owner_id, notification.collection_type, notification.date
                )

            self.logger.info("Provider notifications relayed", extra={"count": len(notifications)})
            return func.HttpResponse(status_code=204)
        except Exception as e:
            return error_response(e)
