"""
Tests for the Azure Functions HTTP handlers.

The orchestrator is a Mock here; its behavior has its own tests.
"""

import json
from unittest.mock import Mock

import azure.functions as func
import pytest

from wearable_auth_core.api.http_handlers import (
    UNAVAILABLE_MESSAGE,
    AuthDataHttpHandlers,
    error_response,
)
from wearable_auth_core.constants import TokenStatus
from wearable_auth_core.exceptions import (
    EventBusUnavailableError,
    InsufficientScopeError,
    InvalidTokenError,
    MissingCredentialError,
    ProviderUnavailableError,
    ValidationError,
)
from wearable_auth_core.schemas.auth_data_schema import DataSync, ProviderAuthData, UserAuthData
from wearable_auth_core.services.user_auth_data_service import UserAuthDataService


def make_request(method="POST", body=None, route_params=None, params=None, raw_body=None):
    if raw_body is None:
        raw_body = json.dumps(body).encode() if body is not None else b""
    return func.HttpRequest(
        method=method,
        url="http://localhost/api/test",
        headers={"Content-Type": "application/json"},
        params=params or {},
        route_params=route_params or {},
        body=raw_body,
    )


def body_of(response: func.HttpResponse):
    return json.loads(response.get_body())


@pytest.fixture
def service():
    return Mock(spec=UserAuthDataService)


@pytest.fixture
def handlers(service):
    return AuthDataHttpHandlers(service)


@pytest.fixture
def linked(user_id):
    return UserAuthData(
        id="rec-1",
        user_id=user_id,
        provider=ProviderAuthData(
            user_id="p1", access_token="tok-1", scope="weight-scope", status=TokenStatus.VALID
        ),
    )


class TestLinkRoutes:
    def test_link_and_sync_returns_created_record(self, handlers, service, linked, user_id):
        service.link_credential_and_sync.return_value = linked

        response = handlers.link_credential_and_sync(
            make_request(
                body={"access_token": "tok-1", "refresh_token": "ref-1"},
                route_params={"user_id": user_id},
            )
        )

        assert response.status_code == 201
        assert body_of(response)["provider"]["status"] == "valid_token"
        data, init_sync = service.link_credential_and_sync.call_args.args
        assert data.user_id == user_id
        assert data.provider.access_token == "tok-1"
        assert init_sync is True

    def test_init_sync_query_parameter_is_forwarded(self, handlers, service, linked, user_id):
        service.link_credential_and_sync.return_value = linked

        handlers.link_credential_and_sync(
            make_request(
                body={"access_token": "tok-1"},
                route_params={"user_id": user_id},
                params={"init_sync": "false"},
            )
        )

        assert service.link_credential_and_sync.call_args.args[1] == "false"

    def test_link_without_sync(self, handlers, service, linked, user_id):
        service.link_credential.return_value = linked

        response = handlers.link_credential(
            make_request(method="PUT", body={"access_token": "tok-1"}, route_params={"user_id": user_id})
        )

        assert response.status_code == 200
        assert body_of(response)["id"] == "rec-1"

    def test_invalid_json_is_bad_request(self, handlers, service, user_id):
        response = handlers.link_credential_and_sync(
            make_request(raw_body=b"{not json", route_params={"user_id": user_id})
        )

        assert response.status_code == 400
        service.link_credential_and_sync.assert_not_called()

    def test_insufficient_scope_is_bad_request(self, handlers, service, user_id):
        service.link_credential_and_sync.side_effect = InsufficientScopeError(
            description="Recognized scopes: weight-scope -> body"
        )

        response = handlers.link_credential_and_sync(
            make_request(body={"access_token": "tok-1"}, route_params={"user_id": user_id})
        )

        assert response.status_code == 400
        error = body_of(response)["error"]
        assert error["message"].startswith("The token must have permission")
        assert error["description"] == "Recognized scopes: weight-scope -> body"

    def test_event_bus_outage_hides_internals(self, handlers, service, user_id):
        service.link_credential_and_sync.side_effect = EventBusUnavailableError()

        response = handlers.link_credential_and_sync(
            make_request(body={"access_token": "tok-1"}, route_params={"user_id": user_id})
        )

        assert response.status_code == 503
        error = body_of(response)["error"]
        assert error["message"] == UNAVAILABLE_MESSAGE
        assert "context" not in error


class TestReadAndRevokeRoutes:
    def test_get_credential(self, handlers, service, linked, user_id):
        service.get_credential.return_value = linked.provider

        response = handlers.get_credential(make_request(method="GET", route_params={"user_id": user_id}))

        assert response.status_code == 200
        assert body_of(response) == {
            "user_id": "p1",
            "access_token": "tok-1",
            "scope": "weight-scope",
            "status": "valid_token",
        }

    def test_get_unlinked_returns_empty_object(self, handlers, service, user_id):
        service.get_credential.return_value = ProviderAuthData()

        response = handlers.get_credential(make_request(method="GET", route_params={"user_id": user_id}))

        assert body_of(response) == {}

    def test_get_malformed_id_is_bad_request(self, handlers, service):
        service.get_credential.side_effect = ValidationError("Some ID provided does not have a valid format!")

        response = handlers.get_credential(make_request(method="GET", route_params={"user_id": "x"}))

        assert response.status_code == 400

    def test_revoke_linked_is_no_content(self, handlers, service, user_id):
        service.revoke_credential.return_value = True

        response = handlers.revoke_credential(make_request(route_params={"user_id": user_id}))

        assert response.status_code == 204

    def test_revoke_unlinked_is_not_found(self, handlers, service, user_id):
        service.revoke_credential.return_value = False

        response = handlers.revoke_credential(make_request(route_params={"user_id": user_id}))

        assert response.status_code == 404


class TestSyncRoutes:
    def test_request_sync_returns_result(self, handlers, service, user_id):
        service.request_sync.return_value = DataSync(user_id=user_id, resources={"body": 3})

        response = handlers.request_sync(make_request(route_params={"user_id": user_id}))

        assert response.status_code == 200
        assert body_of(response)["resources"] == {"body": 3}

    def test_request_sync_without_credential_is_bad_request(self, handlers, service, user_id):
        service.request_sync.side_effect = MissingCredentialError()

        response = handlers.request_sync(make_request(route_params={"user_id": user_id}))

        assert response.status_code == 400

    def test_invalid_token_is_unauthorized(self, handlers, service, user_id):
        service.request_sync.side_effect = InvalidTokenError()

        response = handlers.request_sync(make_request(route_params={"user_id": user_id}))

        assert response.status_code == 401

    def test_provider_outage_is_unavailable(self, handlers, service, user_id):
        service.request_sync.side_effect = ProviderUnavailableError()

        response = handlers.request_sync(make_request(route_params={"user_id": user_id}))

        assert response.status_code == 503

    def test_notifications_are_relayed(self, handlers, service):
        response = handlers.provider_notifications(
            make_request(
                body=[
                    {"collectionType": "body", "date": "2026-10-18", "ownerId": "p1", "ownerType": "user"},
                    {"collectionType": "sleep", "date": "2026-10-17", "ownerId": "p2"},
                ]
            )
        )

        assert response.status_code == 204
        assert [c.args for c in service.relay_upstream_sync.call_args_list] == [
            ("p1", "body", "2026-10-18"),
            ("p2", "sleep", "2026-10-17"),
        ]

    def test_malformed_notification_is_bad_request(self, handlers, service):
        response = handlers.provider_notifications(make_request(body=[{"date": "2026-10-18"}]))

        assert response.status_code == 400
        service.relay_upstream_sync.assert_not_called()


class TestErrorResponse:
    def test_unexpected_error_is_generic_500(self):
        response = error_response(RuntimeError("db password is hunter2"))

        assert response.status_code == 500
        assert "hunter2" not in response.get_body().decode()
