"""
Tests for the exception hierarchy, factories and correlation helpers.
"""

import pytest

from wearable_auth_core.exceptions import (
    BaseError,
    ErrorCode,
    EventBusUnavailableError,
    ExternalServiceError,
    InsufficientScopeError,
    InvalidTokenError,
    MissingCredentialError,
    ProviderUnavailableError,
    RemoteRejectedError,
    RepositoryError,
    ServiceError,
    TransportUnavailableError,
    ValidationError,
    clear_correlation_id,
    get_correlation_id,
    not_found,
    set_correlation_id,
)


class TestBaseError:
    def test_defaults(self):
        error = BaseError("Something broke")

        assert error.status_code == 500
        assert error.error_code == ErrorCode.INTERNAL_ERROR
        assert error.context["error_id"] == error.error_id
        assert str(error) == "Something broke"

    def test_correlation_id_is_captured(self):
        set_correlation_id("corr-42")
        try:
            error = BaseError("Something broke")
        finally:
            clear_correlation_id()

        assert error.to_dict()["error"]["correlation_id"] == "corr-42"

    def test_to_dict_hides_cause_unless_requested(self):
        error = BaseError("Wrapped", cause=KeyError("missing"), user_id="u1")

        plain = error.to_dict()
        detailed = error.to_dict(include_cause=True)

        assert "cause" not in plain["error"]
        assert plain["error"]["context"] == {"user_id": "u1"}
        assert detailed["error"]["cause"]["type"] == "KeyError"
        assert "traceback" not in detailed["error"]["cause"]

    def test_add_context_is_fluent(self):
        error = BaseError("x")

        assert error.add_context(step="link") is error
        assert error.context["step"] == "link"


class TestStatusCodes:
    @pytest.mark.parametrize(
        "make_error, status",
        [
            (lambda: ValidationError("bad"), 400),
            (InsufficientScopeError, 400),
            (MissingCredentialError, 400),
            (InvalidTokenError, 401),
            (lambda: ExternalServiceError("x", service_name="directory"), 502),
            (RemoteRejectedError, 502),
            (ProviderUnavailableError, 503),
            (EventBusUnavailableError, 503),
            (TransportUnavailableError, 503),
            (lambda: ServiceError("x"), 500),
        ],
    )
    def test_status_code(self, make_error, status):
        assert make_error().status_code == status

    def test_provider_unavailable_is_an_external_service_error(self):
        error = ProviderUnavailableError(retry_after_seconds=7)

        assert isinstance(error, ExternalServiceError)
        assert error.retry_after_seconds == 7
        assert error.context["service_name"] == "provider"

    def test_event_bus_error_carries_description(self):
        error = EventBusUnavailableError()

        assert error.message == "Communication with the message bus cannot be performed."
        assert error.description == "Probably, the message service is unavailable."
        assert error.error_code == ErrorCode.QUEUE_ERROR


class TestFactories:
    def test_not_found(self):
        error = not_found("UserAuthData", user_id="u1")

        assert isinstance(error, RepositoryError)
        assert error.status_code == 404
        assert error.error_code == ErrorCode.NOT_FOUND
        assert error.message == "UserAuthData not found: user_id=u1"


class TestCorrelationHelpers:
    def test_set_get_clear(self):
        assert get_correlation_id() is None

        set_correlation_id("abc")
        assert get_correlation_id() == "abc"

        clear_correlation_id()
        assert get_correlation_id() is None

    def test_clear_without_value_is_harmless(self):
        clear_correlation_id()
        clear_correlation_id()

        assert get_correlation_id() is None
