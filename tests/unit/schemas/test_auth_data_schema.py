"""
Tests for the credential schemas and input validators.
"""

import pytest

from wearable_auth_core.constants import ScopeCapability, TokenStatus
from wearable_auth_core.exceptions import ValidationError
from wearable_auth_core.schemas import (
    CreateUserAuthDataValidator,
    ObjectIdValidator,
    ProviderAuthData,
    UserAuthData,
    WebhookNotification,
    parse_scope_capabilities,
)


class TestScopeCapabilities:
    def test_recognized_tokens_become_flags(self):
        capabilities = parse_scope_capabilities("profile weight-scope  sleep-scope")

        assert ScopeCapability.BODY in capabilities
        assert ScopeCapability.SLEEP in capabilities
        assert ScopeCapability.ACTIVITIES not in capabilities

    @pytest.mark.parametrize("scope", [None, "", "WEIGHT-SCOPE", "weight"])
    def test_unrecognized_scope_is_none(self, scope):
        assert parse_scope_capabilities(scope) == ScopeCapability.NONE

    def test_provider_capabilities_use_scope(self):
        provider = ProviderAuthData(scope="activity-scope")
        assert provider.capabilities() == ScopeCapability.ACTIVITIES


class TestProviderAuthData:
    def test_empty_placeholder(self):
        assert ProviderAuthData().is_empty() is True
        assert ProviderAuthData(access_token="tok").is_empty() is False

    def test_to_json_serializes_status(self):
        data = UserAuthData(
            id="rec-1", user_id="u1", provider=ProviderAuthData(status=TokenStatus.EXPIRED)
        )

        assert data.to_json()["provider"]["status"] == "expired_token"

    def test_to_json_without_provider(self):
        assert UserAuthData(user_id="u1").to_json() == {"id": None, "user_id": "u1", "provider": None}


class TestWebhookNotification:
    def test_accepts_provider_field_names(self):
        notification = WebhookNotification.model_validate(
            {"collectionType": "activities", "date": "2026-10-18", "ownerId": "p1"}
        )

        assert notification.collection_type == "activities"
        assert notification.owner_id == "p1"
        assert notification.subscription_id is None


class TestValidators:
    @pytest.mark.parametrize("value", ["5a62be07d6f33400146c9b61", "507F191E810C19729DE860EA"])
    def test_object_id_accepts_24_hex(self, value):
        ObjectIdValidator.validate(value)

    @pytest.mark.parametrize(
        "value", ["", "u1", "5a62be07d6f33400146c9b6z", "507f191e810c19729de860ea\n", None, 123]
    )
    def test_object_id_rejects_other_values(self, value):
        with pytest.raises(ValidationError) as exc_info:
            ObjectIdValidator.validate(value)

        assert exc_info.value.status_code == 400

    def test_create_requires_user_and_access_token(self):
        with pytest.raises(ValidationError) as exc_info:
            CreateUserAuthDataValidator.validate(UserAuthData(provider=ProviderAuthData()))

        assert "user_id" in exc_info.value.description
        assert "provider.access_token" in exc_info.value.description

    def test_create_requires_provider(self):
        with pytest.raises(ValidationError):
            CreateUserAuthDataValidator.validate(UserAuthData(user_id="u1"))

    def test_create_accepts_minimal_record(self):
        CreateUserAuthDataValidator.validate(
            UserAuthData(user_id="u1", provider=ProviderAuthData(access_token="tok"))
        )

    @pytest.mark.parametrize("last_sync", ["not-a-date", "2026-13-01", "yesterday"])
    def test_create_rejects_malformed_last_sync(self, last_sync):
        with pytest.raises(ValidationError) as exc_info:
            CreateUserAuthDataValidator.validate(
                UserAuthData(
                    user_id="u1",
                    provider=ProviderAuthData(access_token="tok", last_sync=last_sync),
                )
            )

        assert exc_info.value.context["field"] == "provider.last_sync"

    @pytest.mark.parametrize(
        "last_sync", ["2026-10-01T08:00:00Z", "2026-10-01T08:00:00+00:00", "2026-10-01"]
    )
    def test_create_accepts_iso_last_sync(self, last_sync):
        CreateUserAuthDataValidator.validate(
            UserAuthData(user_id="u1", provider=ProviderAuthData(access_token="tok", last_sync=last_sync))
        )
