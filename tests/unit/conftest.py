"""
Unit test conftest.py - Component-specific fixtures.

External collaborators (provider API, account service, queue transport) are
replaced by small in-memory fakes that record every call. The credential
store is the real repository over in-memory SQLite.
"""

from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import Mock

import pytest

from wearable_auth_core.constants import SubscriptionCategory
from wearable_auth_core.repositories.auth_data_repository import AuthDataRepository
from wearable_auth_core.schemas.auth_data_schema import ProviderAuthData, TokenPayload
from wearable_auth_core.services.subscription_service import SubscriptionService
from wearable_auth_core.services.sync_service import SyncService
from wearable_auth_core.services.user_auth_data_service import UserAuthDataService
from wearable_auth_core.workers.background_worker import RecordingBackgroundWorker

# ==================== FAKE COLLABORATORS ====================


class FakeProviderClient:
    """Records provider calls; failures are queued per operation."""

    def __init__(self):
        self.payload = TokenPayload()
        self.introspect_error: Optional[Exception] = None
        self.subscribe_errors: Dict[SubscriptionCategory, Exception] = {}
        self.revoke_error: Optional[Exception] = None
        self.fetch_errors: List[Exception] = []
        self.resources: List[Dict[str, Any]] = [{"logId": 1}, {"logId": 2}]

        self.introspect_calls: List[str] = []
        self.subscribe_calls: List[Tuple[Optional[str], SubscriptionCategory, str]] = []
        self.revoke_calls: List[str] = []
        self.fetch_calls: List[Tuple[SubscriptionCategory, str, str]] = []
        self.fetch_day_calls: List[Tuple[SubscriptionCategory, str]] = []

    def introspect(self, access_token: str) -> TokenPayload:
        self.introspect_calls.append(access_token)
        if self.introspect_error:
            raise self.introspect_error
        return self.payload

    def subscribe(self, provider_auth: ProviderAuthData, category, label: str) -> None:
        self.subscribe_calls.append((provider_auth.user_id, category, label))
        if category in self.subscribe_errors:
            raise self.subscribe_errors[category]

    def revoke(self, access_token: str) -> None:
        self.revoke_calls.append(access_token)
        if self.revoke_error:
            raise self.revoke_error

    def fetch_resources(self, provider_auth, category, start: str, end: str):
        self.fetch_calls.append((category, start, end))
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        return list(self.resources)

    def fetch_day(self, provider_auth, category, date: str):
        self.fetch_day_calls.append((category, date))
        if self.fetch_errors:
            raise self.fetch_errors.pop(0)
        return list(self.resources)


class FakeUserDirectory:
    """Account service with a fixed set of registered users."""

    def __init__(self, users=()):
        self.users = set(users)
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    def exists(self, user_id: str) -> bool:
        self.calls.append(user_id)
        if self.error:
            raise self.error
        return user_id in self.users


class FakeEventBus:
    """Collects published events; can fail for all or selected event names."""

    def __init__(self):
        self.published: List[Tuple[str, Any, Any]] = []
        self.error: Optional[Exception] = None
        self.failing_events: Dict[Any, Exception] = {}

    def publish(self, queue_name, event_name, payload):
        if self.error:
            raise self.error
        if event_name in self.failing_events:
            raise self.failing_events[event_name]
        self.published.append((queue_name, event_name, payload))
        return f"msg-{len(self.published)}"

    def events(self, event_name) -> List[Any]:
        return [payload for _queue, name, payload in self.published if name == event_name]


# ==================== COLLABORATOR FIXTURES ====================


@pytest.fixture(scope="function")
def provider_client():
    return FakeProviderClient()


@pytest.fixture(scope="function")
def directory(user_id):
    return FakeUserDirectory(users=[user_id])


@pytest.fixture(scope="function")
def event_bus():
    return FakeEventBus()


@pytest.fixture(scope="function")
def worker():
    return RecordingBackgroundWorker()


@pytest.fixture(scope="function")
def sleeps():
    """Backoff delays requested by the sync service."""
    return []


# ==================== SERVICE FIXTURES ====================


@pytest.fixture(scope="function")
def repository(clean_db, directory):
    """Real repository over a fresh in-memory database."""
    return AuthDataRepository(clean_db, directory, encryption_key="test-encryption-key")


@pytest.fixture(scope="function")
def subscription_service(provider_client, event_bus):
    return SubscriptionService(provider_client, event_bus)


@pytest.fixture(scope="function")
def sync_service(provider_client, event_bus, repository, app_config, sleeps):
    return SyncService(provider_client, event_bus, repository, app_config, sleep=sleeps.append)


@pytest.fixture(scope="function")
def auth_data_service(repository, provider_client, subscription_service, sync_service, worker):
    return UserAuthDataService(
        repository=repository,
        provider_client=provider_client,
        subscription_service=subscription_service,
        sync_service=sync_service,
        worker=worker,
    )


# ==================== MOCK FIXTURES (ONLY WHEN NECESSARY) ====================


@pytest.fixture(scope="function")
def mock_azure_queue_client():
    """
    Mock Azure Queue Client for testing queue operations.

    Only use this when testing queue-dependent functionality
    without requiring actual Azure infrastructure.
    """
    mock_client = Mock()
    mock_client.send_message.return_value = Mock(id="test_message_id")
    mock_client.get_queue_properties.return_value = {}
    return mock_client
