"""
Orchestration of a user's linked provider credential.

Linking runs a fixed pipeline over an immutable record value:

    validate -> introspect -> mark valid -> subscribe -> directory check -> upsert

Each step returns a new UserAuthData, the caller's object is never mutated.
Subscriptions are registered before the directory check, so a rejected user
may already have provider subscriptions.

Syncs started by linking or by provider notifications are handed to a
background worker and never awaited; their failures reach the worker's
error sink only.
"""

from typing import Union

from ..constants import BEARER_TOKEN_TYPE, Limits, SubscriptionCategory, TokenStatus
from ..context.operation_context import operation
from ..exceptions import (
    EventBusUnavailableError,
    MissingCredentialError,
    TransportUnavailableError,
    ValidationError,
)
from ..schemas.auth_data_schema import DataSync, ProviderAuthData, TokenPayload, UserAuthData
from ..schemas.validators import CreateUserAuthDataValidator, ObjectIdValidator
from ..utils.logger import get_logger
from ..workers.background_worker import BackgroundWorker


def _apply_token_payload(data: UserAuthData, payload: TokenPayload) -> UserAuthData:
    """Merge introspected claims; absent claims leave the field untouched."""
    updates = {"token_type": BEARER_TOKEN_TYPE}
    if payload.sub:
        updates["user_id"] = payload.sub
    if payload.scopes:
        updates["scope"] = payload.scopes
    if payload.exp:
        updates["expires_in"] = payload.exp
    return data.model_copy(update={"provider": data.provider.model_copy(update=updates)})


def _with_status(data: UserAuthData, status: TokenStatus) -> UserAuthData:
    return data.model_copy(update={"provider": data.provider.model_copy(update={"status": status})})


def _opts_out_of_sync(init_sync: Union[bool, str, None]) -> bool:
    if isinstance(init_sync, str):
        return init_sync.strip().lower() == "false"
    return init_sync is False


class UserAuthDataService:
    """Public operations over linked provider credentials."""

    def __init__(
        self,
        repository,
        provider_client,
        subscription_service,
        sync_service,
        worker: BackgroundWorker,
    ):
        self.repository = repository
        self.provider_client = provider_client
        self.subscription_service = subscription_service
        self.sync_service = sync_service
        self.worker = worker
        self.logger = get_logger()

    @operation()
    def link_credential(self, data: UserAuthData) -> UserAuthData:
        """
        Validate, introspect, subscribe and persist a provider credential.

        Raises:
            ValidationError: Malformed input or user not registered on the platform
            InsufficientScopeError: No synced data category was granted
            InvalidTokenError: Provider rejected the token
            ProviderUnavailableError: Provider unreachable
            EventBusUnavailableError: Messaging infrastructure unreachable
        """
        try:
            CreateUserAuthDataValidator.validate(data)

            payload = self.provider_client.introspect(data.provider.access_token)
            record = _apply_token_payload(data, payload)
            record = _with_status(record, TokenStatus.VALID)

            self.subscription_service.subscribe_all(record.provider)

            if not self.repository.check_user_exists(record.user_id):
                raise ValidationError(
                    f"The user does not have register on platform: {record.user_id}",
                    field="user_id",
                )

            return self.repository.upsert(record)
        except TransportUnavailableError as e:
            raise EventBusUnavailableError(cause=e, user_id=data.user_id) from e

    @operation()
    def link_credential_and_sync(
        self, data: UserAuthData, init_sync: Union[bool, str, None] = True
    ) -> UserAuthData:
        """
        Link a credential, then start an initial sync in the background.

        Only ``False`` or the string "false" skips the sync; in that case a
        stored ``last_sync`` is announced instead, also in the background.
        """
        result = self.link_credential(data)
        provider = result.provider

        if not _opts_out_of_sync(init_sync):
            self.worker.submit(
                "initial_sync",
                self.sync_service.trigger_sync,
                provider,
                provider.last_sync,
                Limits.INITIAL_SYNC_ATTEMPTS,
                result.user_id,
            )
        elif provider.last_sync:
            self.worker.submit(
                "publish_last_sync",
                self.sync_service.publish_last_sync,
                result.user_id,
                provider.last_sync,
            )

        return result

    @operation()
    def revoke_credential(self, user_id: str) -> bool:
        """
        Revoke the user's provider token.

        Returns:
            False if the user has no linked credential, True once revoked
        """
        ObjectIdValidator.validate(user_id)

        record = self.repository.find_by_user_id(user_id)
        if record is None:
            return False

        if record.provider and record.provider.access_token:
            self.provider_client.revoke(record.provider.access_token)
            self.repository.update(_with_status(record, TokenStatus.INVALID))

        self.logger.info("Provider token revoked", extra={"user_id": user_id})
        return True

    @operation()
    def request_sync(self, user_id: str) -> DataSync:
        """Run a single-attempt sync and return its result to the caller."""
        record = self.repository.find_by_user_id(user_id)
        if record is None or record.provider is None or record.provider.is_empty():
            raise MissingCredentialError(user_id=user_id)

        return self.sync_service.trigger_sync(
            record.provider,
            record.provider.last_sync,
            Limits.ON_DEMAND_SYNC_ATTEMPTS,
            user_id,
        )

    @operation()
    def relay_upstream_sync(self, provider_user_id: str, category: str, date: str) -> None:
        """
        Start a background sync for a provider change notification.

        Notifications for unlinked accounts or unsynced categories are dropped.
        """
        record = self.repository.find_by_provider_user_id(provider_user_id)
        if record is None:
            self.logger.debug(
                "Notification for unlinked provider account dropped",
                extra={"provider_user_id": provider_user_id},
            )
            return

        try:
            collection = SubscriptionCategory(category)
        except ValueError:
            self.logger.debug(
                "Notification for unsynced category dropped",
                extra={"provider_user_id": provider_user_id, "category": category},
            )
            return

        self.worker.submit(
            "relay_sync",
            self.sync_service.sync_category,
            record.provider,
            record.user_id,
            collection,
            date,
            Limits.RELAY_SYNC_ATTEMPTS,
        )

    def get_credential(self, user_id: str) -> ProviderAuthData:
        """Return the linked credential, or an empty one if nothing is linked."""
        ObjectIdValidator.validate(user_id)

        record = self.repository.find_by_user_id(user_id)
        if record is None or record.provider is None:
            return ProviderAuthData()
        return record.provider
