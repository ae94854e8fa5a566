"""
Sync Trigger.

Pulls a user's provider data for a time window, retrying transient provider
failures with exponential backoff. Outcomes are announced on the event bus:
DataSync on success, DataSyncFailed once attempts are exhausted.
"""

import time
from datetime import UTC, datetime, timedelta
from typing import Any, Callable, List, Optional, Tuple, TypeVar

from ..config import AppConfig, get_config
from ..constants import SCOPE_SUBSCRIPTIONS, EventName, SubscriptionCategory, SyncStatus
from ..context.operation_context import operation
from ..exceptions import BaseError, ProviderUnavailableError, ValidationError
from ..schemas.auth_data_schema import DataSync, ProviderAuthData
from ..utils.logger import get_logger
from ..utils.retry_utils import calculate_exponential_backoff

T = TypeVar("T")


def _parse_timestamp(value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValidationError(
            f"Invalid sync timestamp: {value}", field="since", cause=e
        ) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class SyncService:
    """Synchronizes provider data for linked users."""

    def __init__(
        self,
        provider_client,
        event_bus,
        repository,
        config: Optional[AppConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.provider_client = provider_client
        self.event_bus = event_bus
        self.repository = repository
        self.config = config or get_config()
        self.queue_name = self.config.queue.data_sync_queue_name
        self.sleep = sleep
        self.logger = get_logger()

    def _categories_for(self, provider_auth: ProviderAuthData) -> List[SubscriptionCategory]:
        capabilities = provider_auth.capabilities()
        return [
            category
            for _token, capability, category, _label in SCOPE_SUBSCRIPTIONS
            if capability in capabilities
        ]

    def _backoff_seconds(self, attempt: int, error: ProviderUnavailableError) -> int:
        if error.retry_after_seconds:
            return min(error.retry_after_seconds, self.config.sync.retry_backoff_max)
        return calculate_exponential_backoff(
            attempt,
            base_delay=self.config.sync.retry_backoff_base,
            max_delay=self.config.sync.retry_backoff_max,
        )

    def _with_retries(
        self, fn: Callable[[], T], max_attempts: int, **log_context: Any
    ) -> Tuple[T, int]:
        """
        Run ``fn`` until it succeeds or ``max_attempts`` is reached.

        Only ProviderUnavailableError is retried.
        """
        max_attempts = max(1, max_attempts)
        attempt = 1
        while True:
            try:
                return fn(), attempt
            except ProviderUnavailableError as e:
                if attempt >= max_attempts:
                    raise
                delay = self._backoff_seconds(attempt - 1, e)
                self.logger.warning(
                    "Provider unavailable, retrying sync",
                    extra={
                        **log_context,
                        "attempt": attempt,
                        "max_attempts": max_attempts,
                        "delay_seconds": delay,
                    },
                )
                self.sleep(delay)
                attempt += 1

    def _report_failure(self, result: DataSync, error: Exception) -> None:
        failed = result.model_copy(update={"status": SyncStatus.FAILED, "error": str(error)})
        self.logger.error(
            "Data sync failed",
            extra={
                "user_id": result.user_id,
                "provider_user_id": result.provider_user_id,
                "error_type": type(error).__name__,
            },
        )
        try:
            self.event_bus.publish(self.queue_name, EventName.DATA_SYNC_FAILED, failed)
        except BaseError as publish_error:
            # The sync error is what gets raised; a lost failure event is only logged
            self.logger.warning(
                "Could not publish DataSyncFailed",
                extra={"user_id": result.user_id, "publish_error": publish_error.message},
            )

    @operation()
    def trigger_sync(
        self,
        provider_auth: ProviderAuthData,
        since: Optional[str],
        max_attempts: int,
        user_id: str,
    ) -> DataSync:
        """
        Fetch every granted category from ``since`` until now.

        Args:
            provider_auth: Linked provider credential
            since: ISO-8601 start of the window; None means the configured initial window
            max_attempts: Upper bound on attempts for transient provider failures
            user_id: Internal user id

        Returns:
            DataSync describing the synchronized window

        Raises:
            ProviderUnavailableError: Attempts exhausted
            InvalidTokenError: Provider rejected the token (never retried)
        """
        until = datetime.now(UTC)
        start = (
            _parse_timestamp(since)
            if since
            else until - timedelta(days=self.config.sync.initial_window_days)
        )
        categories = self._categories_for(provider_auth)
        result = DataSync(
            user_id=user_id,
            provider_user_id=provider_auth.user_id,
            since=start.isoformat(),
            until=until.isoformat(),
            categories=[c.value for c in categories],
        )

        calls: List[int] = []

        def _fetch_all():
            calls.append(1)
            counts = {}
            for category in categories:
                resources = self.provider_client.fetch_resources(
                    provider_auth,
                    category,
                    start.date().isoformat(),
                    until.date().isoformat(),
                )
                counts[category.value] = len(resources)
            return counts

        try:
            counts, attempts = self._with_retries(
                _fetch_all, max_attempts, user_id=user_id, provider_user_id=provider_auth.user_id
            )
        except Exception as e:
            self._report_failure(result.model_copy(update={"attempts": len(calls)}), e)
            raise

        result = result.model_copy(update={"resources": counts, "attempts": attempts})
        self.event_bus.publish(self.queue_name, EventName.DATA_SYNC, result)
        self.repository.update_last_sync(user_id, result.until)

        self.logger.info(
            "Data sync completed",
            extra={"user_id": user_id, "attempts": attempts, "resources": counts},
        )
        return result

    @operation()
    def sync_category(
        self,
        provider_auth: ProviderAuthData,
        user_id: str,
        category: SubscriptionCategory,
        date: str,
        max_attempts: int,
    ) -> DataSync:
        """
        Fetch one category for one day, as announced by a provider notification.

        ``last_sync`` is not advanced: a single day says nothing about the rest
        of the window.
        """
        category = SubscriptionCategory(category)
        result = DataSync(
            user_id=user_id,
            provider_user_id=provider_auth.user_id,
            since=date,
            until=date,
            categories=[category.value],
        )

        calls: List[int] = []

        def _fetch_day():
            calls.append(1)
            return self.provider_client.fetch_day(provider_auth, category, date)

        try:
            resources, attempts = self._with_retries(
                _fetch_day,
                max_attempts,
                user_id=user_id,
                category=category.value,
            )
        except Exception as e:
            self._report_failure(result.model_copy(update={"attempts": len(calls)}), e)
            raise

        result = result.model_copy(
            update={"resources": {category.value: len(resources)}, "attempts": attempts}
        )
        self.event_bus.publish(self.queue_name, EventName.DATA_SYNC, result)
        return result

    def publish_last_sync(self, user_id: str, last_sync: str) -> None:
        """Announce the stored last sync time instead of syncing again."""
        self.event_bus.publish(
            self.queue_name,
            EventName.LAST_SYNC,
            {"user_id": user_id, "last_sync": last_sync},
        )
        self.logger.info("Last sync published", extra={"user_id": user_id, "last_sync": last_sync})
