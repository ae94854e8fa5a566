"""
Subscription Registrar.

Registers one provider webhook subscription per data category the granted
scope allows, in a fixed order, and announces each registration on the
event bus.
"""

from typing import List, Optional

from ..config import QueueConfig, get_config
from ..constants import SCOPE_SUBSCRIPTIONS, EventName, ScopeCapability, SubscriptionCategory
from ..context.operation_context import operation
from ..exceptions import InsufficientScopeError
from ..schemas.auth_data_schema import ProviderAuthData
from ..utils.logger import get_logger


def _mapped_scopes_description() -> str:
    return ", ".join(
        f"{token} -> {category.value}" for token, _cap, category, _label in SCOPE_SUBSCRIPTIONS
    )


class SubscriptionService:
    """Creates provider subscriptions from granted scope capabilities."""

    def __init__(self, provider_client, event_bus, queue_config: Optional[QueueConfig] = None):
        self.provider_client = provider_client
        self.event_bus = event_bus
        self.queue_name = (queue_config or get_config().queue).subscription_queue_name
        self.logger = get_logger()

    @operation()
    def subscribe_all(self, provider_auth: ProviderAuthData) -> List[SubscriptionCategory]:
        """
        Subscribe to every category covered by ``provider_auth.scope``.

        Returns:
            Categories subscribed, in issue order

        Raises:
            InsufficientScopeError: No recognized scope token; no calls are made
            Any error from the provider or event bus; remaining calls are skipped
        """
        capabilities = provider_auth.capabilities()
        if capabilities == ScopeCapability.NONE:
            raise InsufficientScopeError(
                description=f"Recognized scopes: {_mapped_scopes_description()}",
                scope=provider_auth.scope,
            )

        subscribed: List[SubscriptionCategory] = []
        for _token, capability, category, label in SCOPE_SUBSCRIPTIONS:
            if capability not in capabilities:
                continue

            self.provider_client.subscribe(provider_auth, category, label)
            self.event_bus.publish(
                self.queue_name,
                EventName.SUBSCRIPTION_REGISTERED,
                {
                    "provider_user_id": provider_auth.user_id,
                    "category": category.value,
                    "label": label,
                },
            )
            subscribed.append(category)

        self.logger.info(
            "Subscriptions registered",
            extra={
                "provider_user_id": provider_auth.user_id,
                "categories": [c.value for c in subscribed],
            },
        )
        return subscribed
