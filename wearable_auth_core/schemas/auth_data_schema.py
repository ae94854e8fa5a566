"""
Pydantic schemas for linked provider credentials.

``UserAuthData`` is the Credential Record: one per internal user, carrying the
provider OAuth credential in ``provider``. Schemas are treated as values; the
services derive updated copies with ``model_copy(update=...)`` rather than
mutating a shared instance.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..constants import SCOPE_SUBSCRIPTIONS, ScopeCapability, SyncStatus, TokenStatus


class ProviderAuthData(BaseModel):
    """OAuth credential issued by the wearable provider."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=False)

    user_id: Optional[str] = Field(default=None, description="Provider-side user id")
    access_token: Optional[str] = None
    expires_in: Optional[int] = Field(default=None, description="Token lifetime or expiry (s)")
    refresh_token: Optional[str] = None
    scope: Optional[str] = Field(default=None, description="Space-delimited granted scopes")
    token_type: Optional[str] = None
    status: Optional[TokenStatus] = None
    last_sync: Optional[str] = Field(default=None, description="ISO-8601 time of last sync")

    def is_empty(self) -> bool:
        """True for the placeholder returned when a user has nothing linked."""
        return all(value is None for value in self.model_dump().values())

    def capabilities(self) -> ScopeCapability:
        """Translate the granted scope string into typed capability flags."""
        return parse_scope_capabilities(self.scope)


class UserAuthData(BaseModel):
    """Association between an internal user and their provider credential."""

    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = Field(default=None, description="Storage identity")
    user_id: Optional[str] = Field(default=None, description="Internal user id")
    provider: Optional[ProviderAuthData] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_json(self) -> Dict[str, Any]:
        """Public representation returned by the API surface."""
        provider = self.provider.model_dump(mode="json") if self.provider else None
        return {"id": self.id, "user_id": self.user_id, "provider": provider}


class TokenPayload(BaseModel):
    """Claims extracted by token introspection. Every field is optional."""

    sub: Optional[str] = None
    scopes: Optional[str] = None
    exp: Optional[int] = None


class DataSync(BaseModel):
    """Result of a provider data synchronization."""

    user_id: str
    provider_user_id: Optional[str] = None
    status: SyncStatus = SyncStatus.SUCCESS
    since: Optional[str] = None
    until: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    resources: Dict[str, int] = Field(
        default_factory=dict, description="Number of resources fetched per category"
    )
    attempts: int = 1
    error: Optional[str] = None


class WebhookNotification(BaseModel):
    """One item of a provider change notification."""

    model_config = ConfigDict(populate_by_name=True)

    collection_type: str = Field(alias="collectionType")
    date: str
    owner_id: str = Field(alias="ownerId")
    owner_type: Optional[str] = Field(default=None, alias="ownerType")
    subscription_id: Optional[str] = Field(default=None, alias="subscriptionId")


def parse_scope_capabilities(scope: Optional[str]) -> ScopeCapability:
    """
    Convert a provider scope string into capability flags.

    Scope tokens are case-sensitive and whitespace separated; unknown tokens
    are ignored.
    """
    tokens = set((scope or "").split())
    capabilities = ScopeCapability.NONE
    for token, capability, _category, _label in SCOPE_SUBSCRIPTIONS:
        if token in tokens:
            capabilities |= capability
    return capabilities
