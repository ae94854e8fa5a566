"""
HTTP client for the wearable provider Web API.

Covers token introspection and revocation, webhook subscriptions and the
resource reads used by data synchronization. Transport failures, rate
limiting and 5xx responses surface as ProviderUnavailableError; a rejected
token surfaces as InvalidTokenError.
"""

from typing import Any, Dict, List, Optional

import requests

from ..config import ProviderConfig, get_config
from ..constants import SubscriptionCategory
from ..exceptions import (
    ErrorCode,
    ExternalServiceError,
    InvalidTokenError,
    ProviderUnavailableError,
    ValidationError,
)
from ..schemas.auth_data_schema import ProviderAuthData, TokenPayload
from ..utils.logger import get_logger

# Category -> (resource path template, response key holding the items)
RESOURCE_PATHS = {
    SubscriptionCategory.BODY: ("/1/user/-/body/log/weight/date/{start}/{end}.json", "weight"),
    SubscriptionCategory.ACTIVITIES: (
        "/1/user/-/activities/steps/date/{start}/{end}.json",
        "activities-steps",
    ),
    SubscriptionCategory.SLEEP: ("/1.2/user/-/sleep/date/{start}/{end}.json", "sleep"),
}


class ProviderClient:
    """Client for the provider OAuth and data endpoints."""

    def __init__(self, config: Optional[ProviderConfig] = None):
        self.config = config or get_config().provider
        self.api_url = self.config.api_url.rstrip("/")
        self.oauth_url = self.config.oauth_url.rstrip("/")
        self.timeout = self.config.timeout
        self.logger = get_logger()

    def _get_headers(self, access_token: Optional[str] = None) -> Dict[str, str]:
        """Get request headers."""
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = requests.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise ProviderUnavailableError(
                f"Could not reach the provider: {str(e)}", cause=e, url=url
            )

        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise ProviderUnavailableError(
                "The provider rate limit was exceeded",
                retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
                url=url,
                provider_status=response.status_code,
            )
        if response.status_code >= 500:
            raise ProviderUnavailableError(
                f"The provider returned {response.status_code}",
                url=url,
                provider_status=response.status_code,
            )
        if response.status_code == 401:
            raise InvalidTokenError(url=url, provider_status=response.status_code)
        return response

    @staticmethod
    def _raise_for_client_error(response: requests.Response, action: str) -> None:
        if response.status_code >= 400:
            raise ExternalServiceError(
                f"Provider rejected {action} with status {response.status_code}",
                service_name="provider",
                error_code=ErrorCode.EXTERNAL_API_ERROR,
                provider_status=response.status_code,
            )

    def introspect(self, access_token: str) -> TokenPayload:
        """
        Validate an access token and extract its claims.

        Returns:
            TokenPayload with whichever of sub/scopes/exp the provider returned

        Raises:
            InvalidTokenError: Token rejected or reported inactive
            ProviderUnavailableError: Network failure, 429 or 5xx
        """
        response = self._request(
            "POST",
            f"{self.oauth_url}/introspect",
            headers=self._get_headers(access_token),
            data={"token": access_token},
        )
        if response.status_code == 400:
            raise InvalidTokenError("The access token is malformed")
        self._raise_for_client_error(response, "token introspection")

        body = response.json() or {}
        if body.get("active") is False:
            raise InvalidTokenError("The access token is not active")

        return TokenPayload(
            sub=body.get("sub") or body.get("user_id"),
            scopes=body.get("scopes") or body.get("scope"),
            exp=body.get("exp"),
        )

    def subscribe(
        self, provider_auth: ProviderAuthData, category: SubscriptionCategory, label: str
    ) -> None:
        """
        Create (or refresh) a webhook subscription for one data category.

        A 409 means the subscription already exists and is treated as success.
        """
        if not provider_auth.user_id:
            raise ValidationError(
                "Provider user id is required to subscribe", field="provider.user_id"
            )

        subscription_id = f"{provider_auth.user_id}-{label}"
        url = (
            f"{self.api_url}/1/user/-/{SubscriptionCategory(category).value}"
            f"/apiSubscriptions/{subscription_id}.json"
        )
        response = self._request("POST", url, headers=self._get_headers(provider_auth.access_token))
        if response.status_code == 409:
            self.logger.debug(
                "Subscription already registered", extra={"subscription_id": subscription_id}
            )
            return
        self._raise_for_client_error(response, "subscription")

        self.logger.info(
            "Subscription registered",
            extra={"subscription_id": subscription_id, "category": SubscriptionCategory(category).value},
        )

    def revoke(self, access_token: str) -> None:
        """Revoke an access token at the provider."""
        response = self._request(
            "POST",
            f"{self.oauth_url}/revoke",
            headers=self._get_headers(),
            auth=(self.config.client_id, self.config.client_secret),
            data={"token": access_token},
        )
        self._raise_for_client_error(response, "token revocation")

    def fetch_resources(
        self,
        provider_auth: ProviderAuthData,
        category: SubscriptionCategory,
        start: str,
        end: str,
    ) -> List[Dict[str, Any]]:
        """
        Read a category's resources between two dates (``YYYY-MM-DD``, inclusive).
        """
        path, key = RESOURCE_PATHS[SubscriptionCategory(category)]
        response = self._request(
            "GET",
            f"{self.api_url}{path.format(start=start, end=end)}",
            headers=self._get_headers(provider_auth.access_token),
        )
        self._raise_for_client_error(response, f"{SubscriptionCategory(category).value} read")

        body = response.json() or {}
        return list(body.get(key, []))

    def fetch_day(
        self, provider_auth: ProviderAuthData, category: SubscriptionCategory, date: str
    ) -> List[Dict[str, Any]]:
        return self.fetch_resources(provider_auth, category, date, date)
