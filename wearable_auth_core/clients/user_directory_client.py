"""Client for the internal account service that owns user registration."""

from typing import Optional

import requests

from ..config import DirectoryConfig, get_config
from ..exceptions import ExternalServiceError, TransportUnavailableError


class UserDirectoryClient:
    """Answers whether an internal user id is registered on the platform."""

    def __init__(self, config: Optional[DirectoryConfig] = None):
        self.config = config or get_config().directory
        self.base_url = self.config.base_url.rstrip("/")
        self.timeout = self.config.timeout

    def exists(self, user_id: str) -> bool:
        """
        Check the account service for a user.

        Raises:
            TransportUnavailableError: The account service could not be reached
            ExternalServiceError: Any status other than 200 or 404
        """
        url = f"{self.base_url}/v1/users/{user_id}"
        try:
            response = requests.get(url, headers={"Accept": "application/json"}, timeout=self.timeout)
        except (requests.ConnectionError, requests.Timeout) as e:
            raise TransportUnavailableError(
                f"Account service unreachable: {str(e)}", cause=e, url=url
            )

        if response.status_code == 200:
            return True
        if response.status_code == 404:
            return False
        raise ExternalServiceError(
            f"Account service returned {response.status_code}",
            service_name="account_service",
            status_code=502,
            user_id=user_id,
        )
