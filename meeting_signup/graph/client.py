"""
Microsoft Graph API Client

Provides authenticated access to Microsoft Graph API using MSAL (Microsoft Authentication Library).
Handles token acquisition and caching. Requests are made once; failures are
reported to the caller, never retried here.
"""

import logging
from typing import Any, Dict, Optional
from datetime import datetime, timedelta
import requests
from msal import ConfidentialClientApplication

from ..core.config import GraphAPIConfig
from ..core.exceptions import GraphAPIError, AuthenticationError, MeetingNotFoundError


logger = logging.getLogger(__name__)


class GraphAPIClient:
    """
    Microsoft Graph API client with MSAL authentication.

    Supports:
    - Client credentials flow (application permissions)
    - Token caching until shortly before expiry
    - Configurable request timeout

    Usage:
        config = GraphAPIConfig(client_id='...', client_secret='...', tenant_id='...')
        client = GraphAPIClient(config)
        response = client.get('/organization')
    """

    BASE_URL = "https://graph.microsoft.com/v1.0"

    def __init__(self, config: GraphAPIConfig, timeout: int = 30, msal_client: Optional[ConfidentialClientApplication] = None):
        """
        Initialize Graph API client.

        Args:
            config: GraphAPIConfig with client credentials
            timeout: Per-request timeout in seconds
            msal_client: Pre-built MSAL application (tests)
        """
        self.config = config
        self.timeout = timeout
        self.base_url = self.BASE_URL
        self._access_token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None

        self._msal_client = msal_client or ConfidentialClientApplication(
            client_id=config.client_id,
            client_credential=config.client_secret,
            authority=config.authority,
        )

        logger.info(f"GraphAPIClient initialized (tenant: {config.tenant_id[:8]}..., timeout: {timeout}s)")

    def _authenticate(self) -> str:
        """
        Acquire access token using client credentials flow.

        Returns:
            Access token string

        Raises:
            AuthenticationError: If authentication fails
        """
        # Check if we have a valid cached token
        if self._access_token and self._token_expires_at:
            if datetime.now() < self._token_expires_at - timedelta(minutes=5):
                logger.debug("Using cached access token")
                return self._access_token

        try:
            logger.info("Acquiring new access token from Microsoft Identity Platform")
            result = self._msal_client.acquire_token_for_client(scopes=self.config.scopes)
        except Exception as e:
            logger.error(f"Authentication failed: {e}", exc_info=True)
            raise AuthenticationError(f"Graph API authentication failed: {e}")

        if not result or "access_token" not in result:
            result = result or {}
            error_desc = result.get("error_description", result.get("error", "Unknown error"))
            logger.error(f"Failed to acquire Graph token: {error_desc}")
            raise AuthenticationError(f"Failed to acquire token: {error_desc}")

        self._access_token = result["access_token"]
        expires_in = result.get("expires_in", 3600)  # Default 1 hour
        self._token_expires_at = datetime.now() + timedelta(seconds=expires_in)

        logger.info(f"Access token acquired successfully (expires in {expires_in}s)")
        return self._access_token

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> requests.Response:
        """
        Make authenticated request to Graph API.

        Args:
            method: HTTP method (GET, PATCH, ...)
            endpoint: API endpoint (e.g., '/users' or full URL)
            params: Query parameters
            json: JSON body (for PATCH/POST)

        Returns:
            requests.Response object (2xx only)

        Raises:
            AuthenticationError: Token acquisition failed or 401/403 response
            MeetingNotFoundError: 404 response
            GraphAPIError: Any other non-2xx response
            requests.RequestException: Transport failure
        """
        token = self._authenticate()

        if endpoint.startswith("http"):
            url = endpoint
        else:
            url = f"{self.base_url}{endpoint}" if endpoint.startswith("/") else f"{self.base_url}/{endpoint}"

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        logger.debug(f"{method} {url}")
        response = requests.request(
            method=method,
            url=url,
            params=params,
            json=json,
            headers=headers,
            timeout=self.timeout,
        )

        if 200 <= response.status_code < 300:
            return response

        error_msg = f"Graph API request failed: {response.status_code} - {self._error_detail(response)}"
        logger.error(f"{method} {url} failed: {error_msg}")

        if response.status_code in (401, 403):
            # Drop the cached token so the next call re-authenticates
            self._access_token = None
            self._token_expires_at = None
            raise AuthenticationError(error_msg, status_code=response.status_code)
        if response.status_code == 404:
            raise MeetingNotFoundError(error_msg, status_code=response.status_code)
        raise GraphAPIError(error_msg, status_code=response.status_code)

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            error_data = response.json()
            return error_data.get("error", {}).get("message", response.text)
        except ValueError:
            return response.text

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET request to Graph API.

        Returns:
            JSON response as dictionary
        """
        response = self._request("GET", endpoint, params=params)
        return response.json()

    def patch(self, endpoint: str, json: Dict[str, Any]) -> Dict[str, Any]:
        """
        PATCH request to Graph API.

        Args:
            endpoint: API endpoint
            json: JSON body with fields to update

        Returns:
            JSON response as dictionary
        """
        response = self._request("PATCH", endpoint, json=json)
        return response.json() if response.content else {}

    def test_connection(self) -> bool:
        """
        Test Graph API connection by fetching organization info.

        Returns:
            True if connection successful

        Raises:
            GraphAPIError: If connection fails
        """
        try:
            logger.info("Testing Graph API connection...")
            result = self.get("/organization")
            org_name = result.get("value", [{}])[0].get("displayName", "Unknown")
            logger.info(f"✓ Graph API connection successful (org: {org_name})")
            return True
        except Exception as e:
            logger.error(f"✗ Graph API connection failed: {e}")
            raise GraphAPIError(f"Connection test failed: {e}")
