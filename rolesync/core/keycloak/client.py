"""Low-level HTTP client for Keycloak Admin API.

Handles authentication, token management, and HTTP operations.
"""
from __future__ import annotations
import os
from typing import Optional, Dict, Any
from datetime import datetime, timedelta

import requests

from .exceptions import KeycloakAPIError, TransportError

REQUEST_TIMEOUT = 5


class KeycloakClient:
    """HTTP client for Keycloak Admin API with automatic token management.

    Features:
    - Automatic token refresh when expired
    - Centralized error handling (HTTP errors and transport failures)
    - Support for both admin and service account authentication

    Usage:
        client = KeycloakClient("http://keycloak:8080")
        client.authenticate_admin("admin", "password")
        response = client.get("/admin/realms/demo/users")
    """

    def __init__(self, base_url: Optional[str] = None, timeout: float = REQUEST_TIMEOUT):
        """Initialize Keycloak client.

        Args:
            base_url: Keycloak base URL (defaults to KEYCLOAK_URL env var)
            timeout: Per-request timeout in seconds
        """
        self.base_url = (base_url or os.environ.get("KEYCLOAK_URL", "http://keycloak:8080")).rstrip("/")
        self.timeout = timeout
        self._token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self._auth_method: Optional[str] = None
        self._auth_params: Dict[str, Any] = {}

    def authenticate_admin(self, username: str, password: str, realm: str = "master") -> str:
        """Authenticate as admin user and store credentials for auto-refresh.

        Args:
            username: Admin username
            password: Admin password
            realm: Authentication realm (default: master)

        Returns:
            Access token
        """
        self._auth_method = "admin"
        self._auth_params = {"username": username, "password": password, "realm": realm}
        token = self._get_admin_token(username, password, realm)
        self._token = token
        # Conservative expiry: assume 60 seconds
        self._token_expires_at = datetime.now() + timedelta(seconds=60)
        return token

    def authenticate_service_account(self, auth_realm: str, client_id: str, client_secret: str) -> str:
        """Authenticate as service account and store credentials for auto-refresh.

        Args:
            auth_realm: Realm where service account client exists
            client_id: Service account client ID
            client_secret: Service account client secret

        Returns:
            Access token
        """
        self._auth_method = "service_account"
        self._auth_params = {
            "auth_realm": auth_realm,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        token = self._get_service_account_token(auth_realm, client_id, client_secret)
        self._token = token
        self._token_expires_at = datetime.now() + timedelta(seconds=60)
        return token

    def _ensure_authenticated(self) -> None:
        """Ensure we have a valid token, refreshing if necessary."""
        if not self._token or not self._token_expires_at:
            raise KeycloakAPIError(401, "Not authenticated - call authenticate_admin or authenticate_service_account first", "")

        # Refresh if token expired or expiring soon (within 10 seconds)
        if datetime.now() >= self._token_expires_at - timedelta(seconds=10):
            if self._auth_method == "admin":
                self._token = self._get_admin_token(
                    self._auth_params["username"],
                    self._auth_params["password"],
                    self._auth_params["realm"],
                )
            elif self._auth_method == "service_account":
                self._token = self._get_service_account_token(
                    self._auth_params["auth_realm"],
                    self._auth_params["client_id"],
                    self._auth_params["client_secret"],
                )
            else:
                # Pre-set token (create_client_with_token): nothing to refresh with
                return
            self._token_expires_at = datetime.now() + timedelta(seconds=60)

    def _auth_headers(self, kwargs: Dict[str, Any]) -> Dict[str, str]:
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute GET request with automatic authentication.

        Args:
            path: API endpoint path (e.g., "/admin/realms/demo/users")
            params: Query parameters
            **kwargs: Additional arguments for requests.get

        Returns:
            Response object

        Raises:
            KeycloakAPIError: On HTTP error
            TransportError: When the request could not be sent
        """
        self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = self._auth_headers(kwargs)
        try:
            resp = requests.get(url, params=params, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"GET {url} failed: {exc}") from exc
        self._handle_error(resp)
        return resp

    def post(self, path: str, json: Optional[Any] = None, data: Optional[Dict] = None, **kwargs) -> requests.Response:
        """Execute POST request with automatic authentication.

        Args:
            path: API endpoint path
            json: JSON payload
            data: Form data payload
            **kwargs: Additional arguments for requests.post

        Returns:
            Response object

        Raises:
            KeycloakAPIError: On HTTP error
            TransportError: When the request could not be sent
        """
        self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = self._auth_headers(kwargs)
        try:
            resp = requests.post(url, json=json, data=data, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"POST {url} failed: {exc}") from exc
        self._handle_error(resp)
        return resp

    def delete(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        """Execute DELETE request with automatic authentication.

        Keycloak role-mapping removal takes the roles as a JSON body.

        Args:
            path: API endpoint path
            json: Optional JSON payload
            **kwargs: Additional arguments for requests.delete

        Returns:
            Response object

        Raises:
            KeycloakAPIError: On HTTP error
            TransportError: When the request could not be sent
        """
        self._ensure_authenticated()
        url = f"{self.base_url}{path}"
        headers = self._auth_headers(kwargs)
        try:
            resp = requests.delete(url, json=json, headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise TransportError(f"DELETE {url} failed: {exc}") from exc
        self._handle_error(resp)
        return resp

    def _request_token(self, realm: str, data: Dict[str, str]) -> str:
        url = f"{self.base_url}/realms/{realm}/protocol/openid-connect/token"
        try:
            resp = requests.post(url, data=data, timeout=self.timeout)
        except requests.RequestException as exc:
            raise TransportError(f"Token request to {url} failed: {exc}") from exc
        if resp.status_code != 200:
            raise KeycloakAPIError(resp.status_code, resp.text, url)
        return resp.json()["access_token"]

    def _get_admin_token(self, username: str, password: str, realm: str = "master") -> str:
        """Obtain an admin token via direct access grant."""
        return self._request_token(realm, {
            "grant_type": "password",
            "client_id": "admin-cli",
            "username": username,
            "password": password,
        })

    def _get_service_account_token(self, auth_realm: str, client_id: str, client_secret: str) -> str:
        """Fetch a service account token using client credentials flow."""
        return self._request_token(auth_realm, {
            "grant_type": "client_credentials",
            "client_id": client_id,
            "client_secret": client_secret,
        })

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Raises:
            KeycloakAPIError: If response status indicates error
        """
        if resp.status_code >= 400:
            raise KeycloakAPIError(resp.status_code, resp.text, resp.url)


def create_client_with_token(kc_url: str, token: str, expires_in: int = 3600,
                             timeout: float = REQUEST_TIMEOUT) -> KeycloakClient:
    """Create a pre-authenticated KeycloakClient from an already obtained token.

    Args:
        kc_url: Keycloak base URL
        token: Pre-obtained access token
        expires_in: Token validity in seconds (default: 1 hour)
        timeout: Per-request timeout in seconds

    Returns:
        KeycloakClient instance with token pre-set
    """
    client = KeycloakClient(kc_url, timeout=timeout)
    client._token = token
    client._token_expires_at = datetime.now() + timedelta(seconds=expires_in)
    return client
