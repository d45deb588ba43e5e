"""Keycloak client (application) lookups."""
from __future__ import annotations

from .client import KeycloakClient
from .exceptions import ClientNotFoundError, KeycloakAPIError
from ..models import Client


class ClientService:
    """Service for resolving Keycloak clients by internal id or clientId."""

    def __init__(self, client: KeycloakClient):
        """Initialize client service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    def get_client(self, realm: str, client_uuid: str) -> Client:
        """Return the client with this internal id.

        Raises:
            ClientNotFoundError: If the client does not exist
        """
        try:
            resp = self.client.get(f"/admin/realms/{realm}/clients/{client_uuid}")
        except KeycloakAPIError as exc:
            if exc.status_code == 404:
                raise ClientNotFoundError(f"Client '{client_uuid}' not found in realm '{realm}'") from exc
            raise
        return Client.from_representation(resp.json())

    def get_client_by_name(self, realm: str, client_id: str) -> Client:
        """Return the client whose clientId matches exactly.

        Raises:
            ClientNotFoundError: If no client has this clientId
        """
        resp = self.client.get(f"/admin/realms/{realm}/clients", params={"clientId": client_id})
        for rep in resp.json() or []:
            if rep.get("clientId") == client_id:
                return Client.from_representation(rep)
        raise ClientNotFoundError(f"Client '{client_id}' not found in realm '{realm}'")
