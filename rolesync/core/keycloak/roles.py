"""Keycloak role lookup and role-mapping operations."""
from __future__ import annotations
import logging
from typing import Optional, Sequence
from urllib.parse import quote

from .client import KeycloakClient
from .exceptions import KeycloakAPIError, RoleNotFoundError
from ..models import Role

logger = logging.getLogger(__name__)


class RoleService:
    """Service for reading roles and (un)assigning them to users."""

    def __init__(self, client: KeycloakClient):
        """Initialize role service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    def get_role_by_id(self, realm: str, role_id: str) -> Role:
        """Fetch a realm or client role by its id.

        Raises:
            RoleNotFoundError: If no role has this id
        """
        try:
            resp = self.client.get(f"/admin/realms/{realm}/roles-by-id/{role_id}")
        except KeycloakAPIError as exc:
            if exc.status_code == 404:
                raise RoleNotFoundError(f"Role '{role_id}' not found in realm '{realm}'") from exc
            raise
        return Role.from_representation(resp.json())

    def get_role_by_name(self, realm: str, client_uuid: Optional[str], name: str) -> Role:
        """Fetch a role by name; `client_uuid` None means a realm role.

        Raises:
            RoleNotFoundError: If the role does not exist in that namespace
        """
        if client_uuid:
            path = f"/admin/realms/{realm}/clients/{client_uuid}/roles/{quote(name, safe='')}"
            scope = f"client '{client_uuid}'"
        else:
            path = f"/admin/realms/{realm}/roles/{quote(name, safe='')}"
            scope = f"realm '{realm}'"
        try:
            resp = self.client.get(path)
        except KeycloakAPIError as exc:
            if exc.status_code == 404:
                raise RoleNotFoundError(f"Role '{name}' not found in {scope}") from exc
            raise
        return Role.from_representation(resp.json())

    def grant_realm_roles(self, realm: str, user_id: str, roles: Sequence[Role]) -> None:
        """Add realm roles to the user's role mappings in one call."""
        self.client.post(
            f"/admin/realms/{realm}/users/{user_id}/role-mappings/realm",
            json=[role.to_representation() for role in roles],
        )
        logger.info(f"[grant] {_names(roles)} -> user '{user_id}' (realm '{realm}')")

    def revoke_realm_roles(self, realm: str, user_id: str, roles: Sequence[Role]) -> None:
        """Remove realm roles from the user's role mappings in one call."""
        self.client.delete(
            f"/admin/realms/{realm}/users/{user_id}/role-mappings/realm",
            json=[role.to_representation() for role in roles],
        )
        logger.info(f"[revoke] {_names(roles)} <- user '{user_id}' (realm '{realm}')")

    def grant_client_roles(self, realm: str, user_id: str, client_uuid: str, roles: Sequence[Role]) -> None:
        """Add roles of one client to the user's role mappings in one call."""
        self.client.post(
            f"/admin/realms/{realm}/users/{user_id}/role-mappings/clients/{client_uuid}",
            json=[role.to_representation() for role in roles],
        )
        logger.info(f"[grant] {_names(roles)} -> user '{user_id}' (client '{client_uuid}')")

    def revoke_client_roles(self, realm: str, user_id: str, client_uuid: str, roles: Sequence[Role]) -> None:
        """Remove roles of one client from the user's role mappings in one call."""
        self.client.delete(
            f"/admin/realms/{realm}/users/{user_id}/role-mappings/clients/{client_uuid}",
            json=[role.to_representation() for role in roles],
        )
        logger.info(f"[revoke] {_names(roles)} <- user '{user_id}' (client '{client_uuid}')")


def _names(roles: Sequence[Role]) -> str:
    return ", ".join(sorted(role.name for role in roles))
