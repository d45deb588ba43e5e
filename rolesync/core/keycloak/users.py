"""Keycloak user lookup operations."""
from __future__ import annotations
import logging
from typing import Dict, List

from .client import KeycloakClient
from .exceptions import KeycloakAPIError, UserNotFoundError
from ..models import User

logger = logging.getLogger(__name__)


class UserService:
    """Service for reading Keycloak users and their role memberships."""

    def __init__(self, client: KeycloakClient):
        """Initialize user service.

        Args:
            client: Authenticated Keycloak client
        """
        self.client = client

    def get_user(self, realm: str, user_id: str) -> User:
        """Return the user with its current realm and client role names.

        Args:
            realm: Realm name
            user_id: Keycloak user id

        Returns:
            User with `realm_roles` and `client_roles` populated

        Raises:
            UserNotFoundError: If no user has this id
        """
        try:
            user_rep = self.client.get(f"/admin/realms/{realm}/users/{user_id}").json()
            mappings = self.client.get(f"/admin/realms/{realm}/users/{user_id}/role-mappings").json() or {}
        except KeycloakAPIError as exc:
            if exc.status_code == 404:
                raise UserNotFoundError(f"User '{user_id}' not found in realm '{realm}'") from exc
            raise

        realm_roles, client_roles = self._role_names(mappings)
        logger.debug(
            f"[users] '{user_id}' holds {len(realm_roles)} realm role(s) "
            f"and roles on {len(client_roles)} client(s)"
        )
        return User(
            id=user_rep.get("id", user_id),
            realm_id=realm,
            username=user_rep.get("username", ""),
            realm_roles=realm_roles,
            client_roles=client_roles,
        )

    def get_user_by_username(self, realm: str, username: str) -> User:
        """Return the user that exactly matches the username.

        Raises:
            UserNotFoundError: If the username does not exist
        """
        resp = self.client.get(
            f"/admin/realms/{realm}/users",
            params={"username": username, "exact": "true"},
        )
        for user in resp.json() or []:
            if user.get("username") == username:
                return self.get_user(realm, user["id"])
        raise UserNotFoundError(f"User '{username}' not found in realm '{realm}'")

    @staticmethod
    def _role_names(mappings: dict) -> tuple[List[str], Dict[str, List[str]]]:
        """Split a MappingsRepresentation into realm role names and client role names."""
        realm_roles = [role["name"] for role in mappings.get("realmMappings") or []]
        client_roles: Dict[str, List[str]] = {}
        for client_name, client_mapping in (mappings.get("clientMappings") or {}).items():
            names = [role["name"] for role in client_mapping.get("mappings") or []]
            if names:
                client_roles[client_mapping.get("client") or client_name] = names
        return realm_roles, client_roles
