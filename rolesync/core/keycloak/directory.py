"""Directory facade used by the reconciliation core.

Groups the user, role and client services behind the capability set the
resolver and reconciler call. Any object exposing the same methods can be
passed instead (tests use an in-memory fake).
"""
from __future__ import annotations
from typing import Optional, Sequence

from .client import KeycloakClient
from .clients import ClientService
from .roles import RoleService
from .users import UserService
from ..models import Client, Role, User


class KeycloakDirectory:
    """Keycloak Admin API implementation of the directory client."""

    def __init__(self, client: KeycloakClient):
        self.client = client
        self.users = UserService(client)
        self.roles = RoleService(client)
        self.clients = ClientService(client)

    def get_user(self, realm_id: str, user_id: str) -> User:
        return self.users.get_user(realm_id, user_id)

    def get_user_by_username(self, realm_id: str, username: str) -> User:
        return self.users.get_user_by_username(realm_id, username)

    def get_role_by_id(self, realm_id: str, role_id: str) -> Role:
        return self.roles.get_role_by_id(realm_id, role_id)

    def get_role_by_name(self, realm_id: str, namespace: Optional[str], name: str) -> Role:
        return self.roles.get_role_by_name(realm_id, namespace, name)

    def get_client(self, realm_id: str, client_uuid: str) -> Client:
        return self.clients.get_client(realm_id, client_uuid)

    def get_client_by_name(self, realm_id: str, name: str) -> Client:
        return self.clients.get_client_by_name(realm_id, name)

    def grant_realm_roles(self, realm_id: str, user_id: str, roles: Sequence[Role]) -> None:
        self.roles.grant_realm_roles(realm_id, user_id, roles)

    def revoke_realm_roles(self, realm_id: str, user_id: str, roles: Sequence[Role]) -> None:
        self.roles.revoke_realm_roles(realm_id, user_id, roles)

    def grant_client_roles(self, realm_id: str, user_id: str, namespace: str, roles: Sequence[Role]) -> None:
        self.roles.grant_client_roles(realm_id, user_id, namespace, roles)

    def revoke_client_roles(self, realm_id: str, user_id: str, namespace: str, roles: Sequence[Role]) -> None:
        self.roles.revoke_client_roles(realm_id, user_id, namespace, roles)
