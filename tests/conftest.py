"""Pytest shared fixtures: network guard rails and an in-memory directory."""
import pathlib
import sys
from typing import Dict, List, Optional, Set

import pytest
import requests

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from rolesync.core import audit
from rolesync.core.keycloak.exceptions import (
    ClientNotFoundError,
    KeycloakAPIError,
    RoleNotFoundError,
    UserNotFoundError,
)
from rolesync.core.models import Client, Role, User


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch, request):
    """Prevent unit tests from reaching a live Keycloak.

    Integration tests are marked with @pytest.mark.integration and skip this guard.
    """
    if request.node.get_closest_marker("integration"):
        return

    def _refuse(method):
        def _call(url, *args, **kwargs):
            raise RuntimeError(f"Unexpected HTTP {method} in unit test: {url}")
        return _call

    monkeypatch.setattr(requests, "get", _refuse("GET"))
    monkeypatch.setattr(requests, "post", _refuse("POST"))
    monkeypatch.setattr(requests, "delete", _refuse("DELETE"))


@pytest.fixture(autouse=True)
def _isolate_audit_log(monkeypatch, tmp_path):
    """Keep audit events of every test inside its tmp_path."""
    audit_dir = tmp_path / "audit"
    monkeypatch.setattr(audit, "AUDIT_LOG_DIR", audit_dir)
    monkeypatch.setattr(audit, "AUDIT_LOG_FILE", audit_dir / "role-events.jsonl")
    monkeypatch.setenv("AUDIT_LOG_SIGNING_KEY", "test-signing-key-for-audit-trail")
    return audit_dir / "role-events.jsonl"


# ─────────────────────────────────────────────────────────────────────────────
# In-memory directory
# ─────────────────────────────────────────────────────────────────────────────
class FakeDirectory:
    """Directory client backed by dicts; records every call it receives.

    Grants and revokes mutate the held role ids, so reads after a run reflect
    its effects like the real server would.
    """

    WRITES = ("grant_realm_roles", "revoke_realm_roles", "grant_client_roles", "revoke_client_roles")

    def __init__(self, realm: str = "demo"):
        self.realm = realm
        self.roles: Dict[str, Role] = {}
        self.clients: Dict[str, Client] = {}
        self.users: Dict[str, Set[str]] = {}
        self.usernames: Dict[str, str] = {}
        self.calls: List[tuple] = []
        self.fail_on: Optional[str] = None

    # setup helpers
    def add_client(self, uuid: str, client_id: str) -> Client:
        self.clients[uuid] = Client(id=uuid, client_id=client_id)
        return self.clients[uuid]

    def add_realm_role(self, role_id: str, name: str) -> Role:
        self.roles[role_id] = Role(id=role_id, name=name, client_role=False, container_id="realm-uuid")
        return self.roles[role_id]

    def add_client_role(self, role_id: str, name: str, client_uuid: str) -> Role:
        self.roles[role_id] = Role(id=role_id, name=name, client_role=True, container_id=client_uuid)
        return self.roles[role_id]

    def add_user(self, user_id: str, username: str = "", role_ids=()) -> None:
        self.users[user_id] = set(role_ids)
        if username:
            self.usernames[username] = user_id

    def held(self, user_id: str) -> Set[str]:
        return set(self.users[user_id])

    def writes(self) -> List[tuple]:
        return [call for call in self.calls if call[0] in self.WRITES]

    def lookups(self, method: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == method]

    # directory interface
    def get_user(self, realm_id, user_id):
        self.calls.append(("get_user", user_id))
        if user_id not in self.users:
            raise UserNotFoundError(f"User '{user_id}' not found in realm '{realm_id}'")
        realm_roles = []
        client_roles: Dict[str, List[str]] = {}
        for role_id in sorted(self.users[user_id]):
            role = self.roles[role_id]
            if role.client_role:
                client_name = self.clients[role.container_id].client_id
                client_roles.setdefault(client_name, []).append(role.name)
            else:
                realm_roles.append(role.name)
        return User(id=user_id, realm_id=realm_id, realm_roles=realm_roles, client_roles=client_roles)

    def get_user_by_username(self, realm_id, username):
        self.calls.append(("get_user_by_username", username))
        if username not in self.usernames:
            raise UserNotFoundError(f"User '{username}' not found in realm '{realm_id}'")
        return self.get_user(realm_id, self.usernames[username])

    def get_role_by_id(self, realm_id, role_id):
        self.calls.append(("get_role_by_id", role_id))
        if role_id not in self.roles:
            raise RoleNotFoundError(f"Role '{role_id}' not found in realm '{realm_id}'")
        return self.roles[role_id]

    def get_role_by_name(self, realm_id, namespace, name):
        self.calls.append(("get_role_by_name", namespace, name))
        for role in self.roles.values():
            if role.namespace == namespace and role.name == name:
                # Fresh object, like a new HTTP response would be
                return Role(role.id, role.name, role.client_role, role.container_id)
        raise RoleNotFoundError(f"Role '{name}' not found")

    def get_client(self, realm_id, client_uuid):
        self.calls.append(("get_client", client_uuid))
        if client_uuid not in self.clients:
            raise ClientNotFoundError(f"Client '{client_uuid}' not found in realm '{realm_id}'")
        return self.clients[client_uuid]

    def get_client_by_name(self, realm_id, name):
        self.calls.append(("get_client_by_name", name))
        for client in self.clients.values():
            if client.client_id == name:
                return client
        raise ClientNotFoundError(f"Client '{name}' not found in realm '{realm_id}'")

    def _write(self, method, user_id, namespace, roles, grant):
        self.calls.append((method, namespace, tuple(sorted(role.id for role in roles))))
        if self.fail_on == method:
            raise KeycloakAPIError(500, "boom", f"/{method}")
        for role in roles:
            if grant:
                self.users[user_id].add(role.id)
            else:
                self.users[user_id].discard(role.id)

    def grant_realm_roles(self, realm_id, user_id, roles):
        self._write("grant_realm_roles", user_id, None, roles, grant=True)

    def revoke_realm_roles(self, realm_id, user_id, roles):
        self._write("revoke_realm_roles", user_id, None, roles, grant=False)

    def grant_client_roles(self, realm_id, user_id, namespace, roles):
        self._write("grant_client_roles", user_id, namespace, roles, grant=True)

    def revoke_client_roles(self, realm_id, user_id, namespace, roles):
        self._write("revoke_client_roles", user_id, namespace, roles, grant=False)


@pytest.fixture()
def directory():
    """Realm 'demo' with realm roles, two clients ('svc', 'web') and user 'u1' (alice)."""
    fake = FakeDirectory()
    fake.add_client("c-svc", "svc")
    fake.add_client("c-web", "web")
    fake.add_realm_role("r-admin", "admin")
    fake.add_realm_role("r-viewer", "viewer")
    fake.add_realm_role("r-editor", "editor")
    fake.add_client_role("s-read", "read", "c-svc")
    fake.add_client_role("s-write", "write", "c-svc")
    fake.add_client_role("s-owner", "owner", "c-svc")
    fake.add_client_role("w-login", "login", "c-web")
    fake.add_client_role("w-admin", "admin", "c-web")
    fake.add_user("u1", username="alice")
    return fake
