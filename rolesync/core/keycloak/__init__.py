"""Keycloak Admin API client library.

This package provides the directory client the reconciliation core talks to.

Architecture:
- client.py: HTTP client with authentication and auto-refresh
- users.py: User lookup and current role memberships
- roles.py: Role lookup and role-mapping grant/revoke
- clients.py: Client (application) lookup by id or clientId
- directory.py: Facade exposing the directory capability set
- exceptions.py: Typed exceptions for error handling

Usage:
    from rolesync.core.keycloak import KeycloakClient, KeycloakDirectory

    client = KeycloakClient("http://keycloak:8080")
    client.authenticate_service_account("master", "automation-cli", "secret")

    directory = KeycloakDirectory(client)
    user = directory.get_user("demo", "6f1c...")
"""
from .client import (
    KeycloakClient,
    create_client_with_token,
    REQUEST_TIMEOUT,
)
from .exceptions import (
    KeycloakError,
    TransportError,
    KeycloakAPIError,
    NotFoundError,
    UserNotFoundError,
    RoleNotFoundError,
    ClientNotFoundError,
    InvalidFormatError,
)
from .users import UserService
from .roles import RoleService
from .clients import ClientService
from .directory import KeycloakDirectory

__all__ = [
    # Client
    "KeycloakClient",
    "create_client_with_token",
    "REQUEST_TIMEOUT",

    # Exceptions
    "KeycloakError",
    "TransportError",
    "KeycloakAPIError",
    "NotFoundError",
    "UserNotFoundError",
    "RoleNotFoundError",
    "ClientNotFoundError",
    "InvalidFormatError",

    # Services
    "UserService",
    "RoleService",
    "ClientService",
    "KeycloakDirectory",
]
