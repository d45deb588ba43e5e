"""Core reconciliation logic.

Module Structure:
    - keycloak/              : Keycloak Admin API directory client
    - models.py              : Role, Client, User, role mappings
    - resolver.py            : Role ids / held role names -> role mappings
    - reconciler.py          : Subtract common roles, grant then revoke
    - user_roles_service.py  : Create / Read / Update / Delete / Import
    - audit.py               : Signed JSONL audit trail
"""
from .keycloak import KeycloakDirectory
from .models import (
    REALM_NAMESPACE,
    Client,
    ReconciliationTarget,
    Role,
    RoleChanges,
    RoleMapping,
    User,
)
from .reconciler import RoleReconciler, subtract_common
from .resolver import NamespaceResolver
from .user_roles_service import UserRolesService, external_id, import_id

__all__ = [
    "KeycloakDirectory",
    "REALM_NAMESPACE",
    "Client",
    "ReconciliationTarget",
    "Role",
    "RoleChanges",
    "RoleMapping",
    "User",
    "RoleReconciler",
    "subtract_common",
    "NamespaceResolver",
    "UserRolesService",
    "external_id",
    "import_id",
]
