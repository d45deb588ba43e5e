"""Reference data shared by the resolver, the reconciler and the directory client."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

# Namespace key for realm-scoped roles; client namespaces use the client's internal id.
REALM_NAMESPACE: Optional[str] = None

NamespaceKey = Optional[str]
RoleMapping = Dict[NamespaceKey, List["Role"]]


@dataclass(frozen=True)
class Role:
    """A realm- or client-scoped role as returned by Keycloak."""
    id: str
    name: str
    client_role: bool = False
    container_id: str = ""

    @property
    def namespace(self) -> NamespaceKey:
        """Namespace key this role is grouped under."""
        if self.client_role:
            return self.container_id
        return REALM_NAMESPACE

    @classmethod
    def from_representation(cls, rep: dict) -> "Role":
        """Build a Role from a Keycloak RoleRepresentation."""
        return cls(
            id=rep["id"],
            name=rep["name"],
            client_role=bool(rep.get("clientRole", False)),
            container_id=rep.get("containerId") or "",
        )

    def to_representation(self) -> dict:
        """Minimal representation accepted by the role-mapping endpoints."""
        return {"id": self.id, "name": self.name}


@dataclass(frozen=True)
class Client:
    """A registered application; `id` is the internal id used as namespace key."""
    id: str
    client_id: str

    @classmethod
    def from_representation(cls, rep: dict) -> "Client":
        return cls(id=rep["id"], client_id=rep.get("clientId", ""))


@dataclass
class User:
    """A user and its current memberships, reported by role *name*.

    Attributes:
        id: Keycloak user id
        realm_id: Realm the user lives in
        username: Username, when known
        realm_roles: Names of realm-scoped roles directly mapped to the user
        client_roles: Client name (clientId) -> names of that client's roles
    """
    id: str
    realm_id: str
    username: str = ""
    realm_roles: List[str] = field(default_factory=list)
    client_roles: Dict[str, List[str]] = field(default_factory=dict)


@dataclass(frozen=True)
class ReconciliationTarget:
    """Realm, user and declared role ids for one reconciliation run."""
    realm_id: str
    user_id: str
    role_ids: Tuple[str, ...] = ()

    @classmethod
    def of(cls, realm_id: str, user_id: str, role_ids) -> "ReconciliationTarget":
        return cls(realm_id=realm_id, user_id=user_id, role_ids=tuple(role_ids))


@dataclass
class RoleChanges:
    """Outcome of a reconciliation: roles granted and roles revoked, per namespace."""
    granted: RoleMapping = field(default_factory=dict)
    revoked: RoleMapping = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.granted and not self.revoked

    def summary(self) -> dict:
        """JSON-friendly view keyed by namespace ("realm" for realm scope)."""
        return {
            "granted": _mapping_summary(self.granted),
            "revoked": _mapping_summary(self.revoked),
        }


def mapping_role_ids(mapping: RoleMapping) -> List[str]:
    """Flatten a role mapping into its role ids."""
    return [role.id for roles in mapping.values() for role in roles]


def _mapping_summary(mapping: RoleMapping) -> Dict[str, List[str]]:
    return {
        ("realm" if key is REALM_NAMESPACE else key): sorted(role.name for role in roles)
        for key, roles in mapping.items()
    }
