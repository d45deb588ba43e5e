"""Namespace resolution: role ids / role names -> roles grouped per namespace.

A role mapping groups roles under a namespace key: ``REALM_NAMESPACE`` for
realm roles, the owning client's internal id for client roles. Declared roles
arrive as ids, the user's live memberships arrive as names; the resolver turns
both into the same mapping shape so the reconciler can compare role ids.

The directory passed in must provide ``get_role_by_id``, ``get_role_by_name``,
``get_client`` and ``get_client_by_name`` (see ``KeycloakDirectory``).
"""
from __future__ import annotations
import logging
from typing import Dict, Iterable, List, Optional

from .models import REALM_NAMESPACE, NamespaceKey, Role, RoleMapping, User

logger = logging.getLogger(__name__)


class NamespaceResolver:
    """Resolves role identifiers and user memberships into role mappings."""

    def __init__(self, directory):
        """Initialize resolver.

        Args:
            directory: Directory client (e.g. KeycloakDirectory)
        """
        self.directory = directory

    def resolve(self, role_ids: Iterable[str], realm_id: str) -> RoleMapping:
        """Fetch every declared role id and group the roles by namespace.

        Duplicate ids are collapsed. Client roles are grouped under the id of
        the owning client, which is looked up once per distinct client.

        Raises:
            RoleNotFoundError: If an id does not resolve to a role
            ClientNotFoundError: If a role's owning client does not exist
        """
        mapping: RoleMapping = {}
        seen = set()
        owners: Dict[str, str] = {}

        for role_id in role_ids:
            if role_id in seen:
                continue
            seen.add(role_id)

            role = self.directory.get_role_by_id(realm_id, role_id)
            if role.client_role:
                if role.container_id not in owners:
                    owners[role.container_id] = self.directory.get_client(realm_id, role.container_id).id
                namespace: NamespaceKey = owners[role.container_id]
            else:
                namespace = REALM_NAMESPACE
            mapping.setdefault(namespace, []).append(role)

        logger.debug(f"[resolve] {len(seen)} declared role id(s) across {len(mapping)} namespace(s)")
        return mapping

    def resolve_from_user(self, user: User, known_roles: Optional[RoleMapping] = None) -> RoleMapping:
        """Resolve the user's current role names into a role mapping.

        ``known_roles`` acts as a cache: a name already present in the same
        namespace is reused as-is instead of being fetched again, so a role held
        and declared resolves to the very same object on both sides.

        Raises:
            RoleNotFoundError: If a held role name no longer resolves
            ClientNotFoundError: If a client name does not resolve
        """
        cache = _index_by_name(known_roles or {})
        mapping: RoleMapping = {}

        realm_roles = self._resolve_names(user.realm_id, REALM_NAMESPACE, user.realm_roles, cache)
        if realm_roles:
            mapping[REALM_NAMESPACE] = realm_roles

        client_keys: Dict[str, str] = {}
        for client_name, role_names in user.client_roles.items():
            if not role_names:
                continue
            if client_name not in client_keys:
                client_keys[client_name] = self.directory.get_client_by_name(user.realm_id, client_name).id
            namespace = client_keys[client_name]

            roles = self._resolve_names(user.realm_id, namespace, role_names, cache)
            if roles:
                known_ids = {role.id for role in mapping.get(namespace, [])}
                mapping.setdefault(namespace, []).extend(r for r in roles if r.id not in known_ids)

        return mapping

    def _resolve_names(
        self,
        realm_id: str,
        namespace: NamespaceKey,
        names: Iterable[str],
        cache: Dict[NamespaceKey, Dict[str, Role]],
    ) -> List[Role]:
        cached = cache.get(namespace, {})
        resolved: List[Role] = []
        seen_ids = set()
        for name in names:
            role = cached.get(name)
            if role is None:
                role = self.directory.get_role_by_name(realm_id, namespace, name)
            if role.id in seen_ids:
                continue
            seen_ids.add(role.id)
            resolved.append(role)
        return resolved


def _index_by_name(mapping: RoleMapping) -> Dict[NamespaceKey, Dict[str, Role]]:
    """Per-namespace role-name index used for O(1) cache lookups."""
    return {namespace: {role.name: role for role in roles} for namespace, roles in mapping.items()}
