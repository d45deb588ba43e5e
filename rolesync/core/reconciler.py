"""Diff & apply: converge a user's role mappings onto a declared mapping.

Roles are compared by id, namespace by namespace. Everything only in the
desired mapping is granted, everything only in the current mapping is
revoked. Grants run before revokes, one batched call per namespace, and the
first failing call aborts the run (no rollback; re-running converges).
"""
from __future__ import annotations
import logging
from collections import Counter
from typing import List, Sequence, Tuple

from .models import REALM_NAMESPACE, Role, RoleChanges, RoleMapping, User

logger = logging.getLogger(__name__)


def subtract_common(desired: RoleMapping, current: RoleMapping) -> Tuple[RoleMapping, RoleMapping]:
    """Remove roles present on both sides, pairing one occurrence per side.

    Returns new mappings ``(to_grant, to_revoke)``; the inputs are left
    untouched. Namespaces left empty are dropped.
    """
    to_grant: RoleMapping = {}
    to_revoke: RoleMapping = {}

    for namespace in set(desired) | set(current):
        wanted = desired.get(namespace, [])
        held = current.get(namespace, [])

        held_counts = Counter(role.id for role in held)
        grant = _unmatched(wanted, held_counts)
        wanted_counts = Counter(role.id for role in wanted)
        revoke = _unmatched(held, wanted_counts)

        if grant:
            to_grant[namespace] = grant
        if revoke:
            to_revoke[namespace] = revoke

    return to_grant, to_revoke


def _unmatched(roles: Sequence[Role], other_counts: Counter) -> List[Role]:
    remaining = Counter(other_counts)
    result = []
    for role in roles:
        if remaining[role.id] > 0:
            remaining[role.id] -= 1
        else:
            result.append(role)
    return result


class RoleReconciler:
    """Applies role mapping differences through the directory client."""

    def __init__(self, directory):
        """Initialize reconciler.

        Args:
            directory: Directory client providing grant/revoke realm and client roles
        """
        self.directory = directory

    def grant(self, mapping: RoleMapping, user: User) -> None:
        """Grant every role in the mapping, realm namespace first."""
        realm_roles = mapping.get(REALM_NAMESPACE)
        if realm_roles:
            self.directory.grant_realm_roles(user.realm_id, user.id, realm_roles)

        for namespace, roles in mapping.items():
            if namespace is REALM_NAMESPACE or not roles:
                continue
            self.directory.grant_client_roles(user.realm_id, user.id, namespace, roles)

    def revoke(self, mapping: RoleMapping, user: User) -> None:
        """Revoke every role in the mapping, realm namespace first."""
        realm_roles = mapping.get(REALM_NAMESPACE)
        if realm_roles:
            self.directory.revoke_realm_roles(user.realm_id, user.id, realm_roles)

        for namespace, roles in mapping.items():
            if namespace is REALM_NAMESPACE or not roles:
                continue
            self.directory.revoke_client_roles(user.realm_id, user.id, namespace, roles)

    def reconcile(self, desired: RoleMapping, current: RoleMapping, user: User) -> RoleChanges:
        """Grant what is missing, then revoke what is no longer declared.

        Returns:
            The roles granted and revoked, per namespace

        Raises:
            KeycloakError: First failure from the directory; later calls are skipped
        """
        to_grant, to_revoke = subtract_common(desired, current)
        changes = RoleChanges(granted=to_grant, revoked=to_revoke)

        if changes.is_empty:
            logger.info(f"[update] User '{user.id}' already holds the declared roles")
            return changes

        self.grant(to_grant, user)
        self.revoke(to_revoke, user)
        return changes
