"""
User Roles Service: authoritative role assignments for one user.

Entry points used by the command line (and any configuration-management
layer) to keep a user's realm and client roles equal to a declared set of
role ids:

    create(target)      grant the declared roles wholesale, return "{realm}/{user}"
    read(target)        role ids the user currently holds
    update(target)      diff declared vs. held roles, grant then revoke
    delete(target)      revoke the declared roles wholesale
    import_id(id)       "{realm}/{user}" -> (realm, user)

Runs are sequential and stateless; callers must not run overlapping
reconciliations for the same (realm, user).
"""

from __future__ import annotations
import logging
from typing import Callable, List, Optional, Tuple, TypeVar

from .audit import EventType, safe_log_role_event
from .keycloak.exceptions import InvalidFormatError, KeycloakError
from .models import ReconciliationTarget, RoleChanges, User, mapping_role_ids
from .reconciler import RoleReconciler
from .resolver import NamespaceResolver

logger = logging.getLogger(__name__)

ID_SEPARATOR = "/"

T = TypeVar("T")


def external_id(realm_id: str, user_id: str) -> str:
    """Opaque reference for a managed user role set."""
    return f"{realm_id}{ID_SEPARATOR}{user_id}"


def import_id(value: str) -> Tuple[str, str]:
    """Split an external id back into (realm_id, user_id).

    Raises:
        InvalidFormatError: Unless the id is exactly two non-empty parts
    """
    parts = value.split(ID_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise InvalidFormatError(
            f"Invalid import id '{value}'. Supported import format: {{{{realm}}}}/{{{{userId}}}}."
        )
    return parts[0], parts[1]


class UserRolesService:
    """Create/Read/Update/Delete/Import for a user's declared role set."""

    def __init__(self, directory, *, operator: Optional[str] = None):
        """Initialize service.

        Args:
            directory: Directory client (e.g. KeycloakDirectory)
            operator: Audit operator name; audit events are only written when set
        """
        self.directory = directory
        self.resolver = NamespaceResolver(directory)
        self.reconciler = RoleReconciler(directory)
        self.operator = operator

    def create(self, target: ReconciliationTarget) -> str:
        """Grant the declared roles to a freshly managed user.

        Existing memberships are not inspected.

        Returns:
            External id "{realm_id}/{user_id}"
        """
        def run() -> str:
            user = self._get_user(target)
            desired = self.resolver.resolve(target.role_ids, target.realm_id)
            self.reconciler.grant(desired, user)
            logger.info(f"[create] Granted {len(mapping_role_ids(desired))} role(s) to '{user.id}'")
            return external_id(target.realm_id, target.user_id)

        return self._audited("user_roles_create", target, run, details={"role_ids": sorted(set(target.role_ids))})

    def read(self, target: ReconciliationTarget) -> List[str]:
        """Return the ids of the roles the user currently holds, realm and clients."""
        user = self._get_user(target)
        current = self.resolver.resolve_from_user(user, {})
        return mapping_role_ids(current)

    def update(self, target: ReconciliationTarget) -> RoleChanges:
        """Converge the user's roles onto the declared set.

        Returns:
            Roles granted and revoked by this run
        """
        def run() -> RoleChanges:
            user = self._get_user(target)
            desired = self.resolver.resolve(target.role_ids, target.realm_id)
            current = self.resolver.resolve_from_user(user, desired)
            changes = self.reconciler.reconcile(desired, current, user)
            if not changes.is_empty:
                summary = changes.summary()
                logger.info(f"[update] '{user.id}': granted={summary['granted']} revoked={summary['revoked']}")
            return changes

        return self._audited("user_roles_update", target, run, summarize=lambda changes: changes.summary())

    def delete(self, target: ReconciliationTarget) -> None:
        """Revoke the declared roles, whatever else the user holds.

        Raises:
            UserNotFoundError: If the user no longer exists
        """
        def run() -> None:
            user = self._get_user(target)
            declared = self.resolver.resolve(target.role_ids, target.realm_id)
            self.reconciler.revoke(declared, user)
            logger.info(f"[delete] Revoked {len(mapping_role_ids(declared))} role(s) from '{user.id}'")

        self._audited("user_roles_delete", target, run, details={"role_ids": sorted(set(target.role_ids))})

    def import_id(self, value: str) -> Tuple[str, str]:
        return import_id(value)

    def _get_user(self, target: ReconciliationTarget) -> User:
        return self.directory.get_user(target.realm_id, target.user_id)

    def _audited(
        self,
        event_type: EventType,
        target: ReconciliationTarget,
        run: Callable[[], T],
        *,
        details: Optional[dict] = None,
        summarize: Optional[Callable[[T], dict]] = None,
    ) -> T:
        try:
            result = run()
        except KeycloakError as exc:
            if self.operator:
                safe_log_role_event(
                    event_type,
                    target.user_id,
                    operator=self.operator,
                    realm=target.realm_id,
                    details={**(details or {}), "error": str(exc)},
                    success=False,
                )
            raise

        if self.operator:
            event_details = dict(details or {})
            if summarize is not None:
                event_details.update(summarize(result))
            safe_log_role_event(
                event_type,
                target.user_id,
                operator=self.operator,
                realm=target.realm_id,
                details=event_details,
                success=True,
            )
        return result
