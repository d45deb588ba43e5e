"""rolesync: authoritative Keycloak user role reconciliation.

To reconcile a user's roles:
    from rolesync.config import load_settings
    from rolesync.core import KeycloakDirectory, ReconciliationTarget, UserRolesService

    config = load_settings()
    service = UserRolesService(KeycloakDirectory(config.build_client()))
    service.update(ReconciliationTarget.of("demo", user_id, role_ids))
"""
