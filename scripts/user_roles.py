"""Command-line wrapper around rolesync.core.user_roles_service.

Examples:
    python scripts/user_roles.py update --realm demo --username alice \\
        --role-id 2f0c... --role-id 9ab1...
    python scripts/user_roles.py update --file alice-roles.yaml
    python scripts/user_roles.py import demo/6f1c...
"""
from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path

import yaml

SCRIPT_DIR = Path(__file__).parent
PROJECT_ROOT = SCRIPT_DIR.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from rolesync.config import RoleSyncConfig, configure_logging, load_settings
from rolesync.core import KeycloakDirectory, ReconciliationTarget, UserRolesService, import_id
from rolesync.core.keycloak.exceptions import KeycloakError

logger = logging.getLogger("rolesync.cli")


def build_directory(args: argparse.Namespace, config: RoleSyncConfig) -> KeycloakDirectory:
    """Create an authenticated directory client from settings and CLI overrides."""
    if args.kc_url:
        config.keycloak_url = args.kc_url.rstrip("/")
    if args.auth_realm:
        config.keycloak_service_realm = args.auth_realm
    if args.svc_client_id:
        config.keycloak_service_client_id = args.svc_client_id
    if args.svc_client_secret:
        config.keycloak_service_client_secret = args.svc_client_secret
    return KeycloakDirectory(config.build_client())


def load_declaration(path: str) -> dict:
    """Read a role declaration file: {realm, user_id | username, role_ids: [...]}."""
    with open(path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at top level")
    role_ids = data.get("role_ids") or []
    if not isinstance(role_ids, list) or not all(isinstance(r, str) for r in role_ids):
        raise ValueError(f"{path}: 'role_ids' must be a list of strings")
    return data


def _target(args: argparse.Namespace, config: RoleSyncConfig, directory) -> ReconciliationTarget:
    declaration = load_declaration(args.file) if args.file else {}
    realm = args.realm or declaration.get("realm") or config.keycloak_realm
    user_id = args.user_id or declaration.get("user_id")
    username = args.username or declaration.get("username")
    if not user_id:
        if not username:
            raise ValueError("A user is required: pass --user-id or --username")
        user_id = directory.get_user_by_username(realm, username).id
    role_ids = list(args.role_id or []) + list(declaration.get("role_ids") or [])
    return ReconciliationTarget.of(realm, user_id, role_ids)


def _add_target_arguments(sub: argparse.ArgumentParser) -> None:
    sub.add_argument("--realm")
    sub.add_argument("--user-id")
    sub.add_argument("--username")
    sub.add_argument("--role-id", action="append", help="Declared role id (repeatable)")
    sub.add_argument("--file", help="YAML file with realm, user_id/username and role_ids")


def main(argv: list[str] | None = None) -> None:
    """Command-line entry point."""
    parser = argparse.ArgumentParser(description="Authoritative Keycloak user role assignments")
    parser.add_argument("--kc-url")
    parser.add_argument("--auth-realm")
    parser.add_argument("--svc-client-id")
    parser.add_argument("--svc-client-secret")
    parser.add_argument("--operator",
                        help="Operator identifier for audit logs (default: ROLESYNC_OPERATOR or automation)")
    parser.add_argument("--log-level", help="Log level (default: ROLESYNC_LOG_LEVEL or INFO)")

    sub = parser.add_subparsers(dest="cmd")
    for name in ("create", "read", "update", "delete"):
        _add_target_arguments(sub.add_parser(name))
    si = sub.add_parser("import")
    si.add_argument("external_id", help="{realm}/{userId}")

    args = parser.parse_args(argv)

    if not args.cmd:
        parser.print_help()
        return

    try:
        config = load_settings()
    except RuntimeError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)

    configure_logging(args.log_level or config.log_level)

    if args.cmd == "import":
        try:
            realm, user_id = import_id(args.external_id)
        except ValueError as e:
            print(f"[import] Error: {e}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps({"realm": realm, "user_id": user_id}))
        return

    try:
        directory = build_directory(args, config)
        target = _target(args, config, directory)
    except (KeycloakError, RuntimeError, ValueError, OSError) as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)

    service = UserRolesService(directory, operator=args.operator or config.audit_operator)
    try:
        if args.cmd == "create":
            print(service.create(target))
        elif args.cmd == "read":
            for role_id in sorted(service.read(target)):
                print(role_id)
        elif args.cmd == "update":
            changes = service.update(target)
            print(json.dumps(changes.summary(), sort_keys=True))
        elif args.cmd == "delete":
            service.delete(target)
    except KeycloakError as e:
        print(f"[{args.cmd}] Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
