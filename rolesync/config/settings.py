"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from rolesync.core.keycloak.client import KeycloakClient, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)

SECRETS_DIR = Path("/run/secrets")


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = SECRETS_DIR / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.debug(f"[settings] Loaded {secret_name} from {SECRETS_DIR}")
                return secret_value
        except OSError as e:
            logger.warning(f"[settings] Failed to read {secret_file}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass
class RoleSyncConfig:
    """Runtime configuration container."""
    # Keycloak
    keycloak_url: str = "http://localhost:8080"
    keycloak_realm: str = "demo"
    request_timeout: float = REQUEST_TIMEOUT

    # Service account (preferred)
    keycloak_service_realm: str = "master"
    keycloak_service_client_id: str = "automation-cli"
    keycloak_service_client_secret: str = ""

    # Admin credentials (fallback)
    keycloak_admin: str = "admin"
    keycloak_admin_password: str = ""

    # Logging / audit
    log_level: str = "INFO"
    audit_operator: str = "automation"

    @property
    def uses_service_account(self) -> bool:
        return bool(self.keycloak_service_client_secret)

    def build_client(self) -> KeycloakClient:
        """Return an authenticated Keycloak client.

        Raises:
            RuntimeError: If neither a service secret nor an admin password is configured
        """
        client = KeycloakClient(self.keycloak_url, timeout=self.request_timeout)
        if self.uses_service_account:
            client.authenticate_service_account(
                self.keycloak_service_realm,
                self.keycloak_service_client_id,
                self.keycloak_service_client_secret,
            )
        elif self.keycloak_admin_password:
            client.authenticate_admin(self.keycloak_admin, self.keycloak_admin_password)
        else:
            raise RuntimeError(
                "No Keycloak credentials: set KEYCLOAK_SERVICE_CLIENT_SECRET "
                "or KEYCLOAK_ADMIN_PASSWORD (environment or /run/secrets)."
            )
        return client


def _float_env(var_name: str, default: float) -> float:
    raw = os.environ.get(var_name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"Environment variable {var_name} must be a number, got '{raw}'.")
    if value <= 0:
        raise RuntimeError(f"Environment variable {var_name} must be positive, got '{raw}'.")
    return value


def load_settings() -> RoleSyncConfig:
    """Load settings from environment variables and /run/secrets."""
    keycloak_url = os.environ.get("KEYCLOAK_URL", "http://localhost:8080").rstrip("/")
    keycloak_realm = os.environ.get("KEYCLOAK_REALM", "demo")
    request_timeout = _float_env("KEYCLOAK_REQUEST_TIMEOUT", REQUEST_TIMEOUT)

    service_client_secret = _load_secret_from_file(
        "keycloak_service_client_secret",
        "KEYCLOAK_SERVICE_CLIENT_SECRET",
    ) or ""
    admin_password = _load_secret_from_file(
        "keycloak_admin_password",
        "KEYCLOAK_ADMIN_PASSWORD",
    ) or ""

    config = RoleSyncConfig(
        keycloak_url=keycloak_url,
        keycloak_realm=keycloak_realm,
        request_timeout=request_timeout,
        keycloak_service_realm=os.environ.get("KEYCLOAK_SERVICE_REALM", "master"),
        keycloak_service_client_id=os.environ.get("KEYCLOAK_SERVICE_CLIENT_ID", "automation-cli"),
        keycloak_service_client_secret=service_client_secret,
        keycloak_admin=os.environ.get("KEYCLOAK_ADMIN", "admin"),
        keycloak_admin_password=admin_password,
        log_level=os.environ.get("ROLESYNC_LOG_LEVEL", "INFO").upper(),
        audit_operator=os.environ.get("ROLESYNC_OPERATOR", "automation"),
    )

    auth_label = "service-account" if config.uses_service_account else "admin"
    logger.info(f"[settings] url={config.keycloak_url}; realm={config.keycloak_realm}; auth={auth_label}")
    return config


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging on stderr (level usually RoleSyncConfig.log_level)."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
