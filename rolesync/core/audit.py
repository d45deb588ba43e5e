"""Audit logging for user role reconciliation events."""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

AUDIT_LOG_DIR = Path(os.environ.get("AUDIT_LOG_DIR", ".runtime/audit"))
AUDIT_LOG_FILE = AUDIT_LOG_DIR / "role-events.jsonl"

_default_secret_paths: list[Path] = [
    Path(".runtime/secrets/audit_log_signing_key"),
    Path("/run/secrets/audit_log_signing_key"),
]

EventType = Literal[
    "user_roles_create",
    "user_roles_update",
    "user_roles_delete",
]


def _get_signing_key() -> bytes:
    """Get the audit signing key (environment first, then secret files)."""
    if "AUDIT_LOG_SIGNING_KEY" in os.environ:
        return os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip().encode("utf-8")
    for path in _default_secret_paths:
        if path.exists():
            try:
                return path.read_text(encoding="utf-8").strip().encode("utf-8")
            except OSError:
                continue
    return b""


def _ensure_audit_dir() -> None:
    """Create audit directory with restricted permissions."""
    AUDIT_LOG_DIR.mkdir(parents=True, exist_ok=True)
    AUDIT_LOG_DIR.chmod(0o700)


def _sign_event(event: dict[str, Any]) -> str:
    """Generate HMAC-SHA256 signature for audit event."""
    signing_key = _get_signing_key()
    if not signing_key:
        return ""
    # Canonical JSON representation for signing
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":"))
    return hmac.new(signing_key, canonical.encode("utf-8"), hashlib.sha256).hexdigest()


def log_role_event(
    event_type: EventType,
    user_id: str,
    *,
    operator: str = "system",
    realm: str = "",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> None:
    """Append a role event to the audit trail with timestamp and signature.

    Args:
        event_type: Reconciliation entry point that ran
        user_id: Target user affected by the operation
        operator: Who performed the operation (user or system)
        realm: Keycloak realm where operation occurred
        details: Additional context (granted/revoked roles, error, ...)
        success: Whether the operation succeeded
    """
    _ensure_audit_dir()

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "realm": realm,
        "user_id": user_id,
        "operator": operator,
        "success": success,
        "details": details or {},
    }

    signature = _sign_event(event)
    if signature:
        event["signature"] = signature

    # One JSON object per line
    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")

    AUDIT_LOG_FILE.chmod(0o600)


def safe_log_role_event(
    event_type: EventType,
    user_id: str,
    *,
    operator: str = "system",
    realm: str = "",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Log a role event, reporting (never raising) audit failures.

    Returns:
        True if event was logged successfully, False if logging failed
    """
    try:
        log_role_event(
            event_type,
            user_id,
            operator=operator,
            realm=realm,
            details=details,
            success=success,
        )
        return True
    except (OSError, TypeError, ValueError) as e:
        logger.warning(f"[audit] Failed to log {event_type} event for {user_id}: {e}")
        return False


def verify_audit_log() -> tuple[int, int]:
    """Verify all signatures in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if not AUDIT_LOG_FILE.exists():
        return 0, 0

    total = 0
    valid = 0

    with AUDIT_LOG_FILE.open("r", encoding="utf-8") as f:
        for line in f:
            if not line.strip():
                continue
            total += 1
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                continue
            stored_sig = event.pop("signature", "")
            if not stored_sig:
                continue
            computed_sig = _sign_event(event)
            if computed_sig and hmac.compare_digest(stored_sig, computed_sig):
                valid += 1

    return total, valid
