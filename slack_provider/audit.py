"""Opt-in audit trail for resource mutations (channels and usergroups).

Disabled unless ``AUDIT_LOG_DIR`` is set: the provider keeps no local state
of its own. When enabled, each create/update/delete appends one JSON line to
``$AUDIT_LOG_DIR/resource-events.jsonl``, HMAC-signed when
``AUDIT_LOG_SIGNING_KEY`` is set.
"""

from __future__ import annotations
import datetime
import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal, Optional

logger = logging.getLogger(__name__)

_configured_dir = os.environ.get("AUDIT_LOG_DIR", "").strip()
AUDIT_LOG_DIR: Optional[Path] = Path(_configured_dir) if _configured_dir else None
AUDIT_LOG_FILE: Optional[Path] = AUDIT_LOG_DIR / "resource-events.jsonl" if AUDIT_LOG_DIR else None

EventType = Literal[
    "conversation_create", "conversation_update", "conversation_delete",
    "usergroup_create", "usergroup_update", "usergroup_delete",
]


def _signature(event: dict[str, Any]) -> str:
    """HMAC-SHA256 over the canonical JSON form; empty when no key is set."""
    key = os.environ.get("AUDIT_LOG_SIGNING_KEY", "").strip()
    if not key:
        return ""
    canonical = json.dumps(event, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hmac.new(key.encode("utf-8"), canonical, hashlib.sha256).hexdigest()


def log_resource_event(
    event_type: EventType,
    resource_id: str,
    *,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Append a resource event to the audit trail.

    Args:
        event_type: Kind of mutation (conversation_create, usergroup_delete, ...)
        resource_id: Slack ID of the affected channel or usergroup
        operator: Who performed the operation
        details: Additional context (changed fields, members, error)
        success: Whether the operation succeeded

    Returns:
        True if the event was written, False when auditing is disabled
    """
    if AUDIT_LOG_FILE is None:
        return False

    event = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "event_type": event_type,
        "resource_id": resource_id,
        "operator": operator,
        "success": success,
        "details": details or {},
    }
    signature = _signature(event)
    if signature:
        event["signature"] = signature

    AUDIT_LOG_FILE.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    with AUDIT_LOG_FILE.open("a", encoding="utf-8") as f:
        f.write(json.dumps(event, ensure_ascii=False) + "\n")
    AUDIT_LOG_FILE.chmod(0o600)
    return True


def safe_log_resource_event(
    event_type: EventType,
    resource_id: str,
    *,
    operator: str = "system",
    details: dict[str, Any] | None = None,
    success: bool = True,
) -> bool:
    """Same as ``log_resource_event`` but never raises.

    An audit failure is logged and must not fail the reconciliation that
    triggered it.
    """
    try:
        return log_resource_event(
            event_type,
            resource_id,
            operator=operator,
            details=details,
            success=success,
        )
    except Exception as e:
        logger.warning(f"[audit] Failed to log {event_type} event for {resource_id}: {e}")
        return False


def verify_audit_log() -> tuple[int, int]:
    """Count events and correctly signed events in the audit log.

    Returns:
        Tuple of (total_events, valid_signatures)
    """
    if AUDIT_LOG_FILE is None or not AUDIT_LOG_FILE.exists():
        return 0, 0

    lines = [line for line in AUDIT_LOG_FILE.read_text(encoding="utf-8").splitlines() if line.strip()]
    valid = 0
    for line in lines:
        try:
            event = json.loads(line)
        except json.JSONDecodeError:
            continue
        stored = event.pop("signature", "")
        if stored and hmac.compare_digest(stored, _signature(event)):
            valid += 1
    return len(lines), valid
