"""
Audit trail for sensitive lead operations.

Events are written as rows of the `audit_logs` table through the same
record store the operations use. Recording is fire-and-forget: a failed
write is logged and never propagates to the operation being audited.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .supabase_client import LeadStore

logger = logging.getLogger(__name__)

_SENSITIVE_KEYS = {"password", "token", "access_token", "refresh_token"}


class AuditEventType(Enum):
    """Lead events that leave an audit trail."""
    LEAD_BATCH_IMPORT = "lead_batch_import"
    LEAD_BATCH_UPDATE = "lead_batch_update"
    LEAD_BATCH_DELETE = "lead_batch_delete"


class AuditLogger:
    """Writes audit events to the store, swallowing its failures."""

    def __init__(self, store: LeadStore, table: str = "audit_logs"):
        self.store = store
        self.table = table

    def record(
        self,
        event_type: AuditEventType,
        actor_id: Optional[str],
        payload: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Record one audit event.

        Returns:
            True if the row was written, False if the write failed
        """
        details = {
            key: ("[REDACTED]" if key in _SENSITIVE_KEYS else value)
            for key, value in (payload or {}).items()
        }
        row = {
            "type": event_type.value,
            "user_id": actor_id or "anonymous",
            "details": details,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }

        try:
            self.store.insert_many(self.table, [row])
        except Exception:
            logger.exception("Failed to record audit event %s", event_type.value)
            return False

        logger.info("[AUDIT] %s by %s", event_type.value, row["user_id"])
        return True
