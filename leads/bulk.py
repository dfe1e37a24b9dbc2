"""Bulk update and delete of leads selected by id."""

import logging
from typing import Any, List, Mapping, Optional, Sequence

from database import AuditEventType, AuditLogger, LeadStore, PersistenceError

from .config import ImportConfig
from .validation import validate_partial

logger = logging.getLogger(__name__)


def _require_ids(ids: Any) -> List[int]:
    if not isinstance(ids, (list, tuple)) or not ids:
        raise ValueError("Lead ids are required")
    try:
        return [int(lead_id) for lead_id in ids]
    except (TypeError, ValueError):
        raise ValueError("Lead ids must be integers") from None


def update_leads_batch(
    store: LeadStore,
    ids: Sequence[int],
    updates: Mapping[str, Any],
    audit: Optional[AuditLogger] = None,
    actor_id: Optional[str] = None,
    config: Optional[ImportConfig] = None
) -> int:
    """
    Apply the same validated field changes to several leads.

    Returns:
        Number of leads updated

    Raises:
        ValueError: if ids are missing
        LeadValidationError: if `updates` holds an invalid field
        PersistenceError: if the store rejects the update
    """
    config = config or ImportConfig()
    lead_ids = _require_ids(ids)
    payload = validate_partial(updates)

    logger.info("Updating %s leads: %s", len(lead_ids), sorted(payload))
    count = store.update_many(config.leads_table, lead_ids, payload)

    if audit is not None:
        audit.record(AuditEventType.LEAD_BATCH_UPDATE, actor_id, {
            "leadIds": lead_ids,
            "updatedFields": sorted(payload),
            "updateCount": count,
        })

    return count


def delete_leads_batch(
    store: LeadStore,
    ids: Sequence[int],
    audit: Optional[AuditLogger] = None,
    actor_id: Optional[str] = None,
    config: Optional[ImportConfig] = None
) -> int:
    """
    Delete several leads and the rows that reference them.

    Failure to clean a related table (e.g. WhatsApp messages) is logged and
    does not stop the lead deletion.

    Returns:
        Number of leads deleted
    """
    config = config or ImportConfig()
    lead_ids = _require_ids(ids)

    for table in config.related_tables:
        try:
            store.delete_many(table, lead_ids, column=config.related_column)
        except PersistenceError as exc:
            logger.error("Could not delete %s rows for leads %s: %s", table, lead_ids, exc)

    count = store.delete_many(config.leads_table, lead_ids)
    logger.info("Deleted %s leads", count)

    if audit is not None:
        audit.record(AuditEventType.LEAD_BATCH_DELETE, actor_id, {
            "leadIds": lead_ids,
            "deleteCount": count,
        })

    return count
