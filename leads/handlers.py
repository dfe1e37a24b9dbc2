"""
Request handlers for the batch lead endpoints.

Each handler takes the decoded JSON body plus an already authenticated
actor id and returns `(status_code, response_body)`. Wiring them into a
web framework is left to the caller.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from database import AuditLogger, LeadStore, PersistenceError, get_client

from .bulk import delete_leads_batch, update_leads_batch
from .config import ImportConfig
from .importer import EmptyImportError, ImportFetchError, LeadImporter
from .validation import LeadValidationError

logger = logging.getLogger(__name__)

Response = Tuple[int, Dict[str, Any]]


def _body_field(body: Any, name: str) -> Any:
    return body.get(name) if isinstance(body, dict) else None


def handle_batch_import(
    body: Any,
    actor_id: Optional[str],
    store: Optional[LeadStore] = None,
    config: Optional[ImportConfig] = None
) -> Response:
    """POST /batch/import with body {"leads": [...]}."""
    store = store or get_client()
    config = config or ImportConfig()
    importer = LeadImporter(store, AuditLogger(store, config.audit_table), config)

    try:
        result = importer.import_leads(_body_field(body, "leads"), actor_id=actor_id)
    except EmptyImportError as exc:
        return 400, {"message": str(exc)}
    except ImportFetchError as exc:
        logger.error("Batch import aborted: %s", exc)
        return 500, {"message": "Batch import failed", "details": str(exc)}

    return 200, result.to_dict()


def handle_batch_update(
    body: Any,
    actor_id: Optional[str],
    store: Optional[LeadStore] = None,
    config: Optional[ImportConfig] = None
) -> Response:
    """POST /batch/update with body {"ids": [...], "updates": {...}}."""
    store = store or get_client()
    config = config or ImportConfig()

    try:
        count = update_leads_batch(
            store,
            _body_field(body, "ids"),
            _body_field(body, "updates"),
            audit=AuditLogger(store, config.audit_table),
            actor_id=actor_id,
            config=config,
        )
    except LeadValidationError as exc:
        return 400, {"message": exc.reason}
    except ValueError as exc:
        return 400, {"message": str(exc)}
    except PersistenceError as exc:
        logger.error("Batch update failed: %s", exc)
        return 500, {"message": "Batch update failed", "details": str(exc)}

    return 200, {"updatedCount": count}


def handle_batch_delete(
    body: Any,
    actor_id: Optional[str],
    store: Optional[LeadStore] = None,
    config: Optional[ImportConfig] = None
) -> Response:
    """POST /batch/delete with body {"ids": [...]}."""
    store = store or get_client()
    config = config or ImportConfig()

    try:
        count = delete_leads_batch(
            store,
            _body_field(body, "ids"),
            audit=AuditLogger(store, config.audit_table),
            actor_id=actor_id,
            config=config,
        )
    except ValueError as exc:
        return 400, {"message": str(exc)}
    except PersistenceError as exc:
        logger.error("Batch delete failed: %s", exc)
        return 500, {"message": "Batch delete failed", "details": str(exc)}

    return 200, {"deletedCount": count}
