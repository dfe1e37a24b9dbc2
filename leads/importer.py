"""
Lead Importer - batch import with validation and phone deduplication.

Takes rows from a spreadsheet upload (or any JSON source), decides for
each one whether it is a new contact or an existing one, and persists
the outcome in bounded batches:

- Rows are validated one by one; bad rows are recorded, never fatal
- Existing contacts are matched on the normalized phone number
- Matches are merged (incoming scalars win, tags are unioned)
- New contacts are inserted in partitions of `batch_size`
- Matched contacts are updated one at a time

Usage:
    from leads import LeadImporter

    importer = LeadImporter(store)
    result = importer.import_leads(rows, actor_id=user_id)

    print(result.summary())
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence, TypeVar

from database import AuditEventType, AuditLogger, LeadStore, PersistenceError

from .config import DEFAULT_BATCH_SIZE, ImportConfig
from .dedup import build_index, normalize_phone, resolve_merge
from .models import BatchResult, ExistingLeadRef, RawLeadRecord, ValidatedLead
from .validation import LeadValidationError, validate_lead

logger = logging.getLogger(__name__)

T = TypeVar("T")

CANCELLED_REASON = "Import cancelled before this record was persisted"


class EmptyImportError(ValueError):
    """Raised when an import request carries no leads."""
    pass


class ImportFetchError(RuntimeError):
    """Raised when existing leads cannot be loaded; nothing was written."""
    pass


class CancelSignal(Protocol):
    def is_set(self) -> bool:
        ...


def partition(items: Sequence[T], size: int = DEFAULT_BATCH_SIZE) -> List[List[T]]:
    """Split `items` into consecutive chunks of at most `size` elements."""
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}")
    return [list(items[start:start + size]) for start in range(0, len(items), size)]


@dataclass
class _PendingInsert:
    raw: RawLeadRecord
    lead: ValidatedLead


@dataclass
class _PendingUpdate:
    raw: RawLeadRecord
    lead_id: int
    phone: str
    payload: Dict[str, Any]


class LeadImporter:
    """
    Imports lead batches into the leads table.

    The store is read once per run to build the dedup index; after that
    every write failure is confined to the records it concerns.
    """

    def __init__(
        self,
        store: LeadStore,
        audit: Optional[AuditLogger] = None,
        config: Optional[ImportConfig] = None
    ):
        """
        Args:
            store: Record store holding the leads table
            audit: Audit trail writer (no audit event when None)
            config: Import settings (defaults when None)
        """
        self.store = store
        self.audit = audit
        self.config = config or ImportConfig()

    def import_leads(
        self,
        leads: List[RawLeadRecord],
        actor_id: Optional[str] = None,
        cancel_event: Optional[CancelSignal] = None
    ) -> BatchResult:
        """
        Import a list of raw lead records.

        Args:
            leads: Raw rows, in the order they should be processed
            actor_id: User performing the import (for the audit trail)
            cancel_event: Checked before each batch; set it to stop early

        Returns:
            BatchResult with inserted, updated and rejected records

        Raises:
            EmptyImportError: if `leads` is missing or empty
            ImportFetchError: if the existing leads cannot be read
        """
        if not isinstance(leads, list) or not leads:
            raise EmptyImportError("No leads provided for import")

        logger.info("Importing %s leads in batches of %s", len(leads), self.config.batch_size)

        index = self._load_index()
        result = BatchResult()

        inserts, updates = self._classify(leads, index, result)
        self._execute(inserts, updates, result, cancel_event)

        self._record_audit(actor_id, result.audit_payload(len(leads)))
        logger.info(result.summary())
        return result

    # ==========================================
    # PHASES
    # ==========================================

    def _load_index(self) -> Dict[str, ExistingLeadRef]:
        try:
            rows = self.store.fetch_all(self.config.leads_table, columns="id, phone, tags")
        except PersistenceError as exc:
            logger.error("Could not load existing leads: %s", exc)
            raise ImportFetchError(f"Could not load existing leads: {exc}") from exc

        index = build_index(ExistingLeadRef.from_row(row) for row in rows)
        logger.debug("Dedup index built from %s leads (%s phones)", len(rows), len(index))
        return index

    def _classify(
        self,
        leads: List[RawLeadRecord],
        index: Dict[str, ExistingLeadRef],
        result: BatchResult
    ):
        inserts: List[_PendingInsert] = []
        updates: List[_PendingUpdate] = []
        # running state per matched lead, so repeated phones accumulate tags
        merged: Dict[int, ExistingLeadRef] = {}

        for position, raw in enumerate(leads):
            try:
                lead = validate_lead(raw, self.config.default_campaign)
            except LeadValidationError as exc:
                logger.warning("Lead #%s rejected: %s", position, exc.reason)
                result.add_error(exc.reason, raw)
                continue

            key = normalize_phone(lead.phone)
            match = index.get(key) if key else None

            if match is None:
                inserts.append(_PendingInsert(raw=raw, lead=lead))
                continue

            current = merged.get(match.id, match)
            payload = resolve_merge(current, lead)
            merged[match.id] = ExistingLeadRef(id=match.id, phone=lead.phone, tags=payload["tags"])
            updates.append(_PendingUpdate(raw=raw, lead_id=match.id, phone=lead.phone, payload=payload))

        logger.info("Classified: %s new, %s existing", len(inserts), len(updates))
        return inserts, updates

    def _execute(
        self,
        inserts: List[_PendingInsert],
        updates: List[_PendingUpdate],
        result: BatchResult,
        cancel_event: Optional[CancelSignal]
    ) -> None:
        size = self.config.batch_size
        steps = (
            [(self._insert_batch, batch) for batch in partition(inserts, size)]
            + [(self._update_batch, batch) for batch in partition(updates, size)]
        )

        for number, (run, batch) in enumerate(steps, start=1):
            if cancel_event is not None and cancel_event.is_set():
                logger.warning("Import cancelled before batch %s/%s", number, len(steps))
                result.cancelled = True
                for _, skipped in steps[number - 1:]:
                    for pending in skipped:
                        result.add_error(CANCELLED_REASON, pending.raw)
                return

            logger.info("Running batch %s/%s (%s leads)", number, len(steps), len(batch))
            run(batch, result)

    def _insert_batch(self, batch: List[_PendingInsert], result: BatchResult) -> None:
        records = [pending.lead.to_record() for pending in batch]

        try:
            rows = self.store.insert_many(self.config.leads_table, records)
        except PersistenceError as exc:
            logger.error("Batch insert of %s leads failed: %s", len(batch), exc)
            for pending in batch:
                result.add_error(f"Batch insert failed: {exc}", pending.raw)
            return

        for row in rows:
            result.add_success(row.get("id"), row.get("email"))

        if len(rows) < len(records):
            logger.warning("Inserted %s leads but store returned %s rows", len(records), len(rows))
            for pending in batch[len(rows):]:
                result.add_error("Insert not confirmed by the store", pending.raw)

    def _update_batch(self, batch: List[_PendingUpdate], result: BatchResult) -> None:
        for pending in batch:
            try:
                self.store.update_one(self.config.leads_table, pending.lead_id, pending.payload)
            except PersistenceError as exc:
                logger.warning("Update of lead %s failed: %s", pending.lead_id, exc)
                result.add_error(f"Update of lead {pending.lead_id} failed: {exc}", pending.raw)
                continue

            logger.debug("Updated lead %s", pending.lead_id)
            result.add_updated(pending.lead_id, pending.phone)

    def _record_audit(self, actor_id: Optional[str], payload: Dict[str, int]) -> None:
        if self.audit is None:
            return
        try:
            self.audit.record(AuditEventType.LEAD_BATCH_IMPORT, actor_id, payload)
        except Exception:
            logger.exception("Audit event for batch import could not be recorded")
