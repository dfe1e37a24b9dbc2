"""Data models shared by the lead import pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

RawLeadRecord = Dict[str, Any]


class LeadSource(Enum):
    """Studio brand a lead came through."""
    FAVALE = "Favale"
    PINK = "Pink"


class LeadStatus(Enum):
    """Lifecycle state of a contact."""
    LEAD = "Lead"
    ALUNO = "Aluno"


@dataclass
class ValidatedLead:
    """A lead that passed validation and is safe to persist."""
    entry_date: str
    name: str
    email: str
    phone: str
    state: str
    source: str
    status: str
    campaign: str
    tags: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    entry_date_supplied: bool = True  # False when stamped with the import time

    def to_record(self) -> Dict[str, Any]:
        """Row as stored in the leads table."""
        return {
            "entryDate": self.entry_date,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "state": self.state,
            "campaign": self.campaign,
            "tags": list(self.tags),
            "source": self.source,
            "status": self.status,
            "notes": self.notes,
        }


@dataclass(frozen=True)
class ExistingLeadRef:
    """Minimal projection of a persisted lead used for deduplication."""
    id: int
    phone: str
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ExistingLeadRef":
        tags = row.get("tags") or []
        return cls(
            id=int(row["id"]),
            phone=row.get("phone") or "",
            tags=[str(tag) for tag in tags],
        )


@dataclass
class BatchResult:
    """Accumulated outcome of one import run."""
    success: List[Dict[str, Any]] = field(default_factory=list)
    updated: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    cancelled: bool = False

    def add_success(self, lead_id: int, email: Optional[str]) -> None:
        self.success.append({"id": lead_id, "email": email})

    def add_updated(self, lead_id: int, phone: str) -> None:
        self.updated.append({"id": lead_id, "action": "updated", "phone": phone})

    def add_error(self, error: str, data: RawLeadRecord) -> None:
        self.errors.append({"error": error, "data": data})

    @property
    def total_processed(self) -> int:
        return len(self.success) + len(self.updated) + len(self.errors)

    def audit_payload(self, total_count: int) -> Dict[str, int]:
        return {
            "totalCount": total_count,
            "successCount": len(self.success),
            "updatedCount": len(self.updated),
            "errorCount": len(self.errors),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": list(self.success),
            "updated": list(self.updated),
            "errors": list(self.errors),
        }

    def summary(self) -> str:
        text = (
            f"Import complete: {len(self.success)} imported, "
            f"{len(self.updated)} updated, "
            f"{len(self.errors)} errors"
        )
        if self.cancelled:
            text += " (cancelled)"
        return text
