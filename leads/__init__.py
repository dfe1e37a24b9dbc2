"""
Lead management module for the CRM backend.

Handles batch importing, validating, and deduplicating leads from
spreadsheet uploads, plus bulk updates and deletes.
"""

from .config import ImportConfig
from .dedup import build_index, normalize_phone, resolve_merge
from .importer import (
    LeadImporter,
    EmptyImportError,
    ImportFetchError,
    partition
)
from .models import BatchResult, ExistingLeadRef, LeadSource, LeadStatus, ValidatedLead
from .validation import LeadValidationError, validate_lead, validate_partial

__all__ = [
    "ImportConfig",
    "LeadImporter",
    "EmptyImportError",
    "ImportFetchError",
    "partition",
    "build_index",
    "normalize_phone",
    "resolve_merge",
    "BatchResult",
    "ExistingLeadRef",
    "LeadSource",
    "LeadStatus",
    "ValidatedLead",
    "LeadValidationError",
    "validate_lead",
    "validate_partial"
]
