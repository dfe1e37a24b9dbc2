"""Configuration for batch lead operations."""

import os
from dataclasses import dataclass
from typing import Tuple

from database import ConfigurationError

DEFAULT_BATCH_SIZE = 100  # keeps each insert well under PostgREST payload limits
DEFAULT_CAMPAIGN = "Imported Batch"


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc
    if value < 1:
        raise ConfigurationError(f"{name} must be at least 1, got {value}")
    return value


@dataclass
class ImportConfig:
    """
    Settings for the import engine.

    Can be initialized from environment variables:
        config = ImportConfig.from_env()
    """

    batch_size: int = DEFAULT_BATCH_SIZE
    default_campaign: str = DEFAULT_CAMPAIGN
    leads_table: str = "leads"
    audit_table: str = "audit_logs"
    related_tables: Tuple[str, ...] = ("whatsapp_messages",)
    related_column: str = "leadId"
    page_size: int = 1000

    @classmethod
    def from_env(cls) -> "ImportConfig":
        """
        Load configuration from environment variables.

        Environment variables:
            LEAD_IMPORT_BATCH_SIZE: Records per insert call (default: 100)
            LEAD_IMPORT_DEFAULT_CAMPAIGN: Campaign for rows without one
            LEAD_IMPORT_LEADS_TABLE: Leads table name (default: leads)
            LEAD_IMPORT_AUDIT_TABLE: Audit table name (default: audit_logs)
            LEAD_IMPORT_PAGE_SIZE: Rows per read request (default: 1000)
        """
        return cls(
            batch_size=_int_from_env("LEAD_IMPORT_BATCH_SIZE", DEFAULT_BATCH_SIZE),
            default_campaign=os.environ.get("LEAD_IMPORT_DEFAULT_CAMPAIGN", DEFAULT_CAMPAIGN),
            leads_table=os.environ.get("LEAD_IMPORT_LEADS_TABLE", "leads"),
            audit_table=os.environ.get("LEAD_IMPORT_AUDIT_TABLE", "audit_logs"),
            page_size=_int_from_env("LEAD_IMPORT_PAGE_SIZE", 1000),
        )
