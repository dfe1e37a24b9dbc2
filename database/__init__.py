"""
Database module for the lead import engine.

Provides the Supabase record store and the audit trail writer.
"""

from .supabase_client import (
    SupabaseClient,
    DatabaseConfig,
    LeadStore,
    PersistenceError,
    ConfigurationError,
    get_client
)
from .audit_log import AuditEventType, AuditLogger

__all__ = [
    "SupabaseClient",
    "DatabaseConfig",
    "LeadStore",
    "PersistenceError",
    "ConfigurationError",
    "get_client",
    "AuditEventType",
    "AuditLogger"
]
