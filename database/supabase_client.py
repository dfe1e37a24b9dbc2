"""
Supabase Database Client for the lead import engine

Provides the record store used by batch lead operations:
- Paginated reads of whole tables (dedup baselines)
- Bulk inserts returning the created rows
- Single-row and multi-row updates by id
- Multi-row deletes by an arbitrary key column

Every failure coming out of the Supabase client is re-raised as a
PersistenceError so callers can tell an infrastructure problem apart
from an empty result.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol, Sequence

from supabase import create_client, Client

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 1000  # PostgREST caps unbounded selects at 1000 rows


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or malformed."""
    pass


class PersistenceError(RuntimeError):
    """
    Raised when the record store cannot complete an operation.

    Attributes:
        message: Human-readable error description
        table: Table the operation targeted
        operation: Store operation name (fetch_all, insert_many, ...)
    """

    def __init__(self, message: str, table: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.table = table
        self.operation = operation

    def __str__(self) -> str:
        parts = [self.message]
        if self.operation and self.table:
            parts.append(f"({self.operation} on {self.table})")
        return " ".join(parts)


class LeadStore(Protocol):
    """Record store reachable by table name."""

    def fetch_all(self, table: str, columns: str = "*") -> List[Dict[str, Any]]:
        ...

    def insert_many(self, table: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        ...

    def update_one(self, table: str, record_id: int, payload: Dict[str, Any]) -> None:
        ...

    def update_many(self, table: str, ids: Sequence[int], payload: Dict[str, Any]) -> int:
        ...

    def delete_many(self, table: str, ids: Sequence[int], column: str = "id") -> int:
        ...


@dataclass
class DatabaseConfig:
    """Supabase connection configuration."""
    url: str
    key: str  # service role key; batch operations run server-side

    @classmethod
    def from_env(cls) -> "DatabaseConfig":
        """
        Load config from environment variables.

        Environment variables:
            SUPABASE_URL: Project URL
            SUPABASE_SERVICE_ROLE_KEY: Service key (falls back to SUPABASE_KEY)
        """
        url = os.getenv("SUPABASE_URL")
        key = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_KEY")

        if not url or not key:
            raise ConfigurationError(
                "Missing Supabase credentials. Set SUPABASE_URL and "
                "SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_KEY) environment variables."
            )

        return cls(url=url, key=key)


class SupabaseClient:
    """
    Supabase-backed record store for lead batch operations.

    Usage:
        store = SupabaseClient()
        rows = store.fetch_all("leads", columns="id, phone, tags")
    """

    def __init__(
        self,
        config: Optional[DatabaseConfig] = None,
        client: Optional[Client] = None,
        page_size: int = DEFAULT_PAGE_SIZE
    ):
        """
        Initialize Supabase client.

        Args:
            config: Database configuration. If None, loads from environment.
            client: Pre-built supabase Client (skips create_client)
            page_size: Rows per request when reading whole tables
        """
        if client is None:
            if config is None:
                config = DatabaseConfig.from_env()
            client = create_client(config.url, config.key)

        self.client: Client = client
        self.page_size = page_size

    # ==========================================
    # READS
    # ==========================================

    def fetch_all(self, table: str, columns: str = "*") -> List[Dict[str, Any]]:
        """
        Read every row of a table, following pagination.

        Returns:
            List of row dictionaries (empty if the table has no rows)
        """
        rows: List[Dict[str, Any]] = []
        offset = 0

        while True:
            try:
                result = (
                    self.client.table(table)
                    .select(columns)
                    .order("id")
                    .range(offset, offset + self.page_size - 1)
                    .execute()
                )
            except Exception as exc:
                raise PersistenceError(str(exc), table=table, operation="fetch_all") from exc

            page = result.data or []
            rows.extend(page)

            if len(page) < self.page_size:
                break
            offset += self.page_size

        logger.debug("Fetched %s rows from %s", len(rows), table)
        return rows

    # ==========================================
    # WRITES
    # ==========================================

    def insert_many(self, table: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Insert several rows in one request.

        Returns:
            The created rows, including their generated ids
        """
        if not records:
            return []

        try:
            result = self.client.table(table).insert(records).execute()
        except Exception as exc:
            raise PersistenceError(str(exc), table=table, operation="insert_many") from exc

        return result.data or []

    def update_one(self, table: str, record_id: int, payload: Dict[str, Any]) -> None:
        """Update a single row by id."""
        try:
            self.client.table(table).update(payload).eq("id", record_id).execute()
        except Exception as exc:
            raise PersistenceError(str(exc), table=table, operation="update_one") from exc

    def update_many(self, table: str, ids: Sequence[int], payload: Dict[str, Any]) -> int:
        """
        Apply the same payload to several rows.

        Returns:
            Number of rows the store reported as updated
        """
        try:
            result = self.client.table(table).update(payload).in_("id", list(ids)).execute()
        except Exception as exc:
            raise PersistenceError(str(exc), table=table, operation="update_many") from exc

        return len(result.data or [])

    def delete_many(self, table: str, ids: Sequence[int], column: str = "id") -> int:
        """
        Delete rows whose `column` value is in `ids`.

        Returns:
            Number of rows the store reported as deleted
        """
        try:
            result = self.client.table(table).delete().in_(column, list(ids)).execute()
        except Exception as exc:
            raise PersistenceError(str(exc), table=table, operation="delete_many") from exc

        return len(result.data or [])


# Singleton instance for convenience
_client: Optional[SupabaseClient] = None


def get_client() -> SupabaseClient:
    """Get or create singleton Supabase client."""
    global _client
    if _client is None:
        _client = SupabaseClient()
    return _client
