from typing import Any, Callable, Dict, List, Optional

import pytest

from database import PersistenceError


class InMemoryLeadStore:
    """LeadStore fake keeping tables as lists of dicts."""

    def __init__(self, tables: Optional[Dict[str, List[Dict[str, Any]]]] = None):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.calls: List[tuple] = []
        self._failures: Dict[str, Callable[[str, Any], bool]] = {}
        existing_ids = [row["id"] for rows in self.tables.values() for row in rows if "id" in row]
        self._next_id = max(existing_ids, default=0) + 1

    def fail_when(self, operation: str, predicate: Callable[[str, Any], bool] = lambda table, arg: True):
        self._failures[operation] = predicate

    def _check(self, operation: str, table: str, arg: Any) -> None:
        self.calls.append((operation, table))
        predicate = self._failures.get(operation)
        if predicate is not None and predicate(table, arg):
            raise PersistenceError("simulated outage", table=table, operation=operation)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return self.tables.setdefault(table, [])

    def fetch_all(self, table: str, columns: str = "*") -> List[Dict[str, Any]]:
        self._check("fetch_all", table, columns)
        return [dict(row) for row in self.rows(table)]

    def insert_many(self, table: str, records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self._check("insert_many", table, records)
        created = []
        for record in records:
            row = {"id": self._next_id, **record}
            self._next_id += 1
            self.rows(table).append(row)
            created.append(dict(row))
        return created

    def update_one(self, table: str, record_id: int, payload: Dict[str, Any]) -> None:
        self._check("update_one", table, record_id)
        for row in self.rows(table):
            if row["id"] == record_id:
                row.update(payload)

    def update_many(self, table: str, ids, payload: Dict[str, Any]) -> int:
        self._check("update_many", table, ids)
        count = 0
        for row in self.rows(table):
            if row["id"] in ids:
                row.update(payload)
                count += 1
        return count

    def delete_many(self, table: str, ids, column: str = "id") -> int:
        self._check("delete_many", table, ids)
        before = self.rows(table)
        kept = [row for row in before if row.get(column) not in ids]
        self.tables[table] = kept
        return len(before) - len(kept)

    def operations(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]


@pytest.fixture()
def store():
    return InMemoryLeadStore()


@pytest.fixture()
def make_lead():
    def factory(**overrides):
        lead = {
            "name": "Ana Souza",
            "email": "ana@example.com",
            "phone": "(11) 91234-5678",
            "state": "SP",
            "source": "Favale",
            "status": "Lead",
            "tags": "vip,new",
        }
        lead.update(overrides)
        return lead
    return factory
