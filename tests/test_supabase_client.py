from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from database import (
    AuditEventType,
    AuditLogger,
    ConfigurationError,
    DatabaseConfig,
    PersistenceError,
    SupabaseClient,
)
from leads.config import ImportConfig

from conftest import InMemoryLeadStore


def _response(data):
    return SimpleNamespace(data=data)


@pytest.fixture()
def supabase():
    return MagicMock()


def test_fetch_all_follows_pagination(supabase):
    query = supabase.table.return_value.select.return_value.order.return_value
    query.range.return_value.execute.side_effect = [
        _response([{"id": 1}, {"id": 2}]),
        _response([{"id": 3}]),
    ]

    rows = SupabaseClient(client=supabase, page_size=2).fetch_all("leads", columns="id, phone, tags")

    assert rows == [{"id": 1}, {"id": 2}, {"id": 3}]
    supabase.table.return_value.select.assert_called_with("id, phone, tags")
    assert [call.args for call in query.range.call_args_list] == [(0, 1), (2, 3)]


def test_fetch_all_wraps_client_errors(supabase):
    supabase.table.return_value.select.side_effect = RuntimeError("connection reset")

    with pytest.raises(PersistenceError) as excinfo:
        SupabaseClient(client=supabase).fetch_all("leads")

    assert excinfo.value.operation == "fetch_all"
    assert excinfo.value.table == "leads"
    assert "connection reset" in str(excinfo.value)


def test_insert_many_returns_created_rows(supabase):
    supabase.table.return_value.insert.return_value.execute.return_value = _response([{"id": 7, "email": "a@x.com"}])

    rows = SupabaseClient(client=supabase).insert_many("leads", [{"email": "a@x.com"}])

    assert rows == [{"id": 7, "email": "a@x.com"}]
    supabase.table.return_value.insert.assert_called_once_with([{"email": "a@x.com"}])


def test_insert_many_skips_empty_payload(supabase):
    assert SupabaseClient(client=supabase).insert_many("leads", []) == []
    supabase.table.assert_not_called()


def test_update_one_filters_by_id(supabase):
    SupabaseClient(client=supabase).update_one("leads", 5, {"name": "Ana"})

    supabase.table.return_value.update.assert_called_once_with({"name": "Ana"})
    supabase.table.return_value.update.return_value.eq.assert_called_once_with("id", 5)


def test_update_and_delete_many_count_returned_rows(supabase):
    table = supabase.table.return_value
    table.update.return_value.in_.return_value.execute.return_value = _response([{"id": 1}, {"id": 2}])
    table.delete.return_value.in_.return_value.execute.return_value = _response([{"id": 9}])
    client = SupabaseClient(client=supabase)

    assert client.update_many("leads", [1, 2], {"status": "Aluno"}) == 2
    assert client.delete_many("whatsapp_messages", [1], column="leadId") == 1
    table.delete.return_value.in_.assert_called_once_with("leadId", [1])


def test_write_errors_become_persistence_errors(supabase):
    supabase.table.return_value.update.return_value.eq.return_value.execute.side_effect = RuntimeError("timeout")

    with pytest.raises(PersistenceError):
        SupabaseClient(client=supabase).update_one("leads", 1, {})


def test_database_config_from_env(monkeypatch):
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    monkeypatch.setenv("SUPABASE_KEY", "anon-key")

    config = DatabaseConfig.from_env()

    assert config.url == "https://example.supabase.co"
    assert config.key == "anon-key"


def test_database_config_requires_credentials(monkeypatch):
    monkeypatch.delenv("SUPABASE_URL", raising=False)

    with pytest.raises(ConfigurationError):
        DatabaseConfig.from_env()


def test_import_config_from_env(monkeypatch):
    monkeypatch.setenv("LEAD_IMPORT_BATCH_SIZE", "25")
    monkeypatch.setenv("LEAD_IMPORT_DEFAULT_CAMPAIGN", "Planilha")

    config = ImportConfig.from_env()

    assert config.batch_size == 25
    assert config.default_campaign == "Planilha"
    assert config.leads_table == "leads"


@pytest.mark.parametrize("value", ["abc", "0", "-3"])
def test_import_config_rejects_bad_batch_size(monkeypatch, value):
    monkeypatch.setenv("LEAD_IMPORT_BATCH_SIZE", value)

    with pytest.raises(ConfigurationError):
        ImportConfig.from_env()


def test_audit_logger_writes_redacted_row():
    store = InMemoryLeadStore()

    written = AuditLogger(store).record(AuditEventType.LEAD_BATCH_DELETE, "u1", {"leadIds": [1], "token": "secret"})

    row = store.rows("audit_logs")[0]
    assert written is True
    assert row["type"] == "lead_batch_delete"
    assert row["user_id"] == "u1"
    assert row["details"] == {"leadIds": [1], "token": "[REDACTED]"}


def test_audit_logger_swallows_store_failure():
    store = InMemoryLeadStore()
    store.fail_when("insert_many")

    assert AuditLogger(store).record(AuditEventType.LEAD_BATCH_IMPORT, None, {}) is False
