"""Unit tests for the DynamoDB audit trail."""

import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

from core.models.audit import AuditEntry
from core.services.audit import ACTOR_INDEX, _to_item, list_audit_entries, record_audit


def _entry(**overrides):
    fields = dict(
        entity_id="group-1",
        action="optimization.approve",
        actor_email="root@example.com",
        actor_name="Root Admin",
        before={"status": "proposed"},
        after={"status": "approved"},
        timestamp=datetime(2026, 10, 19, 8, 30, tzinfo=timezone.utc),
        ip_address="203.0.113.7",
        user_agent="pytest-agent",
    )
    fields.update(overrides)
    return AuditEntry(**fields)


def test_audit_id_sorts_by_timestamp():
    entry = _entry()
    assert entry.audit_id.startswith("2026-10-19T08:30:00+00:00#")
    assert _entry().audit_id != entry.audit_id


def test_record_audit():
    mock_client = MagicMock()

    assert record_audit(_entry(), mock_client, "AuditLog") is True

    call_args = mock_client.put_item.call_args
    assert call_args.kwargs["TableName"] == "AuditLog"
    item = call_args.kwargs["Item"]
    assert item["entityId"]["S"] == "group-1"
    assert item["actorEmail"]["S"] == "root@example.com"
    assert item["ipAddress"]["S"] == "203.0.113.7"
    assert json.loads(item["before"]["S"]) == {"status": "proposed"}
    assert json.loads(item["after"]["S"]) == {"status": "approved"}


def test_record_audit_omits_empty_fields():
    mock_client = MagicMock()
    record_audit(_entry(before=None, actor_name=None), mock_client, "AuditLog")

    item = mock_client.put_item.call_args.kwargs["Item"]
    assert "before" not in item
    assert "actorName" not in item


def test_record_audit_failure_is_swallowed():
    mock_client = MagicMock()
    mock_client.put_item.side_effect = Exception("ResourceNotFoundException")

    assert record_audit(_entry(), mock_client, "AuditLog") is False


def test_list_audit_entries_scans_all_pages():
    first, second = _entry(entity_id="a"), _entry(entity_id="b", timestamp=datetime(2026, 10, 20, tzinfo=timezone.utc))
    mock_client = MagicMock()
    mock_client.scan.side_effect = [
        {"Items": [_to_item(first)], "LastEvaluatedKey": {"entityId": {"S": "a"}}},
        {"Items": [_to_item(second)]},
    ]

    entries = list_audit_entries(mock_client, "AuditLog")

    assert [e.entity_id for e in entries] == ["b", "a"]
    assert mock_client.scan.call_count == 2
    assert mock_client.scan.call_args_list[1].kwargs["ExclusiveStartKey"] == {"entityId": {"S": "a"}}
    assert entries[1].before == {"status": "proposed"}


def test_list_audit_entries_scan_stops_at_limit():
    mock_client = MagicMock()
    mock_client.scan.return_value = {
        "Items": [_to_item(_entry(entity_id=f"group-{n}")) for n in range(3)],
        "LastEvaluatedKey": {"entityId": {"S": "group-2"}},
    }

    entries = list_audit_entries(mock_client, "AuditLog", limit=2)

    assert len(entries) == 2
    assert mock_client.scan.call_count == 1


def test_list_audit_entries_by_actor_uses_index():
    mock_client = MagicMock()
    mock_client.query.return_value = {"Items": [_to_item(_entry())]}

    entries = list_audit_entries(mock_client, "AuditLog", actor_email="Root@Example.com", limit=10)

    assert len(entries) == 1
    kwargs = mock_client.query.call_args.kwargs
    assert kwargs["IndexName"] == ACTOR_INDEX
    assert kwargs["ExpressionAttributeValues"] == {":email": {"S": "root@example.com"}}
    mock_client.scan.assert_not_called()


def test_list_audit_entries_by_entity():
    mock_client = MagicMock()
    mock_client.query.return_value = {"Items": []}

    assert list_audit_entries(mock_client, "AuditLog", entity_id="group-1") == []
    assert "IndexName" not in mock_client.query.call_args.kwargs
