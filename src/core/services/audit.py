"""Audit trail of admin actions in DynamoDB.

Writes happen after the request transaction commits and never fail the
request: errors are logged and the entry is dropped.
"""

import json
import logging
from datetime import datetime
from typing import Any

from core.models.audit import AuditEntry

logger = logging.getLogger(__name__)

ACTOR_INDEX = "actorEmail-timestamp-index"


def _to_item(entry: AuditEntry) -> dict[str, dict[str, str]]:
    item = {
        "entityId": {"S": entry.entity_id},
        "auditId": {"S": entry.audit_id},
        "action": {"S": entry.action},
        "actorEmail": {"S": entry.actor_email},
        "timestamp": {"S": entry.timestamp.isoformat()},
        "ipAddress": {"S": entry.ip_address},
        "userAgent": {"S": entry.user_agent},
    }
    if entry.actor_name:
        item["actorName"] = {"S": entry.actor_name}
    if entry.before is not None:
        item["before"] = {"S": json.dumps(entry.before, default=str)}
    if entry.after is not None:
        item["after"] = {"S": json.dumps(entry.after, default=str)}
    return item


def _from_item(item: dict[str, dict[str, str]]) -> AuditEntry:
    return AuditEntry(
        entity_id=item["entityId"]["S"],
        audit_id=item["auditId"]["S"],
        action=item["action"]["S"],
        actor_email=item["actorEmail"]["S"],
        actor_name=item.get("actorName", {}).get("S"),
        before=json.loads(item["before"]["S"]) if "before" in item else None,
        after=json.loads(item["after"]["S"]) if "after" in item else None,
        timestamp=datetime.fromisoformat(item["timestamp"]["S"]),
        ip_address=item.get("ipAddress", {}).get("S", "unknown"),
        user_agent=item.get("userAgent", {}).get("S", "unknown"),
    )


def record_audit(entry: AuditEntry, dynamo_client: Any, audit_table: str) -> bool:
    """Store one audit entry. Returns False when the write failed."""
    try:
        dynamo_client.put_item(TableName=audit_table, Item=_to_item(entry))
    except Exception:
        logger.exception("Failed to write audit entry %s for %s", entry.action, entry.entity_id)
        return False
    return True


def list_audit_entries(
    dynamo_client: Any,
    audit_table: str,
    actor_email: str | None = None,
    entity_id: str | None = None,
    limit: int = 100,
) -> list[AuditEntry]:
    """Most recent entries first, optionally for one actor or one entity."""
    if entity_id:
        base_kwargs: dict[str, Any] = {
            "TableName": audit_table,
            "KeyConditionExpression": "entityId = :id",
            "ExpressionAttributeValues": {":id": {"S": entity_id}},
            "ScanIndexForward": False,
        }
        operation = dynamo_client.query
    elif actor_email:
        base_kwargs = {
            "TableName": audit_table,
            "IndexName": ACTOR_INDEX,
            "KeyConditionExpression": "actorEmail = :email",
            "ExpressionAttributeValues": {":email": {"S": actor_email.lower()}},
            "ScanIndexForward": False,
        }
        operation = dynamo_client.query
    else:
        # Unordered; reading stops once limit entries are collected
        base_kwargs = {"TableName": audit_table}
        operation = dynamo_client.scan

    entries: list[AuditEntry] = []
    last_key = None
    while True:
        kwargs = dict(base_kwargs)
        if last_key:
            kwargs["ExclusiveStartKey"] = last_key

        response = operation(**kwargs)
        entries.extend(_from_item(item) for item in response.get("Items", []))

        last_key = response.get("LastEvaluatedKey")
        if not last_key or len(entries) >= limit:
            break

    entries.sort(key=lambda e: e.timestamp, reverse=True)
    return entries[:limit]
