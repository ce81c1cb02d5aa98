from datetime import datetime
from typing import Any

from pydantic import Field

from core.db.schemas.base import new_id, utcnow
from core.models.base import ApiModel


class AuditEntry(ApiModel):
    entity_id: str
    action: str
    actor_email: str
    actor_name: str | None = None
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    ip_address: str = "unknown"
    user_agent: str = "unknown"
    # Sort key; the timestamp prefix keeps one entity's history in order
    audit_id: str = ""

    def model_post_init(self, __context: Any) -> None:
        if not self.audit_id:
            self.audit_id = f"{self.timestamp.isoformat()}#{new_id()}"
