"""Scheduled maintenance: drop stale TEMP proposals and expire unanswered trips."""

import logging
from typing import Any

from core.clients import get_database
from core.config import get_config
from core.services.optimization import cleanup_stale_temp
from core.services.trips import expire_stale_pending

logger = logging.getLogger(__name__)


def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    config = get_config()
    database = get_database()

    # Separate transactions so a failed cleanup does not block expiry
    with database.session_scope() as session:
        cleanup = cleanup_stale_temp(session, config.temp_max_age_days)
    with database.session_scope() as session:
        expired = expire_stale_pending(session, config.approval_expiry_hours)

    logger.info(
        "Maintenance complete: %d TEMP trips deleted, %d groups closed, %d trips expired",
        cleanup.deleted,
        cleanup.groups_closed,
        expired,
    )
    return {"cleanup": cleanup.to_json(), "expired": expired}
