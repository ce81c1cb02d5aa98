"""Admin management routes and the location directory."""

from typing import Any

from sqlalchemy.orm import Session

from core.api import ApiRequest, dispatch, require_caller
from core.auth.caller import require_admin
from core.clients import get_dynamo_client
from core.config import get_config
from core.models.admin import AdminOut, GrantAdminRequest, LocationOut, RevokeAdminRequest
from core.services import admin_grants
from core.services.audit import list_audit_entries
from core.services.notifications import NotificationKind


def list_locations(req: ApiRequest, session: Session) -> tuple[int, Any]:
    require_caller(req, session)
    return 200, [LocationOut.model_validate(loc) for loc in admin_grants.list_locations(session)]


def list_admins(req: ApiRequest, session: Session) -> tuple[int, Any]:
    admins = admin_grants.list_admins(session, require_caller(req, session))
    return 200, [AdminOut.model_validate(a) for a in admins]


def statistics(req: ApiRequest, session: Session) -> tuple[int, Any]:
    return 200, admin_grants.admin_statistics(session, require_caller(req, session))


def audit_log(req: ApiRequest, session: Session) -> tuple[int, Any]:
    require_admin(require_caller(req, session))
    query = req.query
    try:
        limit = max(1, min(int(query.get("limit", "100")), 500))
    except ValueError:
        limit = 100
    entries = list_audit_entries(
        get_dynamo_client(),
        get_config().audit_log_table,
        actor_email=query.get("actorEmail"),
        entity_id=query.get("entityId"),
        limit=limit,
    )
    return 200, entries


def grant(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_caller(req, session)
    payload = req.parse(GrantAdminRequest)
    result, row = admin_grants.grant_admin(
        session,
        payload,
        caller,
        ip_address=req.ip_address,
        user_agent=req.user_agent,
        pending_expiry_days=get_config().pending_admin_expiry_days,
    )
    req.audit(
        "admin.grant",
        entity_id=row.target_user_email,
        before={"adminType": row.previous_admin_type, "locationId": row.previous_location_id},
        after={"adminType": row.admin_type, "locationId": row.location_id, "pending": result.is_pending},
    )
    req.notify(
        NotificationKind.ADMIN_GRANTED,
        [row.target_user_email],
        {"adminType": row.admin_type, "locationId": row.location_id or "", "grantedBy": caller.email},
    )
    return 200, result


def revoke(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_caller(req, session)
    payload = req.parse(RevokeAdminRequest)
    result, row = admin_grants.revoke_admin(
        session, payload, caller, ip_address=req.ip_address, user_agent=req.user_agent
    )
    req.audit(
        "admin.revoke",
        entity_id=row.target_user_email,
        before={"adminType": row.previous_admin_type, "locationId": row.previous_location_id},
        after={"adminType": None, "pending": result.is_pending},
    )
    return 200, result


ROUTES = {
    "GET /locations": list_locations,
    "GET /admin/manage/admins": list_admins,
    "GET /admin/manage/statistics": statistics,
    "GET /admin/manage/audit-log": audit_log,
    "POST /admin/manage/admins/grant": grant,
    "POST /admin/manage/admins/revoke": revoke,
}


def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    return dispatch(event, ROUTES)
