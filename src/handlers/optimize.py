"""Optimization group routes: propose, inspect, approve and reject shared trips."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from core.api import ApiRequest, dispatch, require_caller
from core.auth.caller import require_admin
from core.db.schemas.optimization_group import OptimizationGroup
from core.db.schemas.trip import Trip
from core.models.optimization import GroupActionRequest, GroupDetail, GroupOut, ProposeGroupRequest
from core.models.trip import TripOut
from core.services import optimization
from core.services.notifications import NotificationKind


def _member_emails(session: Session, group: OptimizationGroup) -> list[str]:
    return sorted(set(session.scalars(select(Trip.user_email).where(Trip.id.in_(group.trip_ids)))))


def _group_data(group: OptimizationGroup) -> dict[str, Any]:
    return {
        "groupId": group.id,
        "proposedDepartureTime": group.proposed_departure_time.strftime("%H:%M"),
        "vehicleType": group.vehicle_type,
        "tripCount": len(group.trip_ids),
    }


def list_groups(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_caller(req, session)
    groups = optimization.list_groups(session, caller, status=req.query.get("status"))
    return 200, [GroupOut.model_validate(g) for g in groups]


def get_group(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_admin(require_caller(req, session))
    group = optimization.get_group(session, req.path_param("id"))
    optimization.require_group_access(session, caller, group)
    temp_trips = [TripOut.model_validate(t) for t in optimization.get_temp_trips(session, group.id)]
    return 200, GroupDetail(**GroupOut.model_validate(group).model_dump(), temp_trips=temp_trips)


def create_group(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_caller(req, session)
    payload = req.parse(ProposeGroupRequest)
    group = optimization.propose_group(
        session,
        caller,
        payload.trip_ids,
        payload.proposed_departure_time,
        payload.vehicle_type,
        payload.estimated_savings,
    )
    req.audit("optimization.propose", entity_id=group.id, after=GroupOut.model_validate(group).to_json())
    req.notify(NotificationKind.GROUP_PROPOSED, _member_emails(session, group), _group_data(group))
    return 200, GroupOut.model_validate(group)


def approve_group(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_caller(req, session)
    payload = req.parse(GroupActionRequest)
    group = optimization.approve_group(session, payload.group_id, caller)
    req.audit(
        "optimization.approve",
        entity_id=group.id,
        before={"status": "proposed"},
        after={"status": group.status, "tripIds": group.trip_ids},
    )
    req.notify(NotificationKind.GROUP_APPROVED, _member_emails(session, group), _group_data(group))
    return 200, GroupOut.model_validate(group)


def reject_group(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_caller(req, session)
    payload = req.parse(GroupActionRequest)
    group = optimization.reject_group(session, payload.group_id, caller)
    req.audit("optimization.reject", entity_id=group.id, before={"status": "proposed"}, after={"status": group.status})
    req.notify(NotificationKind.GROUP_REJECTED, _member_emails(session, group), _group_data(group))
    return 200, GroupOut.model_validate(group)


ROUTES = {
    "GET /optimize": list_groups,
    "GET /optimize/{id}": get_group,
    "POST /optimize/create": create_group,
    "POST /optimize/approve": approve_group,
    "POST /optimize/reject": reject_group,
}


def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    return dispatch(event, ROUTES)
