"""Join-request routes: employees asking to ride along on an existing trip."""

from typing import Any

from sqlalchemy.orm import Session

from core.api import ApiRequest, dispatch, require_caller
from core.models.join_request import JoinRequestCreate, JoinRequestDecision, JoinRequestFilters, JoinRequestOut
from core.models.trip import TripOut
from core.services import join_requests
from core.services.notifications import NotificationKind


def list_requests(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_caller(req, session)
    filters = req.parse_query(JoinRequestFilters)
    return 200, [JoinRequestOut.model_validate(r) for r in join_requests.list_join_requests(session, filters, caller)]


def create_request(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_caller(req, session)
    payload = req.parse(JoinRequestCreate)
    request = join_requests.create_join_request(session, payload.trip_id, payload.reason, caller)
    req.notify(
        NotificationKind.JOIN_REQUEST_CREATED,
        [request.requester_email],
        {"joinRequestId": request.id, "tripId": request.trip_id},
    )
    return 201, JoinRequestOut.model_validate(request)


def stats(req: ApiRequest, session: Session) -> tuple[int, Any]:
    return 200, join_requests.join_request_stats(session, require_caller(req, session))


def cancel(req: ApiRequest, session: Session) -> tuple[int, Any]:
    request = join_requests.cancel_join_request(session, req.path_param("id"), require_caller(req, session))
    return 200, JoinRequestOut.model_validate(request)


def approve(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_caller(req, session)
    decision = req.parse(JoinRequestDecision)
    request, trip = join_requests.approve_join_request(session, req.path_param("id"), decision.admin_notes, caller)
    req.audit(
        "join_request.approve",
        entity_id=request.id,
        before={"status": "pending"},
        after={"status": request.status, "tripId": trip.id},
    )
    req.notify(
        NotificationKind.JOIN_REQUEST_APPROVED,
        [request.requester_email],
        {"joinRequestId": request.id, "tripId": trip.id},
    )
    return 200, {"joinRequest": JoinRequestOut.model_validate(request), "trip": TripOut.model_validate(trip)}


def reject(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_caller(req, session)
    decision = req.parse(JoinRequestDecision)
    request = join_requests.reject_join_request(session, req.path_param("id"), decision.admin_notes, caller)
    req.audit(
        "join_request.reject",
        entity_id=request.id,
        before={"status": "pending"},
        after={"status": request.status, "adminNotes": request.admin_notes},
    )
    req.notify(
        NotificationKind.JOIN_REQUEST_REJECTED,
        [request.requester_email],
        {"joinRequestId": request.id, "adminNotes": request.admin_notes},
    )
    return 200, JoinRequestOut.model_validate(request)


ROUTES = {
    "GET /join-requests": list_requests,
    "POST /join-requests": create_request,
    "GET /join-requests/stats": stats,
    "POST /join-requests/{id}/cancel": cancel,
    "POST /join-requests/{id}/approve": approve,
    "POST /join-requests/{id}/reject": reject,
}


def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    return dispatch(event, ROUTES)
