"""Requests from employees to ride along on an existing trip."""

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.auth.caller import Caller, location_scope, require_admin, require_location_access
from core.db.schemas.base import utcnow
from core.db.schemas.join_request import JoinRequest
from core.db.schemas.trip import Trip
from core.errors import AuthorizationError, ConflictError, ErrorCode, NotFoundError, ValidationError
from core.models.enums import TERMINAL_STATUSES, DataType, JoinRequestStatus, TripStatus
from core.models.join_request import JoinRequestFilters, JoinRequestStats

logger = logging.getLogger(__name__)


def get_join_request(session: Session, request_id: str, for_update: bool = False) -> JoinRequest:
    request = session.get(JoinRequest, request_id, with_for_update=for_update)
    if request is None:
        raise NotFoundError(f"Join request {request_id} not found")
    return request


def create_join_request(session: Session, trip_id: str | None, reason: str | None, requester: Caller) -> JoinRequest:
    if not trip_id:
        raise ValidationError("Trip ID is required")
    trip = session.get(Trip, trip_id)
    if trip is None:
        raise NotFoundError(f"Trip {trip_id} not found")
    if trip.status in TERMINAL_STATUSES:
        raise ConflictError(f"Trip {trip_id} is {trip.status} and cannot be joined", code=ErrorCode.INVALID_TRANSITION)
    if trip.user_id == requester.id:
        raise ValidationError("You cannot request to join your own trip")

    existing = session.scalar(
        select(JoinRequest.id).where(
            JoinRequest.trip_id == trip_id,
            JoinRequest.requester_id == requester.id,
            JoinRequest.status == JoinRequestStatus.PENDING.value,
        )
    )
    if existing is not None:
        raise ConflictError("You already have a pending request for this trip")

    request = JoinRequest(
        trip_id=trip.id,
        trip_details={
            "departureLocation": trip.departure_location,
            "destination": trip.destination,
            "departureDate": trip.departure_date.isoformat(),
            "departureTime": trip.departure_time.strftime("%H:%M"),
            "optimizedGroupId": trip.optimized_group_id,
        },
        requester_id=requester.id,
        requester_email=requester.email,
        requester_name=requester.name,
        requester_role=requester.role,
        requester_department=requester.department,
        requester_employee_id=requester.employee_id,
        reason=reason,
        status=JoinRequestStatus.PENDING.value,
        location_id=trip.departure_location,
    )
    session.add(request)
    session.flush()
    logger.info("Join request %s created by %s for trip %s", request.id, requester.email, trip_id)
    return request


def list_join_requests(session: Session, filters: JoinRequestFilters, caller: Caller) -> list[JoinRequest]:
    stmt = select(JoinRequest).order_by(JoinRequest.created_at.desc())
    if filters.trip_id:
        stmt = stmt.where(JoinRequest.trip_id == filters.trip_id)
    if filters.status:
        if filters.status not in {s.value for s in JoinRequestStatus}:
            raise ValidationError(f"Unknown join request status: {filters.status}")
        stmt = stmt.where(JoinRequest.status == filters.status)

    if not caller.is_admin:
        # Employees only ever see their own requests
        stmt = stmt.where(JoinRequest.requester_id == caller.id)
    elif filters.requester_id:
        stmt = stmt.where(JoinRequest.requester_id == filters.requester_id)

    scope = location_scope(caller)
    if scope is not None:
        stmt = stmt.where(JoinRequest.location_id == scope)
    return list(session.scalars(stmt))


def join_request_stats(session: Session, caller: Caller) -> JoinRequestStats:
    require_admin(caller)
    stmt = select(JoinRequest.status, func.count()).group_by(JoinRequest.status)
    scope = location_scope(caller)
    if scope is not None:
        stmt = stmt.where(JoinRequest.location_id == scope)

    counts = {status: count for status, count in session.execute(stmt)}
    return JoinRequestStats(total=sum(counts.values()), **counts)


def _require_pending(request: JoinRequest, verb: str) -> None:
    if request.status != JoinRequestStatus.PENDING.value:
        raise ConflictError(
            f"Join request {request.id} is {request.status}, only pending requests can be {verb}",
            code=ErrorCode.INVALID_TRANSITION,
        )


def cancel_join_request(session: Session, request_id: str, actor: Caller) -> JoinRequest:
    request = get_join_request(session, request_id, for_update=True)
    if request.requester_id != actor.id:
        raise AuthorizationError("You can only cancel your own requests", code=ErrorCode.NOT_OWNER)
    _require_pending(request, "cancelled")

    request.status = JoinRequestStatus.CANCELLED.value
    request.processed_by = actor.id
    request.processed_at = utcnow()
    session.flush()
    return request


def approve_join_request(
    session: Session, request_id: str, admin_notes: str | None, actor: Caller
) -> tuple[JoinRequest, Trip]:
    """Approve and book the requester on the same route as the target trip."""
    require_admin(actor)
    request = get_join_request(session, request_id, for_update=True)
    require_location_access(actor, request.location_id)
    _require_pending(request, "approved")

    target = session.get(Trip, request.trip_id)
    if target is None:
        raise NotFoundError(f"Trip {request.trip_id} not found")

    trip = Trip(
        user_id=request.requester_id,
        user_email=request.requester_email,
        user_name=request.requester_name,
        departure_location=target.departure_location,
        destination=target.destination,
        departure_date=target.departure_date,
        departure_time=target.departure_time,
        return_date=target.return_date,
        return_time=target.return_time,
        vehicle_type=target.vehicle_type,
        notes=f"Joined trip {target.id}",
        status=TripStatus.APPROVED.value,
        data_type=DataType.RAW.value,
    )
    session.add(trip)

    request.status = JoinRequestStatus.APPROVED.value
    request.admin_notes = admin_notes
    request.processed_by = actor.id
    request.processed_at = utcnow()
    session.flush()
    logger.info("Join request %s approved by %s, trip %s created", request_id, actor.email, trip.id)
    return request, trip


def reject_join_request(session: Session, request_id: str, admin_notes: str | None, actor: Caller) -> JoinRequest:
    if not admin_notes or not admin_notes.strip():
        raise ValidationError("Admin notes are required when rejecting a request")
    require_admin(actor)
    request = get_join_request(session, request_id, for_update=True)
    require_location_access(actor, request.location_id)
    _require_pending(request, "rejected")

    request.status = JoinRequestStatus.REJECTED.value
    request.admin_notes = admin_notes.strip()
    request.processed_by = actor.id
    request.processed_at = utcnow()
    session.flush()
    logger.info("Join request %s rejected by %s", request_id, actor.email)
    return request
