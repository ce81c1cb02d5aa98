"""Trip submission, approval decisions and listing for RAW/FINAL trips."""

import logging
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from core.auth.caller import Caller, location_scope, require_admin, require_location_access
from core.db.schemas.base import utcnow
from core.db.schemas.optimization_group import TripClaim
from core.db.schemas.trip import TempTrip, Trip
from core.errors import AuthorizationError, ConflictError, ErrorCode, NotFoundError, ValidationError
from core.models.enums import APPROVED_STATUSES, PENDING_STATUSES, DataType, TripStatus
from core.models.trip import DataStats, TripCreate, TripFilters

logger = logging.getLogger(__name__)


def get_trip(session: Session, trip_id: str, for_update: bool = False) -> Trip:
    trip = session.get(Trip, trip_id, with_for_update=for_update)
    if trip is None:
        raise NotFoundError(f"Trip {trip_id} not found")
    return trip


def submit_trip(
    session: Session,
    payload: TripCreate,
    caller: Caller | None,
    urgent_threshold_hours: int = 24,
    local_timezone: str = "UTC",
    now: datetime | None = None,
) -> Trip:
    """Create a RAW trip awaiting approval.

    Departure date and time are local wall-clock values, so urgency is measured
    against the current time in local_timezone.
    """
    if caller is not None:
        owner = (caller.id, caller.email, caller.name)
    elif payload.user_id and payload.user_email and payload.user_name:
        owner = (payload.user_id, payload.user_email.lower(), payload.user_name)
    else:
        raise ValidationError("userId, userEmail and userName are required without a signed-in user")

    now = now or datetime.now(ZoneInfo(local_timezone)).replace(tzinfo=None)
    departure = datetime.combine(payload.departure_date, payload.departure_time)
    if departure - now < timedelta(hours=urgent_threshold_hours):
        status = TripStatus.PENDING_URGENT
    else:
        status = TripStatus.PENDING_APPROVAL

    trip = Trip(
        user_id=owner[0],
        user_email=owner[1],
        user_name=owner[2],
        departure_location=payload.departure_location,
        destination=payload.destination,
        departure_date=payload.departure_date,
        departure_time=payload.departure_time,
        return_date=payload.return_date,
        return_time=payload.return_time,
        vehicle_type=payload.vehicle_type,
        estimated_cost=payload.estimated_cost,
        notes=payload.notes,
        status=status.value,
        data_type=DataType.RAW.value,
    )
    session.add(trip)
    session.flush()
    logger.info("Trip %s submitted by %s (%s)", trip.id, trip.user_email, trip.status)
    return trip


def list_trips(session: Session, filters: TripFilters, caller: Caller | None) -> list[Trip | TempTrip]:
    if filters.status and filters.status not in {s.value for s in TripStatus}:
        raise ValidationError(f"Unknown trip status: {filters.status}")
    if filters.data_type and filters.data_type not in {d.value for d in DataType}:
        raise ValidationError(f"Unknown data type: {filters.data_type}")

    scope = location_scope(caller)
    results: list[Trip | TempTrip] = []
    models: list[type[Trip] | type[TempTrip]] = []
    if filters.data_type != DataType.TEMP.value:
        models.append(Trip)
    if filters.include_temp or filters.data_type == DataType.TEMP.value:
        models.append(TempTrip)

    for model in models:
        stmt = select(model)
        if filters.user_id:
            stmt = stmt.where(model.user_id == filters.user_id)
        if filters.status:
            stmt = stmt.where(model.status == filters.status)
        if filters.data_type and model is Trip:
            stmt = stmt.where(Trip.data_type == filters.data_type)
        if scope is not None:
            stmt = stmt.where(model.departure_location == scope)
        stmt = stmt.order_by(model.departure_date.desc(), model.departure_time.desc())
        results.extend(session.scalars(stmt))
    return results


def _decide(session: Session, trip_id: str, actor: Caller, new_status: TripStatus) -> Trip:
    require_admin(actor)
    trip = get_trip(session, trip_id, for_update=True)
    require_location_access(actor, trip.departure_location)
    if trip.status not in PENDING_STATUSES:
        raise ConflictError(
            f"Trip {trip_id} is {trip.status}, only pending trips can be decided",
            code=ErrorCode.INVALID_TRANSITION,
        )
    trip.status = new_status.value
    session.flush()
    logger.info("Trip %s %s by %s", trip_id, new_status.value, actor.email)
    return trip


def approve_trip(session: Session, trip_id: str, actor: Caller) -> Trip:
    return _decide(session, trip_id, actor, TripStatus.APPROVED)


def reject_trip(session: Session, trip_id: str, actor: Caller) -> Trip:
    return _decide(session, trip_id, actor, TripStatus.REJECTED)


def cancel_trip(session: Session, trip_id: str, actor: Caller) -> Trip:
    trip = get_trip(session, trip_id, for_update=True)
    if trip.user_id != actor.id:
        raise AuthorizationError("You can only cancel your own trips", code=ErrorCode.NOT_OWNER)
    if trip.status not in PENDING_STATUSES | APPROVED_STATUSES:
        raise ConflictError(
            f"Trip {trip_id} is {trip.status} and cannot be cancelled", code=ErrorCode.INVALID_TRANSITION
        )
    if session.get(TripClaim, trip_id) is not None:
        raise ConflictError(
            f"Trip {trip_id} is part of an optimization group", code=ErrorCode.TRIP_ALREADY_CLAIMED
        )
    trip.status = TripStatus.CANCELLED.value
    session.flush()
    return trip


def data_stats(session: Session, caller: Caller) -> DataStats:
    require_admin(caller)
    scope = location_scope(caller)

    def count(model: type[Trip] | type[TempTrip], *criteria) -> int:
        if scope is not None:
            criteria = (*criteria, model.departure_location == scope)
        stmt = select(func.count()).select_from(model)
        if criteria:
            stmt = stmt.where(*criteria)
        return session.scalar(stmt) or 0

    raw_count = count(Trip, Trip.data_type == DataType.RAW.value)
    final_count = count(Trip, Trip.data_type == DataType.FINAL.value)
    temp_count = count(TempTrip)
    return DataStats(
        raw_count=raw_count,
        temp_count=temp_count,
        final_count=final_count,
        total_count=raw_count + temp_count + final_count,
    )


def expire_stale_pending(session: Session, max_age_hours: int, now: datetime | None = None) -> int:
    """Mark trips that waited too long for approval as expired."""
    cutoff = (now or utcnow()) - timedelta(hours=max_age_hours)
    result = session.execute(
        update(Trip)
        .where(Trip.status.in_(sorted(PENDING_STATUSES)), Trip.created_at < cutoff)
        .values(status=TripStatus.EXPIRED.value, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount:
        logger.info("Expired %d trips pending approval for more than %d hours", result.rowcount, max_age_hours)
    return result.rowcount or 0
