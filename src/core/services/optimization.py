"""Optimization groups and the RAW/TEMP/FINAL trip data lifecycle.

A proposal never touches the RAW trips: it claims them in trip_claims and
writes one TEMP shadow per trip with the proposed plan. Approval overwrites
each RAW row with its shadow (the row becomes FINAL) and drops the shadows;
rejection drops the shadows and the claims. Both run inside the caller's
transaction, so a failure part-way leaves RAW and TEMP rows as they were.
"""

import logging
from datetime import datetime, time, timedelta

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from core.auth.caller import Caller, location_scope, require_admin, require_location_access
from core.db.schemas.base import new_id, utcnow
from core.db.schemas.optimization_group import OptimizationGroup, TripClaim
from core.db.schemas.trip import TempTrip, Trip
from core.errors import ConflictError, ErrorCode, InternalError, NotFoundError, ValidationError
from core.models.enums import APPROVED_STATUSES, DataType, GroupStatus, TripStatus
from core.models.optimization import CleanupResult

logger = logging.getLogger(__name__)

# Shared transport cost per passenger relative to the solo estimate
SHARED_COST_FACTOR = 0.75

CLEANUP_ACTOR = "system:temp-cleanup"


def get_group(session: Session, group_id: str, for_update: bool = False) -> OptimizationGroup:
    group = session.get(OptimizationGroup, group_id, with_for_update=for_update)
    if group is None:
        raise NotFoundError(f"Optimization group {group_id} not found")
    return group


def list_groups(session: Session, caller: Caller, status: str | None = None) -> list[OptimizationGroup]:
    require_admin(caller)
    stmt = select(OptimizationGroup).order_by(OptimizationGroup.created_at.desc())
    if status:
        if status not in {s.value for s in GroupStatus}:
            raise ValidationError(f"Unknown group status: {status}")
        stmt = stmt.where(OptimizationGroup.status == status)
    groups = list(session.scalars(stmt))

    scope = location_scope(caller)
    if scope is None:
        return groups
    locations = _member_locations(session, [trip_id for g in groups for trip_id in g.trip_ids])
    # A group belongs to a location only when every member departs from it
    return [g for g in groups if g.trip_ids and all(locations.get(t) == scope for t in g.trip_ids)]


def _member_locations(session: Session, trip_ids: list[str]) -> dict[str, str]:
    if not trip_ids:
        return {}
    return dict(session.execute(select(Trip.id, Trip.departure_location).where(Trip.id.in_(trip_ids))).all())


def require_group_access(session: Session, actor: Caller, group: OptimizationGroup) -> None:
    """Location admins may only act on groups whose trips all depart from their location."""
    if location_scope(actor) is None:
        return
    locations = _member_locations(session, group.trip_ids)
    for trip_id in group.trip_ids:
        require_location_access(actor, locations.get(trip_id))


def get_temp_trips(session: Session, group_id: str) -> list[TempTrip]:
    return list(session.scalars(select(TempTrip).where(TempTrip.optimized_group_id == group_id)))


def propose_group(
    session: Session,
    caller: Caller,
    trip_ids: list[str],
    proposed_departure_time: time | None,
    vehicle_type: str | None,
    estimated_savings: float = 0.0,
) -> OptimizationGroup:
    require_admin(caller)
    if not trip_ids:
        raise ValidationError("Trip IDs are required")
    if len(set(trip_ids)) != len(trip_ids):
        raise ValidationError("Trip IDs must be unique")
    if proposed_departure_time is None:
        raise ValidationError("Proposed departure time is required")
    if not vehicle_type or not vehicle_type.strip():
        raise ValidationError("Vehicle type is required")

    trips = {t.id: t for t in session.scalars(select(Trip).where(Trip.id.in_(trip_ids)).with_for_update())}
    missing = [trip_id for trip_id in trip_ids if trip_id not in trips]
    if missing:
        raise ValidationError(f"Unknown trips: {', '.join(missing)}")
    for trip_id in trip_ids:
        require_location_access(caller, trips[trip_id].departure_location)
    for trip_id in trip_ids:
        trip = trips[trip_id]
        if trip.data_type != DataType.RAW.value or trip.status not in APPROVED_STATUSES:
            raise ValidationError(f"Trip {trip_id} is {trip.status} and cannot be optimized")

    claimed = _claimed_trip_ids(session, trip_ids)
    if claimed:
        raise ConflictError(
            f"Trips already in an active optimization group: {', '.join(sorted(claimed))}",
            code=ErrorCode.TRIP_ALREADY_CLAIMED,
        )

    group = OptimizationGroup(
        id=new_id(),
        trip_ids=list(trip_ids),
        proposed_departure_time=proposed_departure_time,
        vehicle_type=vehicle_type.strip(),
        estimated_savings=estimated_savings,
        status=GroupStatus.PROPOSED.value,
        created_by=caller.id,
    )
    session.add(group)
    session.flush()
    session.add_all(TripClaim(trip_id=trip_id, group_id=group.id) for trip_id in trip_ids)
    try:
        session.flush()
    except IntegrityError as e:
        # Another proposal claimed one of the trips after our check
        raise ConflictError(
            "Trips were claimed by a concurrent optimization group", code=ErrorCode.TRIP_ALREADY_CLAIMED
        ) from e

    session.add_all(_shadow(trips[trip_id], group) for trip_id in trip_ids)
    session.flush()
    logger.info("Optimization group %s proposed by %s for %d trips", group.id, caller.email, len(trip_ids))
    return group


def _claimed_trip_ids(session: Session, trip_ids: list[str]) -> list[str]:
    return list(session.scalars(select(TripClaim.trip_id).where(TripClaim.trip_id.in_(trip_ids))))


def _shadow(trip: Trip, group: OptimizationGroup) -> TempTrip:
    """TEMP copy of a RAW trip carrying the proposed plan."""
    return TempTrip(
        parent_trip_id=trip.id,
        optimized_group_id=group.id,
        user_id=trip.user_id,
        user_name=trip.user_name,
        user_email=trip.user_email,
        departure_location=trip.departure_location,
        destination=trip.destination,
        departure_date=trip.departure_date,
        departure_time=group.proposed_departure_time,
        original_departure_time=trip.departure_time,
        return_date=trip.return_date,
        return_time=trip.return_time,
        vehicle_type=group.vehicle_type,
        estimated_cost=trip.estimated_cost,
        actual_cost=round(trip.estimated_cost * SHARED_COST_FACTOR, 2) if trip.estimated_cost is not None else None,
        notes=trip.notes,
        status=TripStatus.OPTIMIZED.value,
        data_type=DataType.TEMP.value,
    )


def _promote(trip: Trip, shadow: TempTrip) -> None:
    trip.data_type = DataType.FINAL.value
    trip.status = TripStatus.OPTIMIZED.value
    trip.departure_time = shadow.departure_time
    trip.original_departure_time = shadow.original_departure_time
    trip.vehicle_type = shadow.vehicle_type
    trip.actual_cost = shadow.actual_cost
    trip.optimized_group_id = shadow.optimized_group_id


def _require_proposed(group: OptimizationGroup) -> None:
    if group.status != GroupStatus.PROPOSED.value:
        raise ConflictError(
            f"Optimization group {group.id} is already {group.status}", code=ErrorCode.INVALID_TRANSITION
        )


def approve_group(session: Session, group_id: str, actor: Caller) -> OptimizationGroup:
    """Promote every member's TEMP shadow to FINAL; all members or none."""
    require_admin(actor)
    group = get_group(session, group_id, for_update=True)
    require_group_access(session, actor, group)
    if not group.trip_ids:
        raise ValidationError(f"Optimization group {group_id} has no trips")
    _require_proposed(group)

    try:
        shadows = {s.parent_trip_id: s for s in get_temp_trips(session, group.id)}
        missing = [trip_id for trip_id in group.trip_ids if trip_id not in shadows]
        if missing:
            raise InternalError(f"Optimization group {group_id} has no TEMP data for trips {', '.join(missing)}")

        for trip_id in group.trip_ids:
            trip = session.get(Trip, trip_id, with_for_update=True)
            if trip is None:
                raise InternalError(f"RAW trip {trip_id} of group {group_id} disappeared")
            _promote(trip, shadows[trip_id])
            session.delete(shadows[trip_id])

        group.status = GroupStatus.APPROVED.value
        group.approved_by = actor.id
        group.approved_at = utcnow()
        session.flush()
    except SQLAlchemyError as e:
        raise InternalError(f"Failed to approve optimization {group_id}: {e}") from e

    logger.info("Optimization group %s approved by %s: %d trips finalized", group_id, actor.email, len(group.trip_ids))
    return group


def reject_group(session: Session, group_id: str, actor: Caller) -> OptimizationGroup:
    """Drop the proposal's TEMP shadows and release its trips; RAW rows stay as they are."""
    require_admin(actor)
    group = get_group(session, group_id, for_update=True)
    require_group_access(session, actor, group)
    _require_proposed(group)

    session.execute(delete(TempTrip).where(TempTrip.optimized_group_id == group.id))
    session.execute(delete(TripClaim).where(TripClaim.group_id == group.id))
    group.status = GroupStatus.REJECTED.value
    group.rejected_by = actor.id
    group.rejected_at = utcnow()
    session.flush()
    logger.info("Optimization group %s rejected by %s", group_id, actor.email)
    return group


def cleanup_stale_temp(session: Session, max_age_days: int, now: datetime | None = None) -> CleanupResult:
    """Delete TEMP rows of proposals left undecided for too long.

    Their groups are closed as rejected so no proposal is left without
    shadows. Best-effort: database failures are logged and reported in the
    result, and the session is rolled back.
    """
    cutoff = (now or utcnow()) - timedelta(days=max_age_days)
    try:
        stale_ids = set(
            session.scalars(select(TempTrip.optimized_group_id).where(TempTrip.created_at < cutoff).distinct())
        )
        if not stale_ids:
            return CleanupResult(deleted=0, groups_closed=0)

        groups = {
            g.id: g
            for g in session.scalars(
                select(OptimizationGroup).where(OptimizationGroup.id.in_(stale_ids)).with_for_update()
            )
        }
        targets = [gid for gid in stale_ids if gid not in groups or groups[gid].status == GroupStatus.PROPOSED.value]
        if not targets:
            return CleanupResult(deleted=0, groups_closed=0)

        deleted = session.execute(
            delete(TempTrip)
            .where(TempTrip.optimized_group_id.in_(targets))
            .execution_options(synchronize_session=False)
        ).rowcount
        closed = [groups[gid] for gid in targets if gid in groups]
        session.execute(delete(TripClaim).where(TripClaim.group_id.in_([g.id for g in closed])))
        for group in closed:
            group.status = GroupStatus.REJECTED.value
            group.rejected_by = CLEANUP_ACTOR
            group.rejected_at = utcnow()
        session.flush()
    except SQLAlchemyError as e:
        logger.exception("TEMP cleanup failed")
        session.rollback()
        return CleanupResult(deleted=0, groups_closed=0, error=str(e))

    logger.info("Cleaned up %d TEMP trips older than %d days, closed %d groups", deleted, max_age_days, len(closed))
    return CleanupResult(deleted=deleted or 0, groups_closed=len(closed))
