"""Trip submission, listing, approval and maintenance routes."""

from typing import Any

from sqlalchemy.orm import Session

from core.api import ApiRequest, dispatch, optional_caller, require_caller
from core.auth.caller import require_admin
from core.config import get_config
from core.models.trip import CleanupRequest, TripCreate, TripFilters, TripOut
from core.services import optimization, trips
from core.services.notifications import NotificationKind


def list_trips(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = optional_caller(req, session)
    filters = req.parse_query(TripFilters)
    return 200, [TripOut.model_validate(t) for t in trips.list_trips(session, filters, caller)]


def submit_trip(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = optional_caller(req, session)
    payload = req.parse(TripCreate)
    config = get_config()
    trip = trips.submit_trip(
        session,
        payload,
        caller,
        urgent_threshold_hours=config.urgent_threshold_hours,
        local_timezone=config.local_timezone,
    )
    req.notify(
        NotificationKind.TRIP_SUBMITTED,
        [trip.user_email],
        {"tripId": trip.id, "route": f"{trip.departure_location} -> {trip.destination}", "status": trip.status},
    )
    return 200, TripOut.model_validate(trip)


def data_stats(req: ApiRequest, session: Session) -> tuple[int, Any]:
    return 200, trips.data_stats(session, require_caller(req, session))


def cleanup(req: ApiRequest, session: Session) -> tuple[int, Any]:
    caller = require_admin(require_caller(req, session))
    payload = req.parse(CleanupRequest)
    max_age_days = payload.max_age_days or get_config().temp_max_age_days
    result = optimization.cleanup_stale_temp(session, max_age_days)
    req.audit("trips.cleanup_temp", entity_id="temp_trips", after=result.to_json() | {"maxAgeDays": max_age_days})
    return 200, result


def _decision(req: ApiRequest, session: Session, action: str) -> tuple[int, Any]:
    caller = require_admin(require_caller(req, session))
    trip_id = req.path_param("id")
    before = trips.get_trip(session, trip_id).status
    decide = trips.approve_trip if action == "approve" else trips.reject_trip
    trip = decide(session, trip_id, caller)
    req.audit(f"trip.{action}", entity_id=trip.id, before={"status": before}, after={"status": trip.status})
    return 200, TripOut.model_validate(trip)


def approve(req: ApiRequest, session: Session) -> tuple[int, Any]:
    return _decision(req, session, "approve")


def reject(req: ApiRequest, session: Session) -> tuple[int, Any]:
    return _decision(req, session, "reject")


def cancel(req: ApiRequest, session: Session) -> tuple[int, Any]:
    trip = trips.cancel_trip(session, req.path_param("id"), require_caller(req, session))
    return 200, TripOut.model_validate(trip)


ROUTES = {
    "GET /trips": list_trips,
    "POST /trips": submit_trip,
    "GET /trips/data-stats": data_stats,
    "POST /trips/cleanup": cleanup,
    "POST /trips/{id}/approve": approve,
    "POST /trips/{id}/reject": reject,
    "POST /trips/{id}/cancel": cancel,
}


def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    return dispatch(event, ROUTES)
