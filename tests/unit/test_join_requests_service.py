import pytest

from core.errors import AuthorizationError, ConflictError, ErrorCode, NotFoundError, ValidationError
from core.models.join_request import JoinRequestFilters
from core.services import join_requests


@pytest.fixture
def hcm_trip(make_trip):
    return make_trip(departure_location="HCM", destination="FACTORY")


@pytest.fixture
def hn_trip(make_trip):
    return make_trip(departure_location="HN", destination="FACTORY")


def test_create_join_request(session, other_employee, hcm_trip):
    request = join_requests.create_join_request(session, hcm_trip.id, "Same shift", other_employee)

    assert request.status == "pending"
    assert request.requester_id == other_employee.id
    assert request.requester_email == other_employee.email
    assert request.location_id == "HCM"
    assert request.trip_details["departureTime"] == "07:00"


def test_create_requires_trip_id(session, other_employee):
    with pytest.raises(ValidationError, match="Trip ID is required"):
        join_requests.create_join_request(session, None, None, other_employee)


def test_create_unknown_trip(session, other_employee):
    with pytest.raises(NotFoundError):
        join_requests.create_join_request(session, "missing", None, other_employee)


def test_create_duplicate_pending_conflicts(session, other_employee, hcm_trip):
    join_requests.create_join_request(session, hcm_trip.id, None, other_employee)
    with pytest.raises(ConflictError, match="already have a pending request"):
        join_requests.create_join_request(session, hcm_trip.id, None, other_employee)


def test_create_for_own_trip_rejected(session, employee, hcm_trip):
    with pytest.raises(ValidationError):
        join_requests.create_join_request(session, hcm_trip.id, None, employee)


def test_create_for_cancelled_trip_conflicts(session, other_employee, make_trip):
    trip = make_trip(status="cancelled")
    with pytest.raises(ConflictError):
        join_requests.create_join_request(session, trip.id, None, other_employee)


def test_cancel_only_by_requester(session, employee, other_employee, super_admin, hcm_trip):
    request = join_requests.create_join_request(session, hcm_trip.id, None, other_employee)

    for actor in (employee, super_admin):
        with pytest.raises(AuthorizationError) as exc:
            join_requests.cancel_join_request(session, request.id, actor)
        assert exc.value.code == ErrorCode.NOT_OWNER

    cancelled = join_requests.cancel_join_request(session, request.id, other_employee)
    assert cancelled.status == "cancelled"
    with pytest.raises(ConflictError):
        join_requests.cancel_join_request(session, request.id, other_employee)


def test_cancel_unknown(session, other_employee):
    with pytest.raises(NotFoundError):
        join_requests.cancel_join_request(session, "missing", other_employee)


def test_reject_requires_notes_first(session, employee):
    # Notes are checked before the caller or the request
    for notes in (None, "", "   "):
        with pytest.raises(ValidationError, match="Admin notes are required"):
            join_requests.reject_join_request(session, "missing", notes, employee)


def test_reject_then_reject_again_conflicts(session, super_admin, other_employee, hcm_trip):
    request = join_requests.create_join_request(session, hcm_trip.id, None, other_employee)

    rejected = join_requests.reject_join_request(session, request.id, "  Van is full ", super_admin)
    assert rejected.status == "rejected"
    assert rejected.admin_notes == "Van is full"
    assert rejected.processed_by == super_admin.id

    with pytest.raises(ConflictError):
        join_requests.reject_join_request(session, request.id, "Van is full", super_admin)


def test_reject_requires_admin(session, employee, other_employee, hcm_trip):
    request = join_requests.create_join_request(session, hcm_trip.id, None, other_employee)
    with pytest.raises(AuthorizationError):
        join_requests.reject_join_request(session, request.id, "no", employee)


def test_reject_unknown(session, super_admin):
    with pytest.raises(NotFoundError):
        join_requests.reject_join_request(session, "missing", "reason", super_admin)


def test_approve_books_requester(session, super_admin, other_employee, hcm_trip):
    request = join_requests.create_join_request(session, hcm_trip.id, None, other_employee)

    approved, trip = join_requests.approve_join_request(session, request.id, "Welcome aboard", super_admin)

    assert approved.status == "approved"
    assert approved.admin_notes == "Welcome aboard"
    assert trip.user_id == other_employee.id
    assert (trip.status, trip.data_type) == ("approved", "raw")
    assert (trip.departure_location, trip.destination) == (hcm_trip.departure_location, hcm_trip.destination)
    assert (trip.departure_date, trip.departure_time) == (hcm_trip.departure_date, hcm_trip.departure_time)

    with pytest.raises(ConflictError):
        join_requests.approve_join_request(session, request.id, None, super_admin)


def test_location_admin_decides_only_own_location(session, location_admin, other_employee, hcm_trip, hn_trip):
    own = join_requests.create_join_request(session, hcm_trip.id, None, other_employee)
    foreign = join_requests.create_join_request(session, hn_trip.id, None, other_employee)

    with pytest.raises(AuthorizationError):
        join_requests.reject_join_request(session, foreign.id, "Not ours", location_admin)
    with pytest.raises(AuthorizationError):
        join_requests.approve_join_request(session, foreign.id, None, location_admin)
    assert join_requests.reject_join_request(session, own.id, "Full", location_admin).status == "rejected"


def test_list_scoping(session, employee, other_employee, super_admin, location_admin, make_trip, hcm_trip, hn_trip):
    mine = join_requests.create_join_request(session, hcm_trip.id, None, other_employee)
    theirs = join_requests.create_join_request(session, hn_trip.id, None, other_employee)
    third = make_trip(user_id=other_employee.id, user_email=other_employee.email, user_name=other_employee.name)
    employees_own = join_requests.create_join_request(session, third.id, None, employee)

    def ids(caller, **filters):
        return {r.id for r in join_requests.list_join_requests(session, JoinRequestFilters(**filters), caller)}

    assert ids(super_admin) == {mine.id, theirs.id, employees_own.id}
    assert ids(location_admin) == {mine.id, employees_own.id}
    # Employees only see their own, whatever they ask for
    assert ids(employee) == {employees_own.id}
    assert ids(employee, requester_id=other_employee.id) == {employees_own.id}
    assert ids(super_admin, trip_id=hn_trip.id) == {theirs.id}
    assert ids(super_admin, status="cancelled") == set()
    with pytest.raises(ValidationError):
        ids(super_admin, status="bogus")


def test_stats_location_scoped(session, super_admin, location_admin, other_employee, hcm_trip, hn_trip):
    hcm_request = join_requests.create_join_request(session, hcm_trip.id, None, other_employee)
    join_requests.create_join_request(session, hn_trip.id, None, other_employee)
    join_requests.reject_join_request(session, hcm_request.id, "Full", super_admin)

    everything = join_requests.join_request_stats(session, super_admin)
    scoped = join_requests.join_request_stats(session, location_admin)

    assert (everything.total, everything.pending, everything.rejected) == (2, 1, 1)
    assert (scoped.total, scoped.pending, scoped.rejected) == (1, 0, 1)


def test_stats_requires_admin(session, employee):
    with pytest.raises(AuthorizationError):
        join_requests.join_request_stats(session, employee)
