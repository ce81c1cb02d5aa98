"""Unit tests for request parsing, dispatch and error mapping."""

import base64
import json

import pytest

from core.api import ApiRequest, dispatch, require_caller
from core.errors import ConflictError, ErrorCode, InternalError, ValidationError
from core.models.trip import TripCreate
from core.services.notifications import NotificationKind


def test_ip_address_prefers_source_ip():
    req = ApiRequest({"requestContext": {"http": {"sourceIp": "198.51.100.1"}}, "headers": {"x-real-ip": "10.0.0.9"}})
    assert req.ip_address == "198.51.100.1"


def test_ip_address_falls_back_to_headers():
    assert ApiRequest({"headers": {"X-Forwarded-For": "198.51.100.2, 10.0.0.1"}}).ip_address == "198.51.100.2"
    assert ApiRequest({"headers": {"x-real-ip": "198.51.100.3"}}).ip_address == "198.51.100.3"
    assert ApiRequest({}).ip_address == "unknown"
    assert ApiRequest({}).user_agent == "unknown"


def test_json_body_base64():
    body = base64.b64encode(json.dumps({"tripId": "t1"}).encode()).decode()
    assert ApiRequest({"body": body, "isBase64Encoded": True}).json() == {"tripId": "t1"}


@pytest.mark.parametrize("body", ["{not json", "[1, 2]"])
def test_json_body_invalid(body):
    with pytest.raises(ValidationError) as exc:
        ApiRequest({"body": body}).json()
    assert exc.value.code == ErrorCode.INVALID_REQUEST


def test_parse_maps_pydantic_errors():
    with pytest.raises(ValidationError, match="departureDate"):
        ApiRequest({"body": json.dumps({"departureLocation": "HCM", "destination": "FACTORY"})}).parse(TripCreate)


def test_path_param_required():
    with pytest.raises(ValidationError, match="id"):
        ApiRequest({"pathParameters": None}).path_param("id")


def test_audit_requires_caller():
    with pytest.raises(InternalError):
        ApiRequest({}).audit("trip.approve", "t1")


def test_unknown_route_is_404(api):
    response = dispatch({"routeKey": "DELETE /trips"}, {})

    assert response["statusCode"] == 404
    assert json.loads(response["body"])["code"] == "NOT_FOUND"


def test_domain_error_mapped(api):
    def route(req, session):
        raise ConflictError("Trip t1 already grouped", code=ErrorCode.TRIP_ALREADY_CLAIMED)

    response = dispatch({"routeKey": "POST /x"}, {"POST /x": route})

    assert response["statusCode"] == 409
    assert json.loads(response["body"]) == {"error": "Trip t1 already grouped", "code": "TRIP_ALREADY_CLAIMED"}


def test_unexpected_error_hides_details(api):
    def route(req, session):
        raise RuntimeError("password=hunter2")

    response = dispatch({"routeKey": "GET /x"}, {"GET /x": route})

    assert response["statusCode"] == 500
    body = json.loads(response["body"])
    assert body["code"] == "INTERNAL_ERROR"
    assert "hunter2" not in body["error"]


def test_missing_identity_is_401(api):
    response = dispatch({"routeKey": "GET /x"}, {"GET /x": lambda req, session: (200, require_caller(req, session))})

    assert response["statusCode"] == 401
    assert "error" in json.loads(response["body"])


def test_side_effects_run_after_commit(api, make_event, super_admin):
    def route(req, session):
        require_caller(req, session)
        req.audit("trip.approve", "t1", before={"status": "pending_approval"}, after={"status": "approved"})
        req.notify(NotificationKind.TRIP_SUBMITTED, ["an@example.com"], {"tripId": "t1"})
        return 200, {"ok": True}

    response = dispatch(make_event("POST /x", caller=super_admin), {"POST /x": route})

    assert response["statusCode"] == 200
    item = api.dynamo.put_item.call_args.kwargs["Item"]
    assert item["actorEmail"]["S"] == super_admin.email
    assert item["ipAddress"]["S"] == "203.0.113.7"
    assert item["userAgent"]["S"] == "pytest-agent"
    api.notify.assert_called_once_with(NotificationKind.TRIP_SUBMITTED, ["an@example.com"], {"tripId": "t1"})


def test_side_effects_dropped_on_failure(api, make_event, super_admin):
    def route(req, session):
        require_caller(req, session)
        req.audit("trip.approve", "t1")
        raise ConflictError("nope")

    response = dispatch(make_event("POST /x", caller=super_admin), {"POST /x": route})

    assert response["statusCode"] == 409
    api.dynamo.put_item.assert_not_called()


def test_audit_failure_does_not_fail_request(api, make_event, super_admin):
    api.dynamo.put_item.side_effect = Exception("ProvisionedThroughputExceeded")

    def route(req, session):
        require_caller(req, session)
        req.audit("trip.approve", "t1")
        return 200, []

    response = dispatch(make_event("POST /x", caller=super_admin), {"POST /x": route})

    assert response["statusCode"] == 200


def test_response_is_json(api):
    response = dispatch({"routeKey": "GET /x"}, {"GET /x": lambda req, session: (200, {"value": 1})})

    assert response["headers"]["Content-Type"] == "application/json"
    assert json.loads(response["body"]) == {"value": 1}
