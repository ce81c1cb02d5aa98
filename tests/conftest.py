"""Shared test fixtures for the trips service."""

import json
import os
import sys
from datetime import date, time
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from dotenv import load_dotenv

# Load .env file for test configuration
load_dotenv()

# Unset AWS_PROFILE for local testing (DynamoDB Local doesn't need it)
if "AWS_PROFILE" in os.environ:
    del os.environ["AWS_PROFILE"]

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from core.auth.caller import Caller  # noqa: E402
from core.config import _reset_config, get_config  # noqa: E402
from core.db import AuroraClient, Base, Location, Trip, User  # noqa: E402
from core.models.enums import AdminType, DataType, Role, TripStatus  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_config_cache():
    _reset_config()
    yield
    _reset_config()


# SQLite fixtures for unit tests. One in-memory database per test, shared by
# every session through a single static connection.
@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def locations(session):
    rows = [
        Location(id="HCM", name="Ho Chi Minh City Office", code="HCM", province="Ho Chi Minh"),
        Location(id="FACTORY", name="Binh Duong Factory", code="FAC", province="Binh Duong"),
        Location(id="HN", name="Ha Noi Office", code="HN", province="Ha Noi"),
        Location(id="OLD", name="Closed Office", code="OLD", status="inactive"),
    ]
    session.add_all(rows)
    session.commit()
    return {loc.id: loc for loc in rows}


def _add_user(session, **fields) -> Caller:
    user = User(**fields)
    session.add(user)
    session.commit()
    return Caller.from_user(user)


@pytest.fixture
def employee(session):
    return _add_user(session, id="user_emp", email="an.nguyen@example.com", name="An Nguyen", department="Sales")


@pytest.fixture
def other_employee(session):
    return _add_user(session, id="user_other", email="binh.tran@example.com", name="Binh Tran")


@pytest.fixture
def super_admin(session):
    return _add_user(
        session,
        id="user_super",
        email="root@example.com",
        name="Root Admin",
        role=Role.ADMIN.value,
        admin_type=AdminType.SUPER_ADMIN.value,
    )


@pytest.fixture
def location_admin(session, locations):
    return _add_user(
        session,
        id="user_hcm_admin",
        email="hcm.admin@example.com",
        name="HCM Admin",
        role=Role.ADMIN.value,
        admin_type=AdminType.LOCATION_ADMIN.value,
        admin_location_id="HCM",
    )


@pytest.fixture
def make_trip(session, employee):
    """Factory for RAW trips; defaults to an approved HCM -> FACTORY morning trip."""

    def _make(**overrides) -> Trip:
        fields = dict(
            user_id=employee.id,
            user_email=employee.email,
            user_name=employee.name,
            departure_location="HCM",
            destination="FACTORY",
            departure_date=date(2026, 11, 2),
            departure_time=time(7, 0),
            status=TripStatus.APPROVED.value,
            data_type=DataType.RAW.value,
            vehicle_type="car",
            estimated_cost=100.0,
        )
        fields.update(overrides)
        trip = Trip(**fields)
        session.add(trip)
        session.commit()
        return trip

    return _make


# Lambda handler fixtures
@pytest.fixture
def api(engine):
    """Route core.api at the SQLite database and capture post-commit side effects."""
    database = AuroraClient(get_config(), engine=engine)
    dynamo_client = MagicMock()
    with (
        patch("core.api.get_database", return_value=database),
        patch("core.api.get_dynamo_client", return_value=dynamo_client),
        patch("core.api.notify") as mock_notify,
    ):
        yield MagicMock(database=database, dynamo=dynamo_client, notify=mock_notify)


def identity_of(caller: Caller) -> dict[str, str]:
    return {"userId": caller.id, "email": caller.email, "name": caller.name}


@pytest.fixture
def make_event():
    def _make(route_key, body=None, path=None, query=None, caller=None, headers=None, source_ip="203.0.113.7"):
        event = {
            "version": "2.0",
            "routeKey": route_key,
            "headers": headers or {"user-agent": "pytest-agent"},
            "queryStringParameters": query,
            "pathParameters": path,
            "requestContext": {"http": {"sourceIp": source_ip}},
            "body": json.dumps(body) if body is not None else None,
        }
        if caller is not None:
            event["requestContext"]["authorizer"] = {"lambda": identity_of(caller)}
        return event

    return _make


# PostgreSQL fixtures
@pytest.fixture
def pg_database():
    """Provide a connected AuroraClient for integration tests."""
    database = AuroraClient(get_config())
    database.connect()
    yield database
    database.disconnect()


# DynamoDB fixtures
@pytest.fixture
def dynamodb_client():
    """Provide a DynamoDB client for integration tests."""
    import boto3

    config = get_config()

    return boto3.client(
        "dynamodb",
        endpoint_url=config.dynamodb_endpoint,
        region_name=config.aws_region,
        aws_access_key_id="dummy",
        aws_secret_access_key="dummy",
    )


@pytest.fixture
def audit_log_table(dynamodb_client):
    """Provide the audit log table name, emptied after the test."""
    table = get_config().audit_log_table
    yield table

    # Cleanup: scan and delete all items created during test
    response = dynamodb_client.scan(TableName=table)
    for item in response.get("Items", []):
        dynamodb_client.delete_item(
            TableName=table,
            Key={"entityId": item["entityId"], "auditId": item["auditId"]},
        )
