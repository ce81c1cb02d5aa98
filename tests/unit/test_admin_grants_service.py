from datetime import timedelta

import pytest
from sqlalchemy import select

from core.auth.caller import resolve_caller
from core.db.schemas.admin_grant import AdminGrant, PendingAdminAssignment
from core.db.schemas.base import as_utc, utcnow
from core.db.schemas.user import User
from core.errors import AuthorizationError, NotFoundError, ValidationError
from core.models.admin import GrantAdminRequest, RevokeAdminRequest
from core.services import admin_grants


def _grant(email, admin_type="location_admin", location_id="HCM", reason="Covering HCM"):
    return GrantAdminRequest(target_user_email=email, admin_type=admin_type, location_id=location_id, reason=reason)


def test_grant_existing_user(session, super_admin, employee, locations):
    result, row = admin_grants.grant_admin(
        session, _grant(employee.email.upper()), super_admin, ip_address="10.0.0.1", user_agent="curl/8"
    )

    assert not result.is_pending
    user = session.get(User, employee.id)
    assert (user.role, user.admin_type, user.admin_location_id) == ("admin", "location_admin", "HCM")
    assert row.action == "grant"
    assert row.target_user_email == employee.email
    assert row.performed_by_email == super_admin.email
    assert (row.ip_address, row.user_agent) == ("10.0.0.1", "curl/8")
    assert row.previous_admin_type is None


def test_grant_records_previous_role(session, super_admin, location_admin):
    _, row = admin_grants.grant_admin(session, _grant(location_admin.email, "super_admin", None), super_admin)

    assert (row.previous_admin_type, row.previous_location_id) == ("location_admin", "HCM")
    assert session.get(User, location_admin.id).admin_location_id is None


def test_grant_unknown_user_is_pending(session, super_admin, locations):
    result, _ = admin_grants.grant_admin(session, _grant("new.hire@example.com"), super_admin, pending_expiry_days=30)

    assert result.is_pending
    pending = session.get(PendingAdminAssignment, "new.hire@example.com")
    assert pending.admin_type == "location_admin"
    assert pending.location_id == "HCM"
    assert as_utc(pending.expires_at) > utcnow() + timedelta(days=29)

    caller = resolve_caller({"userId": "user_new_hire", "email": "new.hire@example.com"}, session)
    assert caller.is_location_admin


def test_grant_validates_type_and_location(session, super_admin, employee, locations):
    with pytest.raises(ValidationError, match="Invalid admin type"):
        admin_grants.grant_admin(session, _grant(employee.email, "owner"), super_admin)
    with pytest.raises(ValidationError, match="Location is required"):
        admin_grants.grant_admin(session, _grant(employee.email, location_id=None), super_admin)
    with pytest.raises(ValidationError, match="not found or inactive"):
        admin_grants.grant_admin(session, _grant(employee.email, location_id="OLD"), super_admin)
    with pytest.raises(ValidationError, match="not found or inactive"):
        admin_grants.grant_admin(session, _grant(employee.email, location_id="NOWHERE"), super_admin)

    # Nothing changed and nothing was logged
    assert session.get(User, employee.id).role == "user"
    assert session.scalars(select(AdminGrant)).all() == []


def test_grant_requires_super_admin(session, location_admin, employee):
    with pytest.raises(AuthorizationError):
        admin_grants.grant_admin(session, _grant(employee.email), location_admin)


def test_revoke_admin(session, super_admin, location_admin):
    result, row = admin_grants.revoke_admin(
        session, RevokeAdminRequest(target_user_email=location_admin.email, reason="Left"), super_admin
    )

    assert "revoked" in result.message
    user = session.get(User, location_admin.id)
    assert (user.role, user.admin_type, user.admin_location_id) == ("user", None, None)
    assert (row.action, row.previous_admin_type, row.previous_location_id) == ("revoke", "location_admin", "HCM")


def test_revoke_self_refused(session, super_admin):
    with pytest.raises(ValidationError, match="your own"):
        admin_grants.revoke_admin(session, RevokeAdminRequest(target_user_email=super_admin.email), super_admin)


def test_revoke_non_admin_refused(session, super_admin, employee):
    with pytest.raises(ValidationError, match="not an admin"):
        admin_grants.revoke_admin(session, RevokeAdminRequest(target_user_email=employee.email), super_admin)


def test_revoke_unknown_user(session, super_admin):
    with pytest.raises(NotFoundError):
        admin_grants.revoke_admin(session, RevokeAdminRequest(target_user_email="ghost@example.com"), super_admin)


def test_revoke_pending_assignment(session, super_admin, locations):
    admin_grants.grant_admin(session, _grant("new.hire@example.com"), super_admin)

    result, _ = admin_grants.revoke_admin(
        session, RevokeAdminRequest(target_user_email="new.hire@example.com"), super_admin
    )

    assert result.is_pending
    assert session.get(PendingAdminAssignment, "new.hire@example.com") is None
    assert sorted(g.action for g in session.scalars(select(AdminGrant))) == ["grant", "revoke"]


def test_revoke_requires_super_admin(session, location_admin, super_admin):
    with pytest.raises(AuthorizationError):
        admin_grants.revoke_admin(session, RevokeAdminRequest(target_user_email=super_admin.email), location_admin)


def test_list_admins_and_statistics(session, super_admin, location_admin, employee):
    assert {a.email for a in admin_grants.list_admins(session, super_admin)} == {
        super_admin.email,
        location_admin.email,
    }
    assert [a.email for a in admin_grants.list_admins(session, location_admin)] == [location_admin.email]
    with pytest.raises(AuthorizationError):
        admin_grants.list_admins(session, employee)

    stats = admin_grants.admin_statistics(session, super_admin)
    assert (stats.total_admins, stats.super_admins, stats.location_admins, stats.locations_with_admins) == (
        2,
        1,
        1,
        1,
    )


def test_statistics_scoped_to_location_admin(session, super_admin, location_admin):
    session.add(
        User(
            id="user_hn_admin",
            email="hn.admin@example.com",
            name="HN Admin",
            role="admin",
            admin_type="location_admin",
            admin_location_id="HN",
        )
    )
    session.commit()

    scoped = admin_grants.admin_statistics(session, location_admin)
    assert (scoped.total_admins, scoped.super_admins, scoped.location_admins, scoped.locations_with_admins) == (
        1,
        0,
        1,
        1,
    )
    assert admin_grants.admin_statistics(session, super_admin).locations_with_admins == 2


def test_list_locations_hides_inactive(session, locations):
    assert [loc.id for loc in admin_grants.list_locations(session)] == ["FACTORY", "HN", "HCM"]
    assert len(admin_grants.list_locations(session, include_inactive=True)) == 4
