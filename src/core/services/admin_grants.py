"""Admin role grants, revocations and the admin directory.

Grants are persisted: the users row carries the current role, admin_grants
keeps the full history, and pending_admin_assignments holds grants for
people who have not signed in yet.
"""

import logging
from datetime import timedelta

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from core.auth.caller import Caller, location_scope, require_admin, require_super_admin
from core.db.schemas.admin_grant import AdminGrant, PendingAdminAssignment
from core.db.schemas.base import utcnow
from core.db.schemas.user import Location, User
from core.errors import NotFoundError, ValidationError
from core.models.admin import AdminStatistics, GrantAdminRequest, GrantResult, RevokeAdminRequest
from core.models.enums import AdminType, GrantAction, Role

logger = logging.getLogger(__name__)


def _find_user(session: Session, email: str) -> User | None:
    return session.scalar(select(User).where(User.email == email))


def _trail(
    session: Session,
    action: GrantAction,
    email: str,
    performer: Caller,
    reason: str | None,
    ip_address: str,
    user_agent: str,
    admin_type: str | None = None,
    location_id: str | None = None,
    previous_admin_type: str | None = None,
    previous_location_id: str | None = None,
) -> AdminGrant:
    grant = AdminGrant(
        action=action.value,
        target_user_email=email,
        admin_type=admin_type,
        location_id=location_id,
        previous_admin_type=previous_admin_type,
        previous_location_id=previous_location_id,
        performed_by_email=performer.email,
        performed_by_name=performer.name,
        reason=reason,
        ip_address=ip_address or "unknown",
        user_agent=user_agent or "unknown",
    )
    session.add(grant)
    return grant


def grant_admin(
    session: Session,
    payload: GrantAdminRequest,
    performer: Caller,
    ip_address: str = "unknown",
    user_agent: str = "unknown",
    pending_expiry_days: int = 30,
) -> tuple[GrantResult, AdminGrant]:
    """Give a user admin rights, or queue them until the user first signs in."""
    require_super_admin(performer)
    email = payload.target_user_email.strip().lower()
    if payload.admin_type not in {t.value for t in AdminType}:
        raise ValidationError(f"Invalid admin type: {payload.admin_type}")

    location_id = None
    if payload.admin_type == AdminType.LOCATION_ADMIN.value:
        if not payload.location_id:
            raise ValidationError("Location is required for location admins")
        location = session.get(Location, payload.location_id)
        if location is None or location.status != "active":
            raise ValidationError(f"Location {payload.location_id} not found or inactive")
        location_id = location.id

    user = _find_user(session, email)
    if user is not None:
        previous = (user.admin_type, user.admin_location_id)
        user.role = Role.ADMIN.value
        user.admin_type = payload.admin_type
        user.admin_location_id = location_id
        result = GrantResult(message=f"Granted {payload.admin_type} to {email}")
    else:
        previous = (None, None)
        pending = session.get(PendingAdminAssignment, email)
        if pending is None:
            pending = PendingAdminAssignment(email=email)
            session.add(pending)
        pending.admin_type = payload.admin_type
        pending.location_id = location_id
        pending.assigned_by_email = performer.email
        pending.reason = payload.reason
        pending.expires_at = utcnow() + timedelta(days=pending_expiry_days)
        pending.activated_at = None
        result = GrantResult(
            message=f"{email} has not signed in yet; {payload.admin_type} will be applied on first login",
            is_pending=True,
        )

    grant = _trail(
        session,
        GrantAction.GRANT,
        email,
        performer,
        payload.reason,
        ip_address,
        user_agent,
        admin_type=payload.admin_type,
        location_id=location_id,
        previous_admin_type=previous[0],
        previous_location_id=previous[1],
    )
    session.flush()
    logger.info("%s granted %s to %s (pending=%s)", performer.email, payload.admin_type, email, result.is_pending)
    return result, grant


def revoke_admin(
    session: Session,
    payload: RevokeAdminRequest,
    performer: Caller,
    ip_address: str = "unknown",
    user_agent: str = "unknown",
) -> tuple[GrantResult, AdminGrant]:
    require_super_admin(performer)
    email = payload.target_user_email.strip().lower()
    if email == performer.email.lower():
        raise ValidationError("You cannot revoke your own admin access")

    user = _find_user(session, email)
    if user is None:
        pending = session.get(PendingAdminAssignment, email)
        if pending is None or pending.activated_at is not None:
            raise NotFoundError(f"User {email} not found")
        grant = _trail(
            session,
            GrantAction.REVOKE,
            email,
            performer,
            payload.reason,
            ip_address,
            user_agent,
            previous_admin_type=pending.admin_type,
            previous_location_id=pending.location_id,
        )
        session.delete(pending)
        session.flush()
        logger.info("%s revoked pending admin assignment for %s", performer.email, email)
        return GrantResult(message=f"Pending admin assignment for {email} revoked", is_pending=True), grant

    if user.role != Role.ADMIN.value:
        raise ValidationError(f"{email} is not an admin")

    grant = _trail(
        session,
        GrantAction.REVOKE,
        email,
        performer,
        payload.reason,
        ip_address,
        user_agent,
        previous_admin_type=user.admin_type,
        previous_location_id=user.admin_location_id,
    )
    user.role = Role.USER.value
    user.admin_type = None
    user.admin_location_id = None
    session.flush()
    logger.info("%s revoked admin access of %s", performer.email, email)
    return GrantResult(message=f"Admin access revoked for {email}"), grant


def list_admins(session: Session, caller: Caller) -> list[User]:
    require_admin(caller)
    stmt = select(User).where(User.role == Role.ADMIN.value).order_by(User.email)
    scope = location_scope(caller)
    if scope is not None:
        stmt = stmt.where(User.admin_location_id == scope)
    return list(session.scalars(stmt))


def admin_statistics(session: Session, caller: Caller) -> AdminStatistics:
    require_admin(caller)
    criteria = [User.role == Role.ADMIN.value]
    scope = location_scope(caller)
    if scope is not None:
        criteria.append(User.admin_location_id == scope)

    counts = dict(
        session.execute(select(User.admin_type, func.count()).where(*criteria).group_by(User.admin_type)).all()
    )
    locations = session.scalar(
        select(func.count(func.distinct(User.admin_location_id))).where(*criteria, User.admin_location_id.is_not(None))
    )
    return AdminStatistics(
        total_admins=sum(counts.values()),
        super_admins=counts.get(AdminType.SUPER_ADMIN.value, 0),
        location_admins=counts.get(AdminType.LOCATION_ADMIN.value, 0),
        locations_with_admins=locations or 0,
    )


def list_locations(session: Session, include_inactive: bool = False) -> list[Location]:
    stmt = select(Location).order_by(Location.name)
    if not include_inactive:
        stmt = stmt.where(Location.status == "active")
    return list(session.scalars(stmt))
