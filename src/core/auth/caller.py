"""Caller resolution and role checks.

The identity comes from the API Gateway authorizer context, which only the
authorizer Lambda can populate after verifying the bearer token. Role and
admin scope are always read from the users table, never from the request.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.orm import Session

from core.db.schemas.admin_grant import PendingAdminAssignment
from core.db.schemas.base import as_utc, utcnow
from core.db.schemas.user import User
from core.errors import AuthenticationError, AuthorizationError, ErrorCode
from core.models.enums import AdminType, Role

logger = logging.getLogger(__name__)


class Caller(BaseModel):
    id: str
    email: str
    name: str
    role: str = Role.USER.value
    admin_type: str | None = None
    admin_location_id: str | None = None
    department: str | None = None
    employee_id: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    @property
    def is_super_admin(self) -> bool:
        return self.is_admin and self.admin_type == AdminType.SUPER_ADMIN.value

    @property
    def is_location_admin(self) -> bool:
        return self.is_admin and self.admin_type == AdminType.LOCATION_ADMIN.value

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            admin_type=user.admin_type,
            admin_location_id=user.admin_location_id,
            department=user.department,
            employee_id=user.employee_id,
        )


def resolve_caller(identity: Mapping[str, Any] | None, session: Session) -> Caller:
    """Map a verified identity to a caller, registering first-time users."""
    user_id = str((identity or {}).get("userId") or "")
    email = str((identity or {}).get("email") or "").strip().lower()
    if not user_id or not email:
        raise AuthenticationError("User not authenticated")

    now = utcnow()
    user = session.get(User, user_id)
    if user is None:
        if session.scalar(select(User.id).where(User.email == email)) is not None:
            raise AuthenticationError(f"Email {email} is registered to a different identity")
        user = User(id=user_id, email=email, name=str(identity.get("name") or email), role=Role.USER.value)
        session.add(user)
        _activate_pending_assignment(session, user)

    for field, key in (("name", "name"), ("department", "department"), ("employee_id", "employeeId")):
        value = identity.get(key)
        if value:
            setattr(user, field, str(value))
    user.last_login_at = now
    session.flush()
    return Caller.from_user(user)


def _activate_pending_assignment(session: Session, user: User) -> None:
    pending = session.get(PendingAdminAssignment, user.email)
    if pending is None or pending.activated_at is not None:
        return
    now = utcnow()
    expires_at = as_utc(pending.expires_at)
    if expires_at < now:
        logger.info("Pending admin assignment for %s expired at %s", user.email, expires_at)
        return

    user.role = Role.ADMIN.value
    user.admin_type = pending.admin_type
    user.admin_location_id = pending.location_id
    pending.activated_at = now
    logger.info("Activated pending %s assignment for %s", pending.admin_type, user.email)


def require_admin(caller: Caller) -> Caller:
    if not caller.is_admin:
        raise AuthorizationError("Admin access required", code=ErrorCode.ADMIN_REQUIRED)
    return caller


def require_super_admin(caller: Caller) -> Caller:
    if not caller.is_super_admin:
        raise AuthorizationError("Only super admins can perform this action", code=ErrorCode.SUPER_ADMIN_REQUIRED)
    return caller


def location_scope(caller: Caller | None) -> str | None:
    """Location a list/stat query must be limited to, or None for an unscoped view."""
    if caller is not None and caller.is_location_admin:
        return caller.admin_location_id
    return None


def require_location_access(caller: Caller, location_id: str | None) -> None:
    scope = location_scope(caller)
    if scope is not None and scope != location_id:
        raise AuthorizationError("This item belongs to another location", code=ErrorCode.FORBIDDEN)
