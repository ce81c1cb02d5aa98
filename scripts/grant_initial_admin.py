#!/usr/bin/env python3
"""Bootstrap the first super admin.

Grants can only be made by a super admin, so the very first one is written
directly. The script refuses to run once any super admin exists or is pending.

Usage:
    python scripts/grant_initial_admin.py admin@example.com --reason "Initial setup"
"""

import argparse
import sys
from datetime import timedelta
from pathlib import Path

from sqlalchemy import select

# Add src to path for core imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.clients import get_database
from core.config import get_config
from core.db.schemas.admin_grant import AdminGrant, PendingAdminAssignment
from core.db.schemas.base import utcnow
from core.db.schemas.user import User
from core.models.enums import AdminType, GrantAction, Role

BOOTSTRAP_ACTOR = "system:bootstrap"


def grant_initial_admin(session, email, reason, expiry_days):
    """Grant super_admin to email. Returns False when a super admin already exists."""
    email = email.strip().lower()
    existing = session.scalar(select(User.id).where(User.admin_type == AdminType.SUPER_ADMIN.value))
    pending = session.scalar(
        select(PendingAdminAssignment.email).where(
            PendingAdminAssignment.admin_type == AdminType.SUPER_ADMIN.value,
            PendingAdminAssignment.activated_at.is_(None),
        )
    )
    if existing or pending:
        return False

    user = session.scalar(select(User).where(User.email == email))
    if user is not None:
        user.role = Role.ADMIN.value
        user.admin_type = AdminType.SUPER_ADMIN.value
        user.admin_location_id = None
    else:
        session.add(
            PendingAdminAssignment(
                email=email,
                admin_type=AdminType.SUPER_ADMIN.value,
                assigned_by_email=BOOTSTRAP_ACTOR,
                reason=reason,
                expires_at=utcnow() + timedelta(days=expiry_days),
            )
        )
    session.add(
        AdminGrant(
            action=GrantAction.GRANT.value,
            target_user_email=email,
            admin_type=AdminType.SUPER_ADMIN.value,
            performed_by_email=BOOTSTRAP_ACTOR,
            reason=reason,
        )
    )
    session.flush()
    return True


def main():
    parser = argparse.ArgumentParser(description="Grant super_admin to the first administrator.")
    parser.add_argument("email", help="Email of the user to make super admin")
    parser.add_argument("--reason", default="Initial super admin", help="Reason stored in the grant trail")
    args = parser.parse_args()

    config = get_config()
    with get_database().session_scope() as session:
        granted = grant_initial_admin(session, args.email, args.reason, config.pending_admin_expiry_days)

    if not granted:
        print("✗ A super admin already exists; use the admin API to grant further roles")
        sys.exit(1)
    print(f"✅ Granted super_admin to {args.email.strip().lower()}")


if __name__ == "__main__":
    main()
