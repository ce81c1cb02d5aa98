"""SQLAlchemy ORM models for admin role grants."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.db.schemas.base import Base, created_at_column, new_id
from core.models.enums import AdminType, GrantAction, sql_in


class AdminGrant(Base):
    """Append-only trail of every grant and revoke."""

    __tablename__ = "admin_grants"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    action: Mapped[str] = mapped_column(String(10), nullable=False)
    target_user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    admin_type: Mapped[str | None] = mapped_column(String(20))
    location_id: Mapped[str | None] = mapped_column(String(64))
    previous_admin_type: Mapped[str | None] = mapped_column(String(20))
    previous_location_id: Mapped[str | None] = mapped_column(String(64))
    performed_by_email: Mapped[str] = mapped_column(String(255), nullable=False)
    performed_by_name: Mapped[str | None] = mapped_column(String(255))
    reason: Mapped[str | None] = mapped_column(Text)
    ip_address: Mapped[str] = mapped_column(String(255), nullable=False, default="unknown")
    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default="unknown")
    created_at = created_at_column()

    __table_args__ = (
        CheckConstraint(f"action IN {sql_in(GrantAction)}", name="chk_admin_grants_action"),
        CheckConstraint(
            f"admin_type IS NULL OR admin_type IN {sql_in(AdminType)}", name="chk_admin_grants_admin_type"
        ),
        CheckConstraint(
            "action != 'grant' OR admin_type != 'location_admin' OR location_id IS NOT NULL",
            name="chk_admin_grants_location",
        ),
        Index("idx_admin_grants_target", "target_user_email"),
        Index("idx_admin_grants_performed_by", "performed_by_email"),
    )


class PendingAdminAssignment(Base):
    """Grant for an email that has not logged in yet, activated on first login."""

    __tablename__ = "pending_admin_assignments"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    admin_type: Mapped[str] = mapped_column(String(20), nullable=False)
    location_id: Mapped[str | None] = mapped_column(String(64))
    assigned_by_email: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[str | None] = mapped_column(Text)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    activated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at = created_at_column()

    __table_args__ = (
        CheckConstraint(f"admin_type IN {sql_in(AdminType)}", name="chk_pending_admin_admin_type"),
    )
