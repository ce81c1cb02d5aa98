"""SQLAlchemy ORM models for users and locations."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from core.db.schemas.base import Base, created_at_column
from core.models.enums import AdminType, Role, sql_in


class User(Base):
    __tablename__ = "users"

    # Subject claim issued by the identity provider
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=Role.USER.value)
    admin_type: Mapped[str | None] = mapped_column(String(20))
    admin_location_id: Mapped[str | None] = mapped_column(String(64))
    department: Mapped[str | None] = mapped_column(String(255))
    employee_id: Mapped[str | None] = mapped_column(String(255))
    created_at = created_at_column()
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        CheckConstraint(f"role IN {sql_in(Role)}", name="chk_users_role"),
        CheckConstraint(f"admin_type IS NULL OR admin_type IN {sql_in(AdminType)}", name="chk_users_admin_type"),
        CheckConstraint(
            "admin_type IS NULL OR admin_type != 'location_admin' OR admin_location_id IS NOT NULL",
            name="chk_users_location_admin_location",
        ),
        Index("idx_users_role", "role"),
    )


class Location(Base):
    __tablename__ = "locations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    province: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str | None] = mapped_column(String(512))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    created_at = created_at_column()

    __table_args__ = (CheckConstraint("status IN ('active', 'inactive')", name="chk_locations_status"),)
