"""SQLAlchemy ORM model for the join_requests table."""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.db.schemas.base import Base, JsonType, created_at_column, new_id, updated_at_column
from core.models.enums import JoinRequestStatus, sql_in


class JoinRequest(Base):
    __tablename__ = "join_requests"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    trip_id: Mapped[str] = mapped_column(String(36), nullable=False)
    trip_details: Mapped[dict] = mapped_column(JsonType, nullable=False)
    requester_id: Mapped[str] = mapped_column(String(255), nullable=False)
    requester_email: Mapped[str] = mapped_column(String(255), nullable=False)
    requester_name: Mapped[str] = mapped_column(String(255), nullable=False)
    requester_role: Mapped[str | None] = mapped_column(String(20))
    requester_department: Mapped[str | None] = mapped_column(String(255))
    requester_employee_id: Mapped[str | None] = mapped_column(String(255))
    reason: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=JoinRequestStatus.PENDING.value)
    admin_notes: Mapped[str | None] = mapped_column(Text)
    processed_by: Mapped[str | None] = mapped_column(String(255))
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    location_id: Mapped[str | None] = mapped_column(String(64))
    created_at = created_at_column()
    updated_at = updated_at_column()

    __table_args__ = (
        CheckConstraint(f"status IN {sql_in(JoinRequestStatus)}", name="chk_join_requests_status"),
        Index("idx_join_requests_trip_id", "trip_id"),
        Index("idx_join_requests_requester_id", "requester_id"),
        Index("idx_join_requests_status", "status"),
        Index("idx_join_requests_location_id", "location_id"),
    )
