"""SQLAlchemy ORM models for optimization groups and their trip claims."""

from datetime import datetime, time

from sqlalchemy import CheckConstraint, DateTime, Float, ForeignKey, Index, String, Time
from sqlalchemy.orm import Mapped, mapped_column

from core.db.schemas.base import Base, JsonType, created_at_column, new_id
from core.models.enums import GroupStatus, sql_in


class OptimizationGroup(Base):
    __tablename__ = "optimization_groups"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    # Ordered member list, kept after rejection for history
    trip_ids: Mapped[list[str]] = mapped_column(JsonType, nullable=False)
    proposed_departure_time: Mapped[time] = mapped_column(Time, nullable=False)
    vehicle_type: Mapped[str] = mapped_column(String(50), nullable=False)
    estimated_savings: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=GroupStatus.PROPOSED.value)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    approved_by: Mapped[str | None] = mapped_column(String(255))
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    rejected_by: Mapped[str | None] = mapped_column(String(255))
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at = created_at_column()

    __table_args__ = (
        CheckConstraint(f"status IN {sql_in(GroupStatus)}", name="chk_optimization_groups_status"),
        Index("idx_optimization_groups_status", "status"),
        Index("idx_optimization_groups_created_by", "created_by"),
    )


class TripClaim(Base):
    """A trip held by an active (proposed or approved) group.

    The primary key on trip_id is what rejects a second group claiming the
    same trip, including two writers racing on overlapping trip sets.
    """

    __tablename__ = "trip_claims"

    trip_id: Mapped[str] = mapped_column(String(36), primary_key=True)
    group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("optimization_groups.id", ondelete="CASCADE"), nullable=False
    )
    created_at = created_at_column()

    __table_args__ = (Index("idx_trip_claims_group_id", "group_id"),)
