"""SQLAlchemy ORM models for the trips and temp_trips tables."""

from datetime import date, time

from sqlalchemy import CheckConstraint, Date, Float, Index, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from core.db.schemas.base import Base, created_at_column, new_id, updated_at_column
from core.models.enums import DataType, TripStatus, sql_in


class _TripColumns:
    """Columns shared by authoritative trips and their TEMP shadows."""

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_email: Mapped[str] = mapped_column(String(255), nullable=False)
    departure_location: Mapped[str] = mapped_column(String(64), nullable=False)
    destination: Mapped[str] = mapped_column(String(64), nullable=False)
    departure_date: Mapped[date] = mapped_column(Date, nullable=False)
    departure_time: Mapped[time] = mapped_column(Time, nullable=False)
    return_date: Mapped[date | None] = mapped_column(Date)
    return_time: Mapped[time | None] = mapped_column(Time)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    vehicle_type: Mapped[str | None] = mapped_column(String(50))
    estimated_cost: Mapped[float | None] = mapped_column(Float)
    actual_cost: Mapped[float | None] = mapped_column(Float)
    original_departure_time: Mapped[time | None] = mapped_column(Time)
    notes: Mapped[str | None] = mapped_column(Text)
    created_at = created_at_column()
    updated_at = updated_at_column()


class Trip(_TripColumns, Base):
    __tablename__ = "trips"

    data_type: Mapped[str] = mapped_column(String(10), nullable=False, default=DataType.RAW.value)
    optimized_group_id: Mapped[str | None] = mapped_column(String(36))

    __table_args__ = (
        CheckConstraint(f"status IN {sql_in(TripStatus)}", name="chk_trips_status"),
        CheckConstraint("data_type IN ('raw', 'final')", name="chk_trips_data_type"),
        CheckConstraint(
            "(data_type = 'final') = (status = 'optimized')",
            name="chk_trips_final_is_optimized",
        ),
        CheckConstraint(
            "data_type = 'raw' OR optimized_group_id IS NOT NULL",
            name="chk_trips_final_has_group",
        ),
        Index("idx_trips_user_id", "user_id"),
        Index("idx_trips_status", "status"),
        Index("idx_trips_departure_location", "departure_location"),
        Index("idx_trips_departure_date", "departure_date"),
    )


class TempTrip(_TripColumns, Base):
    __tablename__ = "temp_trips"

    data_type: Mapped[str] = mapped_column(String(10), nullable=False, default=DataType.TEMP.value)
    parent_trip_id: Mapped[str] = mapped_column(String(36), nullable=False)
    optimized_group_id: Mapped[str] = mapped_column(String(36), nullable=False)

    __table_args__ = (
        CheckConstraint(f"status IN {sql_in(TripStatus)}", name="chk_temp_trips_status"),
        CheckConstraint("data_type = 'temp'", name="chk_temp_trips_data_type"),
        Index("idx_temp_trips_group_id", "optimized_group_id"),
        Index("idx_temp_trips_parent_trip_id", "parent_trip_id"),
    )
