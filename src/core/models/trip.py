from datetime import date, datetime, time

from pydantic import Field, model_validator

from core.models.base import ApiModel


class TripCreate(ApiModel):
    departure_location: str = Field(..., min_length=1, max_length=64)
    destination: str = Field(..., min_length=1, max_length=64)
    departure_date: date
    departure_time: time
    return_date: date | None = None
    return_time: time | None = None
    vehicle_type: str | None = Field(default=None, max_length=50)
    estimated_cost: float | None = Field(default=None, ge=0)
    notes: str | None = None
    # Only read when the request carries no authenticated caller
    user_id: str | None = None
    user_email: str | None = None
    user_name: str | None = None

    @model_validator(mode="after")
    def route_and_dates_consistent(self) -> "TripCreate":
        if self.departure_location == self.destination:
            raise ValueError("destination must differ from departure_location")
        if self.return_date and self.return_date < self.departure_date:
            raise ValueError("return_date must not be before departure_date")
        return self


class TripOut(ApiModel):
    id: str
    user_id: str
    user_name: str
    user_email: str
    departure_location: str
    destination: str
    departure_date: date
    departure_time: time
    return_date: date | None = None
    return_time: time | None = None
    status: str
    data_type: str
    parent_trip_id: str | None = None
    optimized_group_id: str | None = None
    original_departure_time: time | None = None
    vehicle_type: str | None = None
    estimated_cost: float | None = None
    actual_cost: float | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TripFilters(ApiModel):
    user_id: str | None = None
    status: str | None = None
    data_type: str | None = None
    include_temp: bool = False


class DataStats(ApiModel):
    raw_count: int
    temp_count: int
    final_count: int
    total_count: int


class CleanupRequest(ApiModel):
    max_age_days: int | None = Field(default=None, ge=1)
