from datetime import datetime, time

from pydantic import Field

from core.models.base import ApiModel
from core.models.trip import TripOut


class ProposeGroupRequest(ApiModel):
    # Presence checks happen in the service so every caller gets the same errors
    trip_ids: list[str] = Field(default_factory=list)
    proposed_departure_time: time | None = None
    vehicle_type: str | None = Field(default=None, max_length=50)
    estimated_savings: float = Field(default=0.0, ge=0)


class GroupActionRequest(ApiModel):
    group_id: str = Field(..., min_length=1)


class GroupOut(ApiModel):
    id: str
    trip_ids: list[str]
    proposed_departure_time: time
    vehicle_type: str
    estimated_savings: float
    status: str
    created_by: str
    approved_by: str | None = None
    approved_at: datetime | None = None
    rejected_by: str | None = None
    rejected_at: datetime | None = None
    created_at: datetime | None = None


class GroupDetail(GroupOut):
    temp_trips: list[TripOut] = []


class CleanupResult(ApiModel):
    deleted: int
    groups_closed: int
    error: str | None = None
