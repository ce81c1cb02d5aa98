from datetime import datetime

from core.models.base import ApiModel


class JoinRequestCreate(ApiModel):
    trip_id: str | None = None
    reason: str | None = None


class JoinRequestDecision(ApiModel):
    admin_notes: str | None = None


class JoinRequestFilters(ApiModel):
    trip_id: str | None = None
    requester_id: str | None = None
    status: str | None = None


class JoinRequestOut(ApiModel):
    id: str
    trip_id: str
    trip_details: dict
    requester_id: str
    requester_email: str
    requester_name: str
    requester_role: str | None = None
    requester_department: str | None = None
    requester_employee_id: str | None = None
    reason: str | None = None
    status: str
    admin_notes: str | None = None
    processed_by: str | None = None
    processed_at: datetime | None = None
    location_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class JoinRequestStats(ApiModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    cancelled: int = 0
