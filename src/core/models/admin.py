from datetime import datetime

from pydantic import Field

from core.models.base import ApiModel


class GrantAdminRequest(ApiModel):
    target_user_email: str = Field(..., min_length=3, max_length=255)
    admin_type: str
    location_id: str | None = None
    reason: str | None = None


class RevokeAdminRequest(ApiModel):
    target_user_email: str = Field(..., min_length=3, max_length=255)
    reason: str | None = None


class GrantResult(ApiModel):
    message: str
    is_pending: bool = False


class AdminOut(ApiModel):
    id: str
    email: str
    name: str
    admin_type: str | None = None
    admin_location_id: str | None = None
    last_login_at: datetime | None = None


class AdminStatistics(ApiModel):
    total_admins: int
    super_admins: int
    location_admins: int
    locations_with_admins: int


class LocationOut(ApiModel):
    id: str
    name: str
    code: str
    province: str | None = None
    address: str | None = None
    status: str
