"""
Pydantic models for the trips service API.
"""

from core.models.admin import AdminOut, AdminStatistics, GrantAdminRequest, GrantResult, LocationOut, RevokeAdminRequest
from core.models.join_request import (
    JoinRequestCreate,
    JoinRequestDecision,
    JoinRequestFilters,
    JoinRequestOut,
    JoinRequestStats,
)
from core.models.optimization import CleanupResult, GroupActionRequest, GroupDetail, GroupOut, ProposeGroupRequest
from core.models.trip import CleanupRequest, DataStats, TripCreate, TripFilters, TripOut

__all__ = [
    "AdminOut",
    "AdminStatistics",
    "CleanupRequest",
    "CleanupResult",
    "DataStats",
    "GrantAdminRequest",
    "GrantResult",
    "GroupActionRequest",
    "GroupDetail",
    "GroupOut",
    "JoinRequestCreate",
    "JoinRequestDecision",
    "JoinRequestFilters",
    "JoinRequestOut",
    "JoinRequestStats",
    "LocationOut",
    "ProposeGroupRequest",
    "RevokeAdminRequest",
    "TripCreate",
    "TripFilters",
    "TripOut",
]
