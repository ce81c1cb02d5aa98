"""Status vocabularies shared by the ORM tables and the API models."""

from enum import Enum


class TripStatus(str, Enum):
    PENDING_APPROVAL = "pending_approval"
    PENDING_URGENT = "pending_urgent"
    AUTO_APPROVED = "auto_approved"
    APPROVED = "approved"
    APPROVED_SOLO = "approved_solo"
    OPTIMIZED = "optimized"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


# Column values, for membership tests against ORM attributes
PENDING_STATUSES = frozenset({TripStatus.PENDING_APPROVAL.value, TripStatus.PENDING_URGENT.value})
APPROVED_STATUSES = frozenset(
    {TripStatus.AUTO_APPROVED.value, TripStatus.APPROVED.value, TripStatus.APPROVED_SOLO.value}
)
TERMINAL_STATUSES = frozenset({TripStatus.REJECTED.value, TripStatus.CANCELLED.value, TripStatus.EXPIRED.value})


class DataType(str, Enum):
    RAW = "raw"
    TEMP = "temp"
    FINAL = "final"


class GroupStatus(str, Enum):
    PROPOSED = "proposed"
    APPROVED = "approved"
    REJECTED = "rejected"


ACTIVE_GROUP_STATUSES = frozenset({GroupStatus.PROPOSED.value, GroupStatus.APPROVED.value})


class JoinRequestStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class AdminType(str, Enum):
    SUPER_ADMIN = "super_admin"
    LOCATION_ADMIN = "location_admin"


class GrantAction(str, Enum):
    GRANT = "grant"
    REVOKE = "revoke"


def sql_in(enum: type[Enum]) -> str:
    """Render an enum's values as a SQL IN list for check constraints."""
    return "(" + ", ".join(f"'{member.value}'" for member in enum) + ")"
