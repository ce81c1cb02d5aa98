"""
Database ORM models and clients for the trips service.

Importing this package registers all models on Base.metadata,
which Alembic needs for autogenerate.
"""

from core.db.aurora import AuroraClient
from core.db.schemas.admin_grant import AdminGrant, PendingAdminAssignment
from core.db.schemas.base import Base
from core.db.schemas.join_request import JoinRequest
from core.db.schemas.optimization_group import OptimizationGroup, TripClaim
from core.db.schemas.trip import TempTrip, Trip
from core.db.schemas.user import Location, User

__all__ = [
    "AdminGrant",
    "AuroraClient",
    "Base",
    "JoinRequest",
    "Location",
    "OptimizationGroup",
    "PendingAdminAssignment",
    "TempTrip",
    "Trip",
    "TripClaim",
    "User",
]
