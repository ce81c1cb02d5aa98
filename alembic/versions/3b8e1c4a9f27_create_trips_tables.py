"""create_trips_tables

Revision ID: 3b8e1c4a9f27
Revises: 
Create Date: 2026-10-19 09:12:41.118302

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3b8e1c4a9f27'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TRIP_STATUSES = (
    "'pending_approval', 'pending_urgent', 'auto_approved', 'approved', 'approved_solo', "
    "'optimized', 'rejected', 'cancelled', 'expired'"
)

TRIP_COLUMNS = """
    id VARCHAR(36) PRIMARY KEY,
    user_id VARCHAR(255) NOT NULL,
    user_name VARCHAR(255) NOT NULL,
    user_email VARCHAR(255) NOT NULL,
    departure_location VARCHAR(64) NOT NULL,
    destination VARCHAR(64) NOT NULL,
    departure_date DATE NOT NULL,
    departure_time TIME NOT NULL,
    return_date DATE,
    return_time TIME,
    status VARCHAR(20) NOT NULL,
    vehicle_type VARCHAR(50),
    estimated_cost DOUBLE PRECISION,
    actual_cost DOUBLE PRECISION,
    original_departure_time TIME,
    notes TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
"""


def upgrade() -> None:
    """Upgrade schema."""
    op.execute("""
        CREATE TABLE locations (
            id VARCHAR(64) PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            code VARCHAR(32) NOT NULL UNIQUE,
            province VARCHAR(255),
            address VARCHAR(512),
            status VARCHAR(20) NOT NULL DEFAULT 'active',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT chk_locations_status CHECK (status IN ('active', 'inactive'))
        )
    """)

    op.execute("""
        CREATE TABLE users (
            id VARCHAR(255) PRIMARY KEY,
            email VARCHAR(255) NOT NULL UNIQUE,
            name VARCHAR(255) NOT NULL DEFAULT '',
            role VARCHAR(20) NOT NULL DEFAULT 'user',
            admin_type VARCHAR(20),
            admin_location_id VARCHAR(64),
            department VARCHAR(255),
            employee_id VARCHAR(255),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            last_login_at TIMESTAMPTZ,
            CONSTRAINT chk_users_role CHECK (role IN ('user', 'admin')),
            CONSTRAINT chk_users_admin_type
                CHECK (admin_type IS NULL OR admin_type IN ('super_admin', 'location_admin')),
            CONSTRAINT chk_users_location_admin_location
                CHECK (admin_type IS NULL OR admin_type != 'location_admin' OR admin_location_id IS NOT NULL)
        )
    """)
    op.execute("CREATE INDEX idx_users_role ON users (role)")

    op.execute(f"""
        CREATE TABLE trips (
            {TRIP_COLUMNS},
            data_type VARCHAR(10) NOT NULL DEFAULT 'raw',
            optimized_group_id VARCHAR(36),
            CONSTRAINT chk_trips_status CHECK (status IN ({TRIP_STATUSES})),
            CONSTRAINT chk_trips_data_type CHECK (data_type IN ('raw', 'final')),
            CONSTRAINT chk_trips_final_is_optimized CHECK ((data_type = 'final') = (status = 'optimized')),
            CONSTRAINT chk_trips_final_has_group CHECK (data_type = 'raw' OR optimized_group_id IS NOT NULL)
        )
    """)
    op.execute("CREATE INDEX idx_trips_user_id ON trips (user_id)")
    op.execute("CREATE INDEX idx_trips_status ON trips (status)")
    op.execute("CREATE INDEX idx_trips_departure_location ON trips (departure_location)")
    op.execute("CREATE INDEX idx_trips_departure_date ON trips (departure_date)")

    op.execute(f"""
        CREATE TABLE temp_trips (
            {TRIP_COLUMNS},
            data_type VARCHAR(10) NOT NULL DEFAULT 'temp',
            parent_trip_id VARCHAR(36) NOT NULL,
            optimized_group_id VARCHAR(36) NOT NULL,
            CONSTRAINT chk_temp_trips_status CHECK (status IN ({TRIP_STATUSES})),
            CONSTRAINT chk_temp_trips_data_type CHECK (data_type = 'temp')
        )
    """)
    op.execute("CREATE INDEX idx_temp_trips_group_id ON temp_trips (optimized_group_id)")
    op.execute("CREATE INDEX idx_temp_trips_parent_trip_id ON temp_trips (parent_trip_id)")

    op.execute("""
        CREATE TABLE optimization_groups (
            id VARCHAR(36) PRIMARY KEY,
            trip_ids JSONB NOT NULL,
            proposed_departure_time TIME NOT NULL,
            vehicle_type VARCHAR(50) NOT NULL,
            estimated_savings DOUBLE PRECISION NOT NULL DEFAULT 0,
            status VARCHAR(20) NOT NULL DEFAULT 'proposed',
            created_by VARCHAR(255) NOT NULL,
            approved_by VARCHAR(255),
            approved_at TIMESTAMPTZ,
            rejected_by VARCHAR(255),
            rejected_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT chk_optimization_groups_status CHECK (status IN ('proposed', 'approved', 'rejected'))
        )
    """)
    op.execute("CREATE INDEX idx_optimization_groups_status ON optimization_groups (status)")
    op.execute("CREATE INDEX idx_optimization_groups_created_by ON optimization_groups (created_by)")

    # One row per trip held by an active group; the primary key rejects double claims
    op.execute("""
        CREATE TABLE trip_claims (
            trip_id VARCHAR(36) PRIMARY KEY,
            group_id VARCHAR(36) NOT NULL REFERENCES optimization_groups (id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX idx_trip_claims_group_id ON trip_claims (group_id)")

    op.execute("""
        CREATE TABLE join_requests (
            id VARCHAR(36) PRIMARY KEY,
            trip_id VARCHAR(36) NOT NULL,
            trip_details JSONB NOT NULL,
            requester_id VARCHAR(255) NOT NULL,
            requester_email VARCHAR(255) NOT NULL,
            requester_name VARCHAR(255) NOT NULL,
            requester_role VARCHAR(20),
            requester_department VARCHAR(255),
            requester_employee_id VARCHAR(255),
            reason TEXT,
            status VARCHAR(20) NOT NULL DEFAULT 'pending',
            admin_notes TEXT,
            processed_by VARCHAR(255),
            processed_at TIMESTAMPTZ,
            location_id VARCHAR(64),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT chk_join_requests_status CHECK (status IN ('pending', 'approved', 'rejected', 'cancelled'))
        )
    """)
    op.execute("CREATE INDEX idx_join_requests_trip_id ON join_requests (trip_id)")
    op.execute("CREATE INDEX idx_join_requests_requester_id ON join_requests (requester_id)")
    op.execute("CREATE INDEX idx_join_requests_status ON join_requests (status)")
    op.execute("CREATE INDEX idx_join_requests_location_id ON join_requests (location_id)")

    op.execute("""
        CREATE TABLE admin_grants (
            id VARCHAR(36) PRIMARY KEY,
            action VARCHAR(10) NOT NULL,
            target_user_email VARCHAR(255) NOT NULL,
            admin_type VARCHAR(20),
            location_id VARCHAR(64),
            previous_admin_type VARCHAR(20),
            previous_location_id VARCHAR(64),
            performed_by_email VARCHAR(255) NOT NULL,
            performed_by_name VARCHAR(255),
            reason TEXT,
            ip_address VARCHAR(255) NOT NULL DEFAULT 'unknown',
            user_agent TEXT NOT NULL DEFAULT 'unknown',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT chk_admin_grants_action CHECK (action IN ('grant', 'revoke')),
            CONSTRAINT chk_admin_grants_admin_type
                CHECK (admin_type IS NULL OR admin_type IN ('super_admin', 'location_admin')),
            CONSTRAINT chk_admin_grants_location
                CHECK (action != 'grant' OR admin_type != 'location_admin' OR location_id IS NOT NULL)
        )
    """)
    op.execute("CREATE INDEX idx_admin_grants_target ON admin_grants (target_user_email)")
    op.execute("CREATE INDEX idx_admin_grants_performed_by ON admin_grants (performed_by_email)")

    op.execute("""
        CREATE TABLE pending_admin_assignments (
            email VARCHAR(255) PRIMARY KEY,
            admin_type VARCHAR(20) NOT NULL,
            location_id VARCHAR(64),
            assigned_by_email VARCHAR(255) NOT NULL,
            reason TEXT,
            expires_at TIMESTAMPTZ NOT NULL,
            activated_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT chk_pending_admin_admin_type CHECK (admin_type IN ('super_admin', 'location_admin'))
        )
    """)


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        "pending_admin_assignments",
        "admin_grants",
        "join_requests",
        "trip_claims",
        "optimization_groups",
        "temp_trips",
        "trips",
        "users",
        "locations",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table}")
