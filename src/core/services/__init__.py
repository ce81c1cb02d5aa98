"""
Business services for the trips service.

Every function takes the request's SQLAlchemy Session and never commits:
- trips.py: RAW trip submission, approval decisions, listing, expiry
- optimization.py: optimization groups and the RAW/TEMP/FINAL lifecycle
- join_requests.py: requests to join an existing trip
- admin_grants.py: admin role grants, revocations and directory
- audit.py: DynamoDB audit trail
- notifications.py: best-effort outbound notifications
- migration.py: Alembic upgrades for the migrate Lambda
"""

__all__: list[str] = []
