from os import environ

import boto3
from pydantic import BaseModel, ConfigDict

_cached_clerk_secret: str | None = None


def _resolve_clerk_secret() -> str:
    """Fetch Clerk secret from Secrets Manager at runtime, with caching."""
    global _cached_clerk_secret
    if _cached_clerk_secret is not None:
        return _cached_clerk_secret

    # Local dev: use env var directly
    direct = environ.get("CLERK_SECRET_KEY", "")
    if direct:
        _cached_clerk_secret = direct
        return direct

    # Deployed: fetch from Secrets Manager by ARN
    arn = environ.get("CLERK_SECRET_ARN", "")
    if not arn:
        return ""

    client = boto3.client("secretsmanager")
    _cached_clerk_secret = client.get_secret_value(SecretId=arn)["SecretString"]
    return _cached_clerk_secret


class Config(BaseModel):
    model_config = ConfigDict(frozen=True)

    aws_region: str
    aurora_host: str
    aurora_port: int
    aurora_database: str
    aurora_user: str
    aurora_password: str
    aurora_secret_arn: str | None = None
    dynamodb_endpoint: str | None = None
    audit_log_table: str
    clerk_secret_key: str = ""
    environment: str
    notification_sender: str = ""
    temp_max_age_days: int = 7
    approval_expiry_hours: int = 48
    urgent_threshold_hours: int = 24
    # Departure dates and times are wall-clock times in this zone
    local_timezone: str = "Asia/Ho_Chi_Minh"
    pending_admin_expiry_days: int = 30


_cached_config: Config | None = None


def _reset_config() -> None:
    """Reset cached config, for testing only."""
    global _cached_config, _cached_clerk_secret
    _cached_config = None
    _cached_clerk_secret = None


def get_config() -> Config:
    global _cached_config
    if _cached_config is not None:
        return _cached_config

    _cached_config = Config(
        aws_region=environ.get("AWS_REGION", "us-east-1"),
        aurora_host=environ.get("AURORA_HOST", "localhost"),
        aurora_port=int(environ.get("AURORA_PORT", "5432")),
        aurora_database=environ.get("AURORA_DATABASE", "trips"),
        aurora_user=environ.get("AURORA_USER", "trips"),
        aurora_password=environ.get("AURORA_PASSWORD", "localdev"),
        aurora_secret_arn=environ.get("AURORA_SECRET_ARN"),
        dynamodb_endpoint=environ.get("DYNAMODB_ENDPOINT"),
        audit_log_table=environ.get("AUDIT_LOG_TABLE", "TripsAuditLog"),
        clerk_secret_key=_resolve_clerk_secret(),
        environment=environ.get("ENVIRONMENT", "local"),
        notification_sender=environ.get("NOTIFICATION_SENDER", ""),
        temp_max_age_days=int(environ.get("TEMP_MAX_AGE_DAYS", "7")),
        approval_expiry_hours=int(environ.get("APPROVAL_EXPIRY_HOURS", "48")),
        urgent_threshold_hours=int(environ.get("URGENT_THRESHOLD_HOURS", "24")),
        local_timezone=environ.get("LOCAL_TIMEZONE", "Asia/Ho_Chi_Minh"),
        pending_admin_expiry_days=int(environ.get("PENDING_ADMIN_EXPIRY_DAYS", "30")),
    )
    return _cached_config
