"""Run Alembic migrations programmatically, invoked by the migrate Lambda."""

import io
import json
import logging
import os

import boto3
from alembic.config import Config

from alembic import command

logger = logging.getLogger(__name__)

DEFAULT_ALEMBIC_INI = "/var/task/alembic.ini"


def _load_credentials_from_secret(secret_arn: str) -> None:
    """Fetch Aurora credentials from Secrets Manager and expose them to alembic/env.py."""
    sm = boto3.client("secretsmanager", region_name=os.environ.get("AWS_REGION", "us-east-1"))
    secret = json.loads(sm.get_secret_value(SecretId=secret_arn)["SecretString"])
    os.environ["AURORA_USER"] = secret.get("username", "trips")
    os.environ["AURORA_PASSWORD"] = secret.get("password", "")
    os.environ["AURORA_HOST"] = secret.get("host", os.environ.get("AURORA_HOST", ""))
    os.environ["AURORA_PORT"] = str(secret.get("port", 5432))
    os.environ["AURORA_DATABASE"] = secret.get("dbname", os.environ.get("AURORA_DATABASE", "trips"))


def _alembic_config() -> Config:
    ini_path = os.environ.get("ALEMBIC_CONFIG", DEFAULT_ALEMBIC_INI)
    cfg = Config(ini_path)
    cfg.set_main_option("script_location", os.path.join(os.path.dirname(os.path.abspath(ini_path)), "alembic"))
    return cfg


def run_migrations(revision: str = "head") -> dict[str, str]:
    secret_arn = os.environ.get("AURORA_SECRET_ARN")
    if secret_arn:
        _load_credentials_from_secret(secret_arn)

    cfg = _alembic_config()

    stderr_buf = io.StringIO()
    stream_handler = logging.StreamHandler(stderr_buf)
    alembic_logger = logging.getLogger("alembic")
    alembic_logger.addHandler(stream_handler)

    try:
        command.upgrade(cfg, revision)
        output = stderr_buf.getvalue()
        logger.info("Migration to %s complete: %s", revision, output)
        return {"status": "success", "revision": revision, "output": output}
    except Exception as e:
        logger.error("Migration to %s failed: %s", revision, e)
        raise
    finally:
        alembic_logger.removeHandler(stream_handler)
