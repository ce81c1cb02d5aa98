"""Lazy-initialized clients, reused across warm Lambda invocations."""

from functools import lru_cache
from typing import Any

import boto3

from core.config import get_config
from core.db.aurora import AuroraClient


@lru_cache(maxsize=1)
def get_dynamo_client() -> Any:
    config = get_config()
    return boto3.client("dynamodb", endpoint_url=config.dynamodb_endpoint, region_name=config.aws_region)


@lru_cache(maxsize=1)
def get_ses_client() -> Any:
    config = get_config()
    return boto3.client("ses", region_name=config.aws_region)


@lru_cache(maxsize=1)
def get_database() -> AuroraClient:
    """Connected Aurora client; the engine's pool survives between invocations."""
    client = AuroraClient(get_config())
    client.connect()
    return client
