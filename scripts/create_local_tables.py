#!/usr/bin/env python3
"""Create the DynamoDB audit log table for local development.

Creates the table configured as AUDIT_LOG_TABLE against DynamoDB Local, with
the same key schema and actor index as the deployed table.

Usage:
    python scripts/create_local_tables.py
"""

import sys
from pathlib import Path

import boto3
from botocore.exceptions import ClientError

# Add src to path for config import
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.config import get_config
from core.services.audit import ACTOR_INDEX


def create_audit_log_table(dynamodb, table_name):
    """Create the audit log table with the actor GSI."""
    try:
        dynamodb.create_table(
            TableName=table_name,
            KeySchema=[
                {"AttributeName": "entityId", "KeyType": "HASH"},
                {"AttributeName": "auditId", "KeyType": "RANGE"},
            ],
            AttributeDefinitions=[
                {"AttributeName": "entityId", "AttributeType": "S"},
                {"AttributeName": "auditId", "AttributeType": "S"},
                {"AttributeName": "actorEmail", "AttributeType": "S"},
                {"AttributeName": "timestamp", "AttributeType": "S"},
            ],
            GlobalSecondaryIndexes=[
                {
                    "IndexName": ACTOR_INDEX,
                    "KeySchema": [
                        {"AttributeName": "actorEmail", "KeyType": "HASH"},
                        {"AttributeName": "timestamp", "KeyType": "RANGE"},
                    ],
                    "Projection": {"ProjectionType": "ALL"},
                }
            ],
            BillingMode="PAY_PER_REQUEST",
        )
        print(f"✓ Created {table_name} table with GSI")
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            print(f"✓ {table_name} table already exists")
        else:
            raise


def main():
    config = get_config()

    endpoint_url = config.dynamodb_endpoint or "http://localhost:8000"

    print(f"Creating DynamoDB tables at {endpoint_url}...")
    print()

    # For DynamoDB Local, use dummy credentials
    dynamodb = boto3.client(
        "dynamodb",
        endpoint_url=endpoint_url,
        region_name=config.aws_region,
        aws_access_key_id="dummy",
        aws_secret_access_key="dummy",
    )

    create_audit_log_table(dynamodb, config.audit_log_table)

    print()
    print("✅ All DynamoDB tables ready")


if __name__ == "__main__":
    main()
