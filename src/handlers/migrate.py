"""Migrate Lambda: upgrades the Aurora schema with Alembic."""

from typing import Any

from core.services.migration import run_migrations


def handler(event: dict[str, Any], context: object) -> dict[str, str]:
    return run_migrations((event or {}).get("revision", "head"))
