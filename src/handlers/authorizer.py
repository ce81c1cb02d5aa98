"""HTTP API Lambda authorizer: validates the Clerk JWT from the Authorization header."""

import asyncio
import logging
from typing import Any

from core.auth import get_auth_provider
from core.errors import AuthenticationError

logger = logging.getLogger(__name__)


def _bearer_token(event: dict[str, Any]) -> str:
    headers = {k.lower(): v for k, v in (event.get("headers") or {}).items()}
    scheme, _, token = headers["authorization"].partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise KeyError("authorization")
    return token.strip()


def handler(event: dict[str, Any], context: object) -> dict[str, Any]:
    # AuthProvider methods are async to support future providers with async HTTP clients.
    # ClerkAuthProvider's underlying SDK calls are synchronous, so asyncio.run() bridges
    # the gap in this sync Lambda handler.
    try:
        token = _bearer_token(event)
        auth_provider = get_auth_provider()
        auth_user = asyncio.run(auth_provider.verify_token(token))
    except (KeyError, AuthenticationError) as e:
        logger.info("Denied request: %s", e)
        return {"isAuthorized": False}

    # Only strings reach the handlers through the authorizer context
    return {
        "isAuthorized": True,
        "context": {
            "userId": auth_user.user_id,
            "email": auth_user.email,
            "name": auth_user.name,
            "employeeId": auth_user.employee_id,
            "department": auth_user.department or "",
        },
    }
