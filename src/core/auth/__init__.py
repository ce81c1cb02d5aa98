"""Authentication abstraction layer and caller authorization."""

from core.auth.caller import (
    Caller,
    location_scope,
    require_admin,
    require_location_access,
    require_super_admin,
    resolve_caller,
)
from core.auth.clerk_provider import ClerkAuthProvider
from core.auth.interface import AuthProvider, AuthUser, get_auth_provider

__all__ = [
    "AuthProvider",
    "AuthUser",
    "Caller",
    "ClerkAuthProvider",
    "get_auth_provider",
    "location_scope",
    "require_admin",
    "require_location_access",
    "require_super_admin",
    "resolve_caller",
]
