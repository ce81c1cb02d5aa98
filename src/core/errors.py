"""
Custom exceptions and error handling for the trips service.

Every domain error carries an error code and the HTTP status the API boundary
maps it to. Handlers never build error responses by hand; they raise one of
these and let core.api translate it.

Usage:
    from core.errors import ConflictError, ErrorCode

    raise ConflictError("Trip already claimed", code=ErrorCode.TRIP_ALREADY_CLAIMED)
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for client-facing error messages."""

    # Authentication errors
    AUTH_FAILED = "AUTH_FAILED"
    INVALID_TOKEN = "INVALID_TOKEN"

    # Authorization errors
    FORBIDDEN = "FORBIDDEN"
    ADMIN_REQUIRED = "ADMIN_REQUIRED"
    SUPER_ADMIN_REQUIRED = "SUPER_ADMIN_REQUIRED"
    NOT_OWNER = "NOT_OWNER"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Lookup errors
    NOT_FOUND = "NOT_FOUND"

    # State errors
    CONFLICT = "CONFLICT"
    TRIP_ALREADY_CLAIMED = "TRIP_ALREADY_CLAIMED"
    INVALID_TRANSITION = "INVALID_TRANSITION"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.AUTH_FAILED: "Authentication failed. Please sign in again.",
    ErrorCode.INVALID_TOKEN: "Your session has expired. Please sign in again.",
    ErrorCode.FORBIDDEN: "You do not have permission to perform this action.",
    ErrorCode.ADMIN_REQUIRED: "Admin access is required for this action.",
    ErrorCode.SUPER_ADMIN_REQUIRED: "Only super admins can perform this action.",
    ErrorCode.NOT_OWNER: "You can only change your own requests.",
    ErrorCode.VALIDATION_ERROR: "Your request contains invalid information. Please check and try again.",
    ErrorCode.INVALID_REQUEST: "Invalid request format. Please try again.",
    ErrorCode.NOT_FOUND: "The requested item could not be found.",
    ErrorCode.CONFLICT: "The request conflicts with the current state. Please refresh and try again.",
    ErrorCode.TRIP_ALREADY_CLAIMED: "One or more trips already belong to another optimization group.",
    ErrorCode.INVALID_TRANSITION: "This item can no longer be changed.",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred. Please try again.",
}


class TripsError(Exception):
    """Base exception for all trips service errors."""

    status_code = 500
    default_code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, code: ErrorCode | None = None):
        self.message = message
        self.code = code or self.default_code
        super().__init__(message)

    @property
    def user_message(self) -> str:
        return USER_MESSAGES.get(self.code, USER_MESSAGES[ErrorCode.INTERNAL_ERROR])


class AuthenticationError(TripsError):
    """No session, or the session could not be verified."""

    status_code = 401
    default_code = ErrorCode.AUTH_FAILED


class AuthorizationError(TripsError):
    """Valid session, insufficient privilege."""

    status_code = 403
    default_code = ErrorCode.FORBIDDEN


class ValidationError(TripsError):
    """Malformed or missing input."""

    status_code = 400
    default_code = ErrorCode.VALIDATION_ERROR


class NotFoundError(TripsError):
    status_code = 404
    default_code = ErrorCode.NOT_FOUND


class ConflictError(TripsError):
    """The write would break an invariant of the current state."""

    status_code = 409
    default_code = ErrorCode.CONFLICT


class InternalError(TripsError):
    pass
