"""
Access-control exception hierarchy.

Every error the access core raises derives from ``AccessControlError`` and
carries a stable ``code`` plus the HTTP status it maps to. The HTTP layer
turns these into JSON responses in ``forum_access.main``; services never
build ``HTTPException`` objects for these conditions themselves.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import status


class AccessControlError(Exception):
    """Base exception for the access-control core.

    Attributes:
        code: Stable error code string (e.g. ``"LOCKED_OUT"``).
        message: Human-readable description safe to return to clients.
        status_code: HTTP status the error maps to.
        details: Extra fields included in the response body.
    """

    code: str = "ACCESS_CONTROL_ERROR"
    message: str = "Access control error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: Optional[str] = None, **details: Any) -> None:
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.details}


class UnauthenticatedError(AccessControlError):
    """No principal identity is available for the request."""

    code = "UNAUTHENTICATED"
    message = "Not authenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AccessControlError):
    """Principal lacks a required permission.

    ``missing`` is kept on the exception for server-side logging and is not
    part of the response body.
    """

    code = "FORBIDDEN"
    message = "Insufficient permission"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, missing: Optional[list[str]] = None) -> None:
        self.missing = list(missing or [])
        super().__init__()


class InvalidCredentialError(AccessControlError):
    """Submitted monthly key did not match the current period's key."""

    code = "INVALID_CREDENTIAL"
    message = "Invalid monthly key"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, *, attempts: int, max_attempts: int) -> None:
        self.attempts = attempts
        self.max_attempts = max_attempts
        self.attempts_remaining = max(max_attempts - attempts, 0)
        super().__init__(
            f"Invalid monthly key, {self.attempts_remaining} attempt(s) remaining",
            attempts=attempts,
            max_attempts=max_attempts,
            attempts_remaining=self.attempts_remaining,
        )


class LockedOutError(AccessControlError):
    """Verification refused because the attempt budget is exhausted."""

    code = "LOCKED_OUT"
    message = "Monthly key verification is locked"
    status_code = status.HTTP_423_LOCKED

    def __init__(self, *, locked_until: datetime, retry_after_seconds: int) -> None:
        self.locked_until = locked_until
        self.retry_after_seconds = retry_after_seconds
        minutes = max((retry_after_seconds + 59) // 60, 1)
        super().__init__(
            f"Monthly key verification is locked, retry in {minutes} minute(s)",
            locked=True,
            locked_until=locked_until.isoformat(),
            retry_after_seconds=retry_after_seconds,
        )


class MalformedPermissionDataError(AccessControlError):
    """A role's stored permission field has no recognized shape."""

    code = "MALFORMED_PERMISSION_DATA"
    message = "Permission data could not be normalized"
    status_code = 422

    def __init__(self, role_name: Optional[str] = None, raw_type: Optional[str] = None) -> None:
        self.role_name = role_name
        self.raw_type = raw_type
        super().__init__()


class PrincipalNotFoundError(AccessControlError):
    """Target user of an administrative operation does not exist."""

    code = "PRINCIPAL_NOT_FOUND"
    message = "User not found"
    status_code = status.HTTP_404_NOT_FOUND


class ConcurrentUpdateError(AccessControlError):
    """Compare-and-swap on an attempt record kept losing to other writers."""

    code = "CONCURRENT_UPDATE"
    message = "Service temporarily unavailable, please retry"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
