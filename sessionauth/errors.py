"""
Authentication error taxonomy.

Every orchestrator and gate failure is one of these. Each class carries the
HTTP status and a stable error code; the API layer renders them uniformly.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for auth failures mapped to HTTP responses."""

    status_code: int = 400
    error_code: str = "bad_request"
    default_message: str = "Bad request"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BadRequest(AuthError):
    """Missing or empty required input (400)."""
    status_code = 400
    error_code = "bad_request"
    default_message = "Bad request"


class InvalidCredentials(AuthError):
    """Identifier/password pair rejected (401)."""
    status_code = 401
    error_code = "invalid_credentials"
    default_message = "Invalid user credentials"


class Unauthorized(AuthError):
    """Missing, malformed, expired, forged or rotated token (401)."""
    status_code = 401
    error_code = "unauthorized"
    default_message = "Unauthorized request"


class NotFound(AuthError):
    """No identity matches the identifier (404)."""
    status_code = 404
    error_code = "not_found"
    default_message = "User does not exist"


class Conflict(AuthError):
    """Username or email already taken (409)."""
    status_code = 409
    error_code = "conflict"
    default_message = "Username or email already exists"


class Internal(AuthError):
    """Store or hashing failure (500)."""
    status_code = 500
    error_code = "server_error"
    default_message = "Something went wrong"


__all__ = [
    "AuthError",
    "BadRequest",
    "InvalidCredentials",
    "Unauthorized",
    "NotFound",
    "Conflict",
    "Internal",
]
