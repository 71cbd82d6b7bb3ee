"""Error taxonomy shared by the stores and the HTTP layer.

Each error carries the status code and the public message the API renders;
internal detail stays in the server log.
"""

from __future__ import annotations


class SyncError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(SyncError):
    """Missing, malformed, invalid or expired access token."""

    status_code = 401
    default_message = "Unauthorized - Missing or invalid token"


class PayloadError(SyncError):
    """Malformed request body or shape."""

    status_code = 400
    default_message = "Invalid request"


class ConflictError(SyncError):
    """Duplicate vault key or duplicate log timestamp."""

    status_code = 409
    default_message = "Conflict"


class NotFoundError(SyncError):
    status_code = 404
    default_message = "Not Found"


class InternalError(SyncError):
    """Unexpected storage or identity-provider failure."""
