"""Domain errors raised by the service layer.

Each error carries a machine-readable ``code`` and the HTTP status the API
layer reports it with. Services raise these; routers never build
``HTTPException`` for domain failures.
"""

from __future__ import annotations

from fastapi import status


class ForumError(Exception):
    """Base error for every failure the forum reports to its callers."""

    code = "forum_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: str | None = None) -> None:
        self.message = message
        if code is not None:
            self.code = code
        super().__init__(message)


class ValidationError(ForumError):
    """Malformed input: an empty required field, a bad enum value."""

    code = "validation_error"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ForumError):
    """A referenced entity does not exist."""

    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ForumError):
    """Duplicate membership, duplicate community name and similar."""

    code = "conflict"
    status_code = status.HTTP_409_CONFLICT


class ForbiddenError(ForumError):
    """The actor is not allowed to perform the action."""

    code = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN


class StoreError(ForumError):
    """Persistence failure that cannot be recovered locally."""

    code = "store_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Server error", code: str | None = None) -> None:
        super().__init__(message, code)
