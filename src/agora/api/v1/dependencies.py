"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends, HTTPException, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from agora.core.security import decode_subject
from agora.db.session import get_db
from agora.models import User
from agora.services.query import PageRequest

# HTTP Bearer scheme for JWT authentication; missing headers are reported by
# get_current_user so they share the 401 response shape.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If the token is missing or invalid, or the user is unknown
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")

    user_id = decode_subject(credentials.credentials)
    if user_id is None:
        raise _unauthorized("Could not validate credentials")

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user


def get_page(
    page: Annotated[int | None, Query(description="1-based page number")] = None,
    limit: Annotated[int | None, Query(description="Items per page")] = None,
) -> PageRequest:
    """Build the page request for list endpoints."""
    return PageRequest.from_params(page, limit)


# Type alias for current user dependency
CurrentUserDep = Annotated[User, Depends(get_current_user)]
PageDep = Annotated[PageRequest, Depends(get_page)]
