"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from .common import ApiModel

BIO_MAX_LENGTH = 500


class UserSummary(ApiModel):
    """Public identity embedded in posts, comments and communities."""

    id: int
    username: str


class UserProfile(ApiModel):
    """Public profile of a user."""

    id: int
    username: str
    bio: str | None = None
    created_at: datetime


class ProfileUpdate(ApiModel):
    """Fields the authenticated user may change on their own profile."""

    bio: str | None = Field(None, max_length=BIO_MAX_LENGTH)
