"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from .common import ApiModel
from .community import CommunitySummary
from .user import UserSummary


class PostCreate(ApiModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=1, max_length=300)
    community: str = Field(..., min_length=1, description="Community name")
    content: str | None = None
    image: str | None = None
    url: str | None = None


class PostUpdate(ApiModel):
    """Schema for editing a post; author and community are immutable."""

    title: str | None = Field(None, min_length=1, max_length=300)
    content: str | None = None
    image: str | None = None
    url: str | None = None


class PostSummary(ApiModel):
    id: int
    title: str


class PostResponse(ApiModel):
    """Schema for post information returned by the API."""

    id: int
    title: str
    content: str | None
    image: str | None
    url: str | None
    author: UserSummary
    community: CommunitySummary
    upvotes: int
    downvotes: int
    vote_score: int
    comment_count: int
    created_at: datetime
