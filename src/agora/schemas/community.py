"""Community-related Pydantic schemas."""

from datetime import datetime

from pydantic import Field

from .common import ApiModel
from .user import UserSummary


class CommunityRule(ApiModel):
    title: str = Field(..., min_length=1)
    description: str | None = None


class CommunityCreate(ApiModel):
    """Schema for creating a new community."""

    name: str = Field(
        ...,
        min_length=3,
        max_length=21,
        pattern=r"^[A-Za-z0-9_]+$",
        description="Letters, numbers, and underscores only",
    )
    description: str = Field(..., min_length=1, max_length=500)
    rules: list[CommunityRule] = Field(default_factory=list)


class CommunityUpdate(ApiModel):
    """Schema for updating a community; the name cannot change."""

    description: str | None = Field(None, min_length=1, max_length=500)
    rules: list[CommunityRule] | None = None


class CommunitySummary(ApiModel):
    id: int
    name: str


class TopCommunity(ApiModel):
    id: int
    name: str
    description: str
    member_count: int


class CommunityResponse(ApiModel):
    """Schema for community information returned by the API."""

    id: int
    name: str
    slug: str
    description: str
    rules: list[CommunityRule]
    creator: UserSummary
    moderators: list[UserSummary]
    member_count: int
    created_at: datetime


class MembershipResponse(ApiModel):
    """Member count after a join or leave."""

    member_count: int
