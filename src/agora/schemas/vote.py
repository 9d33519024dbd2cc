"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import Field

from .common import ApiModel


class VoteCreate(ApiModel):
    """Schema for casting a vote on a post or comment."""

    value: Literal[-1, 1] = Field(..., description="1 for upvote, -1 for downvote")


class VoteResponse(ApiModel):
    vote_score: int
    upvotes: int
    downvotes: int


class MyVoteResponse(ApiModel):
    value: int = Field(..., description="1, -1, or 0 when the user has not voted")
