"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import CommentCreate, CommentDetail, CommentResponse, CommentThread, CommentUpdate
from .common import ApiResponse, Pagination
from .community import (
    CommunityCreate,
    CommunityResponse,
    CommunityUpdate,
    MembershipResponse,
    TopCommunity,
)
from .post import PostCreate, PostResponse, PostUpdate
from .user import ProfileUpdate, UserProfile, UserSummary
from .vote import MyVoteResponse, VoteCreate, VoteResponse

__all__ = [
    "ApiResponse", "Pagination",
    "CommentCreate", "CommentDetail", "CommentResponse", "CommentThread", "CommentUpdate",
    "CommunityCreate", "CommunityResponse", "CommunityUpdate", "MembershipResponse",
    "TopCommunity",
    "PostCreate", "PostResponse", "PostUpdate",
    "ProfileUpdate", "UserProfile", "UserSummary",
    "MyVoteResponse", "VoteCreate", "VoteResponse",
]
