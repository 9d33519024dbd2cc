"""SQLAlchemy models for the Agora application."""

from .comment import Comment
from .community import Community, CommunityMember, CommunityModerator
from .post import Post
from .user import User
from .vote import Vote, VoteTarget

__all__ = [
    "Comment",
    "Community", "CommunityMember", "CommunityModerator",
    "Post",
    "User",
    "Vote", "VoteTarget",
]
