"""Business logic services for the Agora application."""

from .comments import CommentService
from .membership import MembershipService
from .posts import PostService
from .users import UserService
from .votes import VoteService

__all__ = [
    "CommentService",
    "MembershipService",
    "PostService",
    "UserService",
    "VoteService",
]
