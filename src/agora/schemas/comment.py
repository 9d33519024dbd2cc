"""Comment-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from agora.services.comments import CommentNode

from .common import ApiModel
from .post import PostSummary
from .user import UserSummary


class CommentCreate(ApiModel):
    """Schema for adding a comment or a reply."""

    content: str = Field(..., min_length=1)
    parent: int | None = Field(None, description="Parent comment ID for replies")


class CommentUpdate(ApiModel):
    content: str = Field(..., min_length=1)


class CommentResponse(ApiModel):
    """Schema for comment information returned by the API."""

    id: int
    content: str
    author: UserSummary
    post_id: int
    parent_id: int | None
    upvotes: int
    downvotes: int
    vote_score: int
    created_at: datetime


class CommentDetail(CommentResponse):
    """Single comment with the post it belongs to."""

    post: PostSummary


class CommentThread(CommentResponse):
    """Comment with its nested replies."""

    replies: list[CommentThread] = Field(default_factory=list)


def thread_from_nodes(roots: list[CommentNode]) -> list[CommentThread]:
    """Convert materialized comment trees into response models without recursion."""
    result: list[CommentThread] = []
    stack = [(node, result) for node in reversed(roots)]
    while stack:
        node, siblings = stack.pop()
        item = CommentThread.model_validate(node.comment)
        siblings.append(item)
        stack.extend((child, item.replies) for child in reversed(node.replies))
    return result
