"""Derived-counter bookkeeping.

``comment_count`` on a post is maintained incrementally with an atomic
``UPDATE ... SET comment_count = comment_count + :delta`` so concurrent
writers never lose an update. Vote tallies and ``member_count`` are instead
recomputed from their ledgers while the owning row is locked.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from agora.models import Comment, Community, CommunityMember, Post, Vote


@dataclass(frozen=True)
class VoteTally:
    """Vote counters of a post or comment after a vote operation."""

    vote_score: int
    upvotes: int
    downvotes: int


def increment_comment_count(db: Session, post_id: int, delta: int) -> None:
    """Atomically add ``delta`` (may be negative) to a post's comment count."""
    db.execute(
        update(Post)
        .where(Post.id == post_id)
        .values(comment_count=Post.comment_count + delta)
    )


def count_comments(db: Session, post_id: int) -> int:
    """Return the live number of comments attached to a post."""
    return db.scalar(
        select(func.count()).select_from(Comment).where(Comment.post_id == post_id)
    ) or 0


def recount_votes(db: Session, target: Post | Comment, target_kind: str) -> VoteTally:
    """Recompute and assign vote counters on ``target`` from the ledger.

    The caller must hold the row lock on ``target``.
    """
    db.flush()
    rows = db.execute(
        select(Vote.value, func.count())
        .where(Vote.target_kind == target_kind, Vote.target_id == target.id)
        .group_by(Vote.value)
    ).all()
    counts = {value: count for value, count in rows}
    upvotes = counts.get(1, 0)
    downvotes = counts.get(-1, 0)

    target.upvotes = upvotes
    target.downvotes = downvotes
    target.vote_score = upvotes - downvotes
    return VoteTally(vote_score=target.vote_score, upvotes=upvotes, downvotes=downvotes)


def recount_members(db: Session, community: Community) -> int:
    """Recompute ``member_count`` as the size of the member set.

    The caller must hold the row lock on ``community``.
    """
    db.flush()
    community.member_count = db.scalar(
        select(func.count())
        .select_from(CommunityMember)
        .where(CommunityMember.community_id == community.id)
    ) or 0
    return community.member_count
