"""Comment tree management: threaded replies, thread materialization, cascades."""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from agora.core.errors import NotFoundError, ValidationError
from agora.db.transaction import run_in_transaction
from agora.models import Comment, Post, Vote, VoteTarget
from agora.services.counters import increment_comment_count
from agora.services.policy import Action, authorize, comment_resource
from agora.services.query import PageRequest, paginate

logger = logging.getLogger(__name__)


@dataclass
class CommentNode:
    """A comment together with its materialized replies."""

    comment: Comment
    replies: list[CommentNode] = field(default_factory=list)


def _thread_order(comment: Comment) -> tuple[int, int]:
    # Highest score first; ids grow with creation, so older first among ties.
    return (-comment.vote_score, comment.id)


def build_forest(comments: Iterable[Comment]) -> list[CommentNode]:
    """Arrange a post's comments into reply trees.

    Siblings are ordered by descending vote score at every level. The walk
    uses an explicit stack, so thread depth is bounded only by the data.
    """
    children: dict[int | None, list[Comment]] = defaultdict(list)
    for comment in comments:
        children[comment.parent_id].append(comment)
    for siblings in children.values():
        siblings.sort(key=_thread_order)

    roots = [CommentNode(comment) for comment in children.get(None, [])]
    stack = list(roots)
    while stack:
        node = stack.pop()
        node.replies = [CommentNode(child) for child in children.get(node.comment.id, [])]
        stack.extend(node.replies)
    return roots


def _lock_post(db: Session, post_id: int) -> Post:
    post = db.execute(
        select(Post)
        .where(Post.id == post_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if post is None:
        raise NotFoundError("Post not found")
    return post


def _find_comment(db: Session, comment_id: int) -> Comment:
    comment = db.scalars(select(Comment).where(Comment.id == comment_id)).first()
    if comment is None:
        raise NotFoundError("Comment not found")
    return comment


def _clean_content(content: str | None) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationError("Please provide comment content")
    return text


def collect_subtree(db: Session, root_id: int) -> list[int]:
    """Return ``root_id`` and the ids of every transitive reply beneath it."""
    collected = [root_id]
    frontier = [root_id]
    while frontier:
        frontier = list(
            db.scalars(select(Comment.id).where(Comment.parent_id.in_(frontier)))
        )
        collected.extend(frontier)
    return collected


def delete_comment_rows(db: Session, comment_ids: Sequence[int]) -> int:
    """Delete comments and their ledger entries without touching counters.

    Returns the number of comment rows actually removed, which is smaller
    than ``len(comment_ids)`` when some of them were already gone.
    """
    if not comment_ids:
        return 0
    db.execute(
        delete(Vote)
        .where(
            Vote.target_kind == VoteTarget.COMMENT.value,
            Vote.target_id.in_(comment_ids),
        )
    )
    result = db.execute(delete(Comment).where(Comment.id.in_(comment_ids)))
    return result.rowcount


class CommentService:
    """Service for threaded comments on posts.

    Adding and deleting comments lock the owning post row, so tree mutations
    on one post are serialized and the incremental comment count cannot miss
    a reply added to a subtree that is concurrently being removed.
    """

    @staticmethod
    def add_comment(
        db: Session,
        *,
        actor_id: int,
        post_id: int,
        content: str,
        parent_id: int | None = None,
    ) -> Comment:
        """Create a comment (or a reply when ``parent_id`` is given).

        Raises:
            ValidationError: Empty content, or a parent from another post.
            NotFoundError: Unknown post or parent comment.
        """
        text = _clean_content(content)

        def work() -> Comment:
            post = _lock_post(db, post_id)
            if parent_id is not None:
                parent = db.scalars(select(Comment).where(Comment.id == parent_id)).first()
                if parent is None:
                    raise NotFoundError("Parent comment not found")
                if parent.post_id != post.id:
                    raise ValidationError("Parent comment belongs to a different post")

            comment = Comment(
                content=text,
                author_id=actor_id,
                post_id=post.id,
                parent_id=parent_id,
            )
            db.add(comment)
            db.flush()
            increment_comment_count(db, post.id, 1)
            return comment

        comment = run_in_transaction(db, work)
        logger.info("Comment %s added to post %s by user %s", comment.id, post_id, actor_id)
        return comment

    @staticmethod
    def get_comment(db: Session, comment_id: int) -> Comment:
        """Return a comment or raise ``NotFoundError``."""
        return _find_comment(db, comment_id)

    @staticmethod
    def get_thread(db: Session, post_id: int) -> list[CommentNode]:
        """Return the post's top-level comments with replies nested to any depth."""
        if db.get(Post, post_id) is None:
            raise NotFoundError("Post not found")
        comments = db.scalars(
            select(Comment)
            .where(Comment.post_id == post_id)
            .options(selectinload(Comment.author))
        ).all()
        return build_forest(comments)

    @staticmethod
    def get_replies(db: Session, comment_id: int) -> list[Comment]:
        """Return direct replies to a comment, highest score first."""
        _find_comment(db, comment_id)
        replies = db.scalars(
            select(Comment)
            .where(Comment.parent_id == comment_id)
            .options(selectinload(Comment.author))
        ).all()
        return sorted(replies, key=_thread_order)

    @staticmethod
    def list_by_author(
        db: Session, author_id: int, page: PageRequest
    ) -> tuple[list[Comment], int]:
        """Return comments written by a user, newest first."""
        stmt = (
            select(Comment)
            .where(Comment.author_id == author_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        return paginate(db, stmt, page, (selectinload(Comment.author),))

    @staticmethod
    def update_comment(db: Session, *, actor_id: int, comment_id: int, content: str) -> Comment:
        """Replace the content of a comment; only its author may do so."""
        text = _clean_content(content)

        def work() -> Comment:
            comment = _find_comment(db, comment_id)
            authorize(
                actor_id,
                comment_resource(db, comment),
                Action.UPDATE,
                "Not authorized to update this comment",
            )
            comment.content = text
            return comment

        return run_in_transaction(db, work)

    @staticmethod
    def delete_comment(db: Session, *, actor_id: int, comment_id: int) -> int:
        """Delete a comment with its whole reply subtree.

        The owning post's comment count drops by the total number of removed
        comments (the comment itself plus every transitive reply). The
        deletion and the counter update commit together.

        Returns:
            Number of comments removed.

        Raises:
            NotFoundError: Unknown comment.
            ForbiddenError: Actor is neither the comment's nor the post's author.
        """

        def work() -> tuple[int, int]:
            comment = _find_comment(db, comment_id)
            authorize(
                actor_id,
                comment_resource(db, comment),
                Action.DELETE,
                "Not authorized to delete this comment",
            )
            post_id = comment.post_id
            _lock_post(db, post_id)
            # A delete of this comment or of an ancestor may have committed
            # while we waited for the post lock.
            still_there = db.execute(
                select(Comment.id)
                .where(Comment.id == comment_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
            if still_there is None:
                raise NotFoundError("Comment not found")
            removed = delete_comment_rows(db, collect_subtree(db, comment_id))
            increment_comment_count(db, post_id, -removed)
            return post_id, removed

        post_id, removed = run_in_transaction(db, work)
        logger.info(
            "Comment %s deleted from post %s by user %s (%d comments removed)",
            comment_id,
            post_id,
            actor_id,
            removed,
        )
        return removed
