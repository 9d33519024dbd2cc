"""Post lifecycle: creation, listing, editing and cascading deletion."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from agora.core.errors import NotFoundError, ValidationError
from agora.db.transaction import run_in_transaction
from agora.models import Comment, Community, Post, Vote, VoteTarget
from agora.services.comments import delete_comment_rows
from agora.services.policy import Action, authorize, post_resource
from agora.services.query import PageRequest, build_filters, build_ordering, paginate

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 300
EDITABLE_FIELDS = ("title", "content", "image", "url")

# API field name -> column, for filters and ``sort=`` on post listings.
POST_COLUMNS = {
    "title": Post.title,
    "author": Post.author_id,
    "community": Post.community_id,
    "upvotes": Post.upvotes,
    "downvotes": Post.downvotes,
    "voteScore": Post.vote_score,
    "commentCount": Post.comment_count,
    "createdAt": Post.created_at,
}

COMMUNITY_SORTS = {
    "new": (Post.created_at.desc(), Post.id.desc()),
    "top": (Post.vote_score.desc(), Post.id.desc()),
    "hot": (Post.vote_score.desc(), Post.created_at.desc(), Post.id.desc()),
}

_LOAD_RELATIONS = (selectinload(Post.author), selectinload(Post.community))


def _clean_title(title: str | None) -> str:
    text = (title or "").strip()
    if not text:
        raise ValidationError("Please provide a title")
    if len(text) > TITLE_MAX_LENGTH:
        raise ValidationError("Title cannot be more than 300 characters")
    return text


def _find_post(db: Session, post_id: int, *, lock: bool = False) -> Post:
    stmt = select(Post).where(Post.id == post_id)
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    post = db.execute(stmt).scalar_one_or_none()
    if post is None:
        raise NotFoundError("Post not found")
    return post


class PostService:
    """Service for posts and the Post -> Comment cascade."""

    @staticmethod
    def create_post(
        db: Session,
        *,
        actor_id: int,
        title: str,
        community_name: str,
        content: str | None = None,
        image: str | None = None,
        url: str | None = None,
    ) -> Post:
        """Submit a post to a community.

        Raises:
            ValidationError: Missing or overlong title.
            NotFoundError: Unknown community.
        """
        clean_title = _clean_title(title)

        def work() -> Post:
            community = db.scalars(
                select(Community).where(Community.name == community_name)
            ).first()
            if community is None:
                raise NotFoundError("Community not found")
            post = Post(
                title=clean_title,
                content=content.strip() if content else content,
                image=image,
                url=url,
                author_id=actor_id,
                community_id=community.id,
            )
            db.add(post)
            db.flush()
            return post

        post = run_in_transaction(db, work)
        logger.info("Post %s created in community %s by user %s", post.id, community_name, actor_id)
        return post

    @staticmethod
    def get_post(db: Session, post_id: int) -> Post:
        """Return a post or raise ``NotFoundError``."""
        return _find_post(db, post_id)

    @staticmethod
    def list_posts(
        db: Session,
        *,
        params: Iterable[tuple[str, str]],
        sort: str | None,
        page: PageRequest,
    ) -> tuple[list[Post], int]:
        """List posts matching query-string filters, newest first by default."""
        stmt = (
            select(Post)
            .where(*build_filters(params, POST_COLUMNS))
            .order_by(
                *build_ordering(sort, POST_COLUMNS, (Post.created_at.desc(),)),
                Post.id.desc(),
            )
        )
        return paginate(db, stmt, page, _LOAD_RELATIONS)

    @staticmethod
    def list_community_posts(
        db: Session,
        *,
        name: str,
        sort: str,
        page: PageRequest,
    ) -> tuple[list[Post], int]:
        """List a community's posts sorted by ``new``, ``top`` or ``hot``."""
        ordering = COMMUNITY_SORTS.get(sort)
        if ordering is None:
            raise ValidationError("sort must be one of: new, top, hot")
        community = db.scalars(select(Community).where(Community.name == name)).first()
        if community is None:
            raise NotFoundError("Community not found")
        stmt = select(Post).where(Post.community_id == community.id).order_by(*ordering)
        return paginate(db, stmt, page, _LOAD_RELATIONS)

    @staticmethod
    def list_by_author(db: Session, author_id: int, page: PageRequest) -> tuple[list[Post], int]:
        """List a user's posts, newest first."""
        stmt = (
            select(Post)
            .where(Post.author_id == author_id)
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        return paginate(db, stmt, page, _LOAD_RELATIONS)

    @staticmethod
    def update_post(db: Session, *, actor_id: int, post_id: int, changes: dict[str, Any]) -> Post:
        """Edit a post's title, content, image or url; only its author may do so."""
        unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"Cannot update field(s): {', '.join(unknown)}")
        if "title" in changes:
            changes = {**changes, "title": _clean_title(changes["title"])}

        def work() -> Post:
            post = _find_post(db, post_id, lock=True)
            authorize(
                actor_id,
                post_resource(db, post),
                Action.UPDATE,
                "Not authorized to update this post",
            )
            for field_name, value in changes.items():
                setattr(post, field_name, value)
            return post

        return run_in_transaction(db, work)

    @staticmethod
    def delete_post(db: Session, *, actor_id: int, post_id: int) -> int:
        """Delete a post with all its comments and every related ledger row.

        Permitted for the post's author and the community's moderators. The
        whole cascade commits or rolls back as one transaction.

        Returns:
            Number of comments removed along with the post.
        """

        def work() -> int:
            post = _find_post(db, post_id, lock=True)
            authorize(
                actor_id,
                post_resource(db, post),
                Action.DELETE,
                "Not authorized to delete this post",
            )
            comment_ids = list(db.scalars(select(Comment.id).where(Comment.post_id == post.id)))
            removed = delete_comment_rows(db, comment_ids)
            db.execute(
                delete(Vote)
                .where(Vote.target_kind == VoteTarget.POST.value, Vote.target_id == post.id)
            )
            db.delete(post)
            return removed

        removed = run_in_transaction(db, work)
        logger.info(
            "Post %s deleted by user %s (%d comments removed)", post_id, actor_id, removed
        )
        return removed
