"""Authorization policy for posts, comments and communities.

``can_modify`` is a pure decision over small resource snapshots so it can be
evaluated (and tested) without a database. The ``*_resource`` helpers build
those snapshots from ORM rows.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from agora.core.errors import ForbiddenError
from agora.models import Comment, Community, CommunityModerator, Post


class Action(str, enum.Enum):
    """Actions subject to authorization."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MODERATE = "moderate"


@dataclass(frozen=True)
class PostResource:
    author_id: int
    moderator_ids: frozenset[int] = field(default_factory=frozenset)


@dataclass(frozen=True)
class CommentResource:
    author_id: int
    post_author_id: int


@dataclass(frozen=True)
class CommunityResource:
    moderator_ids: frozenset[int] = field(default_factory=frozenset)


Resource = PostResource | CommentResource | CommunityResource


def can_modify(actor_id: int, resource: Resource, action: Action) -> bool:
    """Decide whether ``actor_id`` may perform ``action`` on ``resource``.

    | Resource  | Action           | Permitted when                           |
    |-----------|------------------|------------------------------------------|
    | Post      | update           | actor is the author                      |
    | Post      | delete           | actor is the author or a moderator       |
    | Comment   | update           | actor is the author                      |
    | Comment   | delete           | actor is the author or the post's author |
    | Community | update, moderate | actor is a moderator                     |
    | Community | create           | any authenticated actor                  |

    Every other combination is denied.
    """
    if isinstance(resource, PostResource):
        if action is Action.UPDATE:
            return actor_id == resource.author_id
        if action is Action.DELETE:
            return actor_id == resource.author_id or actor_id in resource.moderator_ids
        return False

    if isinstance(resource, CommentResource):
        if action is Action.UPDATE:
            return actor_id == resource.author_id
        if action is Action.DELETE:
            return actor_id in (resource.author_id, resource.post_author_id)
        return False

    if isinstance(resource, CommunityResource):
        if action is Action.CREATE:
            return True
        if action in (Action.UPDATE, Action.MODERATE):
            return actor_id in resource.moderator_ids
        return False

    return False


def authorize(actor_id: int, resource: Resource, action: Action, message: str) -> None:
    """Raise ``ForbiddenError`` with ``message`` unless the action is permitted."""
    if not can_modify(actor_id, resource, action):
        raise ForbiddenError(message)


def moderator_ids(db: Session, community_id: int) -> frozenset[int]:
    """Return the moderator set of a community."""
    rows: Iterable[int] = db.scalars(
        select(CommunityModerator.user_id).where(
            CommunityModerator.community_id == community_id
        )
    )
    return frozenset(rows)


def post_resource(db: Session, post: Post) -> PostResource:
    return PostResource(
        author_id=post.author_id,
        moderator_ids=moderator_ids(db, post.community_id),
    )


def comment_resource(db: Session, comment: Comment) -> CommentResource:
    post_author_id = db.scalar(select(Post.author_id).where(Post.id == comment.post_id))
    # A comment always belongs to an existing post; -1 never matches an actor.
    return CommentResource(
        author_id=comment.author_id,
        post_author_id=post_author_id if post_author_id is not None else -1,
    )


def community_resource(db: Session, community: Community) -> CommunityResource:
    return CommunityResource(moderator_ids=moderator_ids(db, community.id))
