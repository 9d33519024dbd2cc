"""Community lifecycle and membership management."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from agora.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from agora.db.transaction import run_in_transaction
from agora.models import Community, CommunityMember, CommunityModerator
from agora.services.counters import recount_members
from agora.services.policy import Action, authorize, community_resource
from agora.services.query import PageRequest, build_filters, build_ordering, paginate

logger = logging.getLogger(__name__)

COMMUNITY_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]{3,21}$")
DESCRIPTION_MAX_LENGTH = 500

# API field name -> column, for filters and ``sort=`` on community listings.
COMMUNITY_COLUMNS = {
    "name": Community.name,
    "slug": Community.slug,
    "memberCount": Community.member_count,
    "createdAt": Community.created_at,
}


def slugify_name(name: str) -> str:
    """Derive the URL slug of a community name."""
    return re.sub(r"[^a-z0-9_]+", "-", name.lower()).strip("-")


def validate_community_name(name: str) -> str:
    candidate = (name or "").strip()
    if not COMMUNITY_NAME_PATTERN.match(candidate):
        raise ValidationError(
            "Community name must be 3-21 characters of letters, numbers, and underscores"
        )
    return candidate


def validate_description(description: str | None) -> str:
    text = (description or "").strip()
    if not text:
        raise ValidationError("Please provide a community description")
    if len(text) > DESCRIPTION_MAX_LENGTH:
        raise ValidationError("Description cannot be more than 500 characters")
    return text


def validate_rules(rules: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    cleaned: list[dict[str, Any]] = []
    for rule in rules or []:
        title = str(rule.get("title") or "").strip()
        if not title:
            raise ValidationError("Every community rule needs a title")
        cleaned.append({"title": title, "description": rule.get("description")})
    return cleaned


def _lock_community(db: Session, name: str) -> Community:
    community = db.execute(
        select(Community)
        .where(Community.name == name)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if community is None:
        raise NotFoundError("Community not found")
    return community


def is_member(db: Session, community_id: int, user_id: int) -> bool:
    """Return True when ``user_id`` belongs to the community's member set."""
    return bool(
        db.scalar(
            select(func.count())
            .select_from(CommunityMember)
            .where(
                CommunityMember.community_id == community_id,
                CommunityMember.user_id == user_id,
            )
        )
    )


class MembershipService:
    """Service handling communities, their members and moderators."""

    @staticmethod
    def get_community(db: Session, name: str) -> Community:
        community = db.scalars(
            select(Community)
            .where(Community.name == name)
            .options(selectinload(Community.creator), selectinload(Community.moderators))
            .execution_options(populate_existing=True)
        ).first()
        if community is None:
            raise NotFoundError("Community not found")
        return community

    @staticmethod
    def list_communities(
        db: Session,
        *,
        params: Iterable[tuple[str, str]],
        sort: str | None,
        page: PageRequest,
    ) -> tuple[list[Community], int]:
        """List communities matching query-string filters, largest first by default."""
        stmt = (
            select(Community)
            .where(*build_filters(params, COMMUNITY_COLUMNS))
            .order_by(
                *build_ordering(sort, COMMUNITY_COLUMNS, (Community.member_count.desc(),)),
                Community.id,
            )
        )
        return paginate(db, stmt, page, (selectinload(Community.creator),))

    @staticmethod
    def top_communities(db: Session, limit: int) -> list[Community]:
        """Return the largest communities by member count."""
        return list(
            db.scalars(
                select(Community)
                .order_by(Community.member_count.desc(), Community.id)
                .limit(limit)
            )
        )

    @staticmethod
    def create_community(
        db: Session,
        *,
        actor_id: int,
        name: str,
        description: str,
        rules: list[dict[str, Any]] | None = None,
    ) -> Community:
        """Create a community; the creator becomes its first moderator and member.

        Raises:
            ValidationError: Bad name, description or rules.
            ConflictError: A community with that name already exists.
        """
        clean_name = validate_community_name(name)
        clean_description = validate_description(description)
        clean_rules = validate_rules(rules)

        def work() -> Community:
            taken = db.scalar(
                select(func.count())
                .select_from(Community)
                .where(func.lower(Community.name) == clean_name.lower())
            )
            if taken:
                raise ConflictError("Community with that name already exists")

            community = Community(
                name=clean_name,
                slug=slugify_name(clean_name),
                description=clean_description,
                rules=clean_rules,
                creator_id=actor_id,
                member_count=0,
            )
            db.add(community)
            try:
                db.flush()
            except IntegrityError as exc:
                # Lost the race against a concurrent create on the unique index.
                raise ConflictError("Community with that name already exists") from exc

            db.add(CommunityMember(community_id=community.id, user_id=actor_id))
            db.add(CommunityModerator(community_id=community.id, user_id=actor_id))
            recount_members(db, community)
            return community

        community = run_in_transaction(db, work)
        logger.info("Community %s created by user %s", community.name, actor_id)
        return community

    @staticmethod
    def update_community(
        db: Session,
        *,
        actor_id: int,
        name: str,
        description: str | None = None,
        rules: list[dict[str, Any]] | None = None,
    ) -> Community:
        """Update a community's description and rules; its name never changes."""
        clean_description = validate_description(description) if description is not None else None
        clean_rules = validate_rules(rules) if rules is not None else None

        def work() -> Community:
            community = _lock_community(db, name)
            authorize(
                actor_id,
                community_resource(db, community),
                Action.UPDATE,
                "Not authorized to update this community",
            )
            if clean_description is not None:
                community.description = clean_description
            if clean_rules is not None:
                community.rules = clean_rules
            return community

        return run_in_transaction(db, work)

    @staticmethod
    def join(db: Session, *, actor_id: int, name: str) -> int:
        """Add the actor to the member set and return the new member count.

        Raises:
            NotFoundError: Unknown community.
            ConflictError: The actor is already a member.
        """

        def work() -> int:
            community = _lock_community(db, name)
            if is_member(db, community.id, actor_id):
                raise ConflictError("User is already a member of this community")
            db.add(CommunityMember(community_id=community.id, user_id=actor_id))
            return recount_members(db, community)

        member_count = run_in_transaction(db, work)
        logger.info("User %s joined community %s (%d members)", actor_id, name, member_count)
        return member_count

    @staticmethod
    def leave(db: Session, *, actor_id: int, name: str) -> int:
        """Remove the actor from the member and moderator sets.

        Raises:
            NotFoundError: Unknown community.
            ConflictError: The actor is not a member.
            ForbiddenError: The actor created the community; creators never leave.
        """

        def work() -> int:
            community = _lock_community(db, name)
            if not is_member(db, community.id, actor_id):
                raise ConflictError("User is not a member of this community")
            if community.creator_id == actor_id:
                raise ForbiddenError("Creator cannot leave the community")

            db.execute(
                delete(CommunityMember).where(
                    CommunityMember.community_id == community.id,
                    CommunityMember.user_id == actor_id,
                )
            )
            db.execute(
                delete(CommunityModerator).where(
                    CommunityModerator.community_id == community.id,
                    CommunityModerator.user_id == actor_id,
                )
            )
            return recount_members(db, community)

        member_count = run_in_transaction(db, work)
        logger.info("User %s left community %s (%d members)", actor_id, name, member_count)
        return member_count
