# tests/test_membership.py
"""Tests for community creation and membership bookkeeping."""

import pytest
from sqlalchemy import select

from agora.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from agora.models import CommunityMember, CommunityModerator
from agora.services.membership import MembershipService, slugify_name
from agora.services.policy import moderator_ids


def member_ids(db_session, community_id: int) -> set[int]:
    return set(
        db_session.scalars(
            select(CommunityMember.user_id).where(CommunityMember.community_id == community_id)
        )
    )


def test_creator_is_first_member_and_moderator(db_session, test_user, community) -> None:
    assert community.member_count == 1
    assert member_ids(db_session, community.id) == {test_user.id}
    assert [moderator.id for moderator in community.moderators] == [test_user.id]
    assert community.slug == "python"


def test_join_and_leave_keep_count_equal_to_member_set(
    db_session, test_user, other_user, third_user, community
) -> None:
    assert MembershipService.join(db_session, actor_id=other_user.id, name="python") == 2
    assert MembershipService.join(db_session, actor_id=third_user.id, name="python") == 3
    assert MembershipService.leave(db_session, actor_id=other_user.id, name="python") == 2

    db_session.refresh(community)
    assert community.member_count == len(member_ids(db_session, community.id)) == 2


def test_join_twice_conflicts(db_session, other_user, community) -> None:
    MembershipService.join(db_session, actor_id=other_user.id, name="python")
    with pytest.raises(ConflictError, match="already a member"):
        MembershipService.join(db_session, actor_id=other_user.id, name="python")
    db_session.refresh(community)
    assert community.member_count == 2


def test_leave_without_membership_conflicts(db_session, other_user, community) -> None:
    with pytest.raises(ConflictError, match="not a member"):
        MembershipService.leave(db_session, actor_id=other_user.id, name="python")


def test_creator_cannot_leave(db_session, test_user, community) -> None:
    with pytest.raises(ForbiddenError, match="Creator cannot leave the community"):
        MembershipService.leave(db_session, actor_id=test_user.id, name="python")
    db_session.refresh(community)
    assert community.member_count == 1


def test_unknown_community(db_session, other_user) -> None:
    with pytest.raises(NotFoundError, match="Community not found"):
        MembershipService.join(db_session, actor_id=other_user.id, name="nowhere")


def test_duplicate_name_is_case_insensitive(db_session, other_user, community) -> None:
    with pytest.raises(ConflictError, match="already exists"):
        MembershipService.create_community(
            db_session, actor_id=other_user.id, name="Python", description="Again"
        )


@pytest.mark.parametrize("name", ["ab", "has space", "x" * 22, "dash-name"])
def test_invalid_names_rejected(db_session, test_user, name: str) -> None:
    with pytest.raises(ValidationError):
        MembershipService.create_community(
            db_session, actor_id=test_user.id, name=name, description="desc"
        )


def test_only_moderators_update(db_session, test_user, other_user, community) -> None:
    with pytest.raises(ForbiddenError):
        MembershipService.update_community(
            db_session, actor_id=other_user.id, name="python", description="mine now"
        )
    updated = MembershipService.update_community(
        db_session,
        actor_id=test_user.id,
        name="python",
        description="Updated",
        rules=[{"title": "No spam"}],
    )
    assert updated.description == "Updated"
    assert updated.rules == [{"title": "No spam", "description": None}]


def test_top_communities_by_member_count(
    db_session, test_user, other_user, third_user, community
) -> None:
    MembershipService.create_community(
        db_session, actor_id=other_user.id, name="rust", description="Crabs"
    )
    MembershipService.join(db_session, actor_id=third_user.id, name="rust")
    top = MembershipService.top_communities(db_session, 5)
    assert [c.name for c in top] == ["rust", "python"]
    assert [c.name for c in MembershipService.top_communities(db_session, 1)] == ["rust"]


def test_slugify_name() -> None:
    assert slugify_name("Ask_Agora") == "ask_agora"
    assert slugify_name("Py3") == "py3"


def test_leaving_moderator_loses_moderation(db_session, other_user, community) -> None:
    MembershipService.join(db_session, actor_id=other_user.id, name="python")
    db_session.add(CommunityModerator(community_id=community.id, user_id=other_user.id))
    db_session.commit()
    assert other_user.id in moderator_ids(db_session, community.id)

    assert MembershipService.leave(db_session, actor_id=other_user.id, name="python") == 1
    assert other_user.id not in moderator_ids(db_session, community.id)
