"""Community-related endpoints for the Agora API."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Query, Request, status

from agora.core.settings import settings
from agora.schemas.common import ApiResponse, api_field_names, list_response
from agora.schemas.community import (
    CommunityCreate,
    CommunityResponse,
    CommunityUpdate,
    MembershipResponse,
    TopCommunity,
)
from agora.schemas.post import PostResponse
from agora.services.membership import MembershipService
from agora.services.posts import PostService
from agora.services.query import parse_select, project

from ..dependencies import CurrentUserDep, PageDep, SessionDep

router = APIRouter(prefix="/communities", tags=["communities"])


@router.get("/", response_model=ApiResponse[list[dict[str, Any]]])
async def list_communities(
    request: Request,
    db: SessionDep,
    page: PageDep,
    sort: str | None = None,
    select: str | None = None,
) -> ApiResponse[Any]:
    """List communities with filters (``memberCount[gte]=10``), sorting and paging."""
    fields = parse_select(select, api_field_names(CommunityResponse))
    communities, total = MembershipService.list_communities(
        db,
        params=request.query_params.multi_items(),
        sort=sort,
        page=page,
    )
    items = [
        project(
            CommunityResponse.model_validate(community).model_dump(mode="json", by_alias=True),
            fields,
        )
        for community in communities
    ]
    return ApiResponse(**list_response(items, pagination=page.pagination(total)))


@router.get("/top", response_model=ApiResponse[list[TopCommunity]])
async def get_top_communities(
    db: SessionDep,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> ApiResponse[Any]:
    """Largest communities by member count."""
    communities = MembershipService.top_communities(db, limit or settings.top_communities_limit)
    items = [TopCommunity.model_validate(community) for community in communities]
    return ApiResponse(**list_response(items))


@router.get("/{name}", response_model=ApiResponse[CommunityResponse])
async def get_community(name: str, db: SessionDep) -> ApiResponse[Any]:
    """Get a specific community by name."""
    community = MembershipService.get_community(db, name)
    return ApiResponse(data=CommunityResponse.model_validate(community))


@router.post(
    "/",
    response_model=ApiResponse[CommunityResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_community(
    community_data: CommunityCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Create a new community; the creator becomes its first moderator."""
    community = MembershipService.create_community(
        db,
        actor_id=current_user.id,
        name=community_data.name,
        description=community_data.description,
        rules=[rule.model_dump() for rule in community_data.rules],
    )
    return ApiResponse(data=CommunityResponse.model_validate(community))


@router.put("/{name}", response_model=ApiResponse[CommunityResponse])
async def update_community(
    name: str,
    community_data: CommunityUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Update a community's description and rules (moderators only)."""
    rules = (
        [rule.model_dump() for rule in community_data.rules]
        if community_data.rules is not None
        else None
    )
    community = MembershipService.update_community(
        db,
        actor_id=current_user.id,
        name=name,
        description=community_data.description,
        rules=rules,
    )
    return ApiResponse(data=CommunityResponse.model_validate(community))


@router.post("/{name}/join", response_model=ApiResponse[MembershipResponse])
async def join_community(
    name: str,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Join a community."""
    member_count = MembershipService.join(db, actor_id=current_user.id, name=name)
    return ApiResponse(data=MembershipResponse(member_count=member_count))


@router.post("/{name}/leave", response_model=ApiResponse[MembershipResponse])
async def leave_community(
    name: str,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Leave a community; its creator cannot leave."""
    member_count = MembershipService.leave(db, actor_id=current_user.id, name=name)
    return ApiResponse(data=MembershipResponse(member_count=member_count))


@router.get("/{name}/posts", response_model=ApiResponse[list[PostResponse]])
async def get_community_posts(
    name: str,
    db: SessionDep,
    page: PageDep,
    sort: Annotated[str, Query(description="new, top or hot")] = "new",
) -> ApiResponse[Any]:
    """Get posts from a specific community."""
    posts, total = PostService.list_community_posts(db, name=name, sort=sort, page=page)
    items = [PostResponse.model_validate(post) for post in posts]
    return ApiResponse(**list_response(items, pagination=page.pagination(total)))
