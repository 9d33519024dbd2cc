"""Post-related endpoints for the Agora API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request, status

from agora.models import VoteTarget
from agora.schemas.comment import CommentCreate, CommentResponse, CommentThread, thread_from_nodes
from agora.schemas.common import ApiResponse, api_field_names, list_response
from agora.schemas.post import PostCreate, PostResponse, PostUpdate
from agora.schemas.vote import MyVoteResponse, VoteCreate, VoteResponse
from agora.services.comments import CommentService
from agora.services.posts import PostService
from agora.services.query import parse_select, project
from agora.services.votes import VoteService

from ..dependencies import CurrentUserDep, PageDep, SessionDep

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/", response_model=ApiResponse[list[dict[str, Any]]])
async def list_posts(
    request: Request,
    db: SessionDep,
    page: PageDep,
    sort: str | None = None,
    select: str | None = None,
) -> ApiResponse[Any]:
    """List posts with filters (``voteScore[gt]=5``, ``author[in]=1,2``), sorting and paging."""
    fields = parse_select(select, api_field_names(PostResponse))
    posts, total = PostService.list_posts(
        db,
        params=request.query_params.multi_items(),
        sort=sort,
        page=page,
    )
    items = [
        project(PostResponse.model_validate(post).model_dump(mode="json", by_alias=True), fields)
        for post in posts
    ]
    return ApiResponse(**list_response(items, pagination=page.pagination(total)))


@router.get("/{post_id}", response_model=ApiResponse[PostResponse])
async def get_post(post_id: int, db: SessionDep) -> ApiResponse[Any]:
    """Get a specific post by ID."""
    post = PostService.get_post(db, post_id)
    return ApiResponse(data=PostResponse.model_validate(post))


@router.post("/", response_model=ApiResponse[PostResponse], status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Create a new post in a community."""
    post = PostService.create_post(
        db,
        actor_id=current_user.id,
        title=post_data.title,
        community_name=post_data.community,
        content=post_data.content,
        image=post_data.image,
        url=post_data.url,
    )
    return ApiResponse(data=PostResponse.model_validate(post))


@router.put("/{post_id}", response_model=ApiResponse[PostResponse])
async def update_post(
    post_id: int,
    post_data: PostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Edit a post; only its author may do so."""
    post = PostService.update_post(
        db,
        actor_id=current_user.id,
        post_id=post_id,
        changes=post_data.model_dump(exclude_unset=True),
    )
    return ApiResponse(data=PostResponse.model_validate(post))


@router.delete("/{post_id}", response_model=ApiResponse[dict[str, Any]])
async def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Delete a post with all of its comments and votes."""
    PostService.delete_post(db, actor_id=current_user.id, post_id=post_id)
    return ApiResponse(data={})


@router.post("/{post_id}/vote", response_model=ApiResponse[VoteResponse])
async def vote_post(
    post_id: int,
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Upvote or downvote a post; repeating the same vote retracts it."""
    tally = VoteService.cast_vote(
        db,
        actor_id=current_user.id,
        target_kind=VoteTarget.POST,
        target_id=post_id,
        value=vote_data.value,
    )
    return ApiResponse(data=VoteResponse.model_validate(tally))


@router.get("/{post_id}/my-vote", response_model=ApiResponse[MyVoteResponse])
async def get_my_post_vote(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Return the caller's vote on a post."""
    value = VoteService.get_vote(
        db, actor_id=current_user.id, target_kind=VoteTarget.POST, target_id=post_id
    )
    return ApiResponse(data=MyVoteResponse(value=value))


@router.get("/{post_id}/comments", response_model=ApiResponse[list[CommentThread]])
async def get_post_comments(post_id: int, db: SessionDep) -> ApiResponse[Any]:
    """Top-level comments of a post with their replies nested, best first."""
    roots = CommentService.get_thread(db, post_id)
    return ApiResponse(**list_response(thread_from_nodes(roots)))


@router.post(
    "/{post_id}/comments",
    response_model=ApiResponse[CommentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: int,
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Comment on a post, or reply to one of its comments."""
    comment = CommentService.add_comment(
        db,
        actor_id=current_user.id,
        post_id=post_id,
        content=comment_data.content,
        parent_id=comment_data.parent,
    )
    return ApiResponse(data=CommentResponse.model_validate(comment))
