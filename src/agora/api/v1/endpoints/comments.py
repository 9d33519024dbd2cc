"""Comment-related endpoints for the Agora API."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from agora.models import VoteTarget
from agora.schemas.comment import CommentDetail, CommentResponse, CommentUpdate
from agora.schemas.common import ApiResponse, list_response
from agora.schemas.vote import MyVoteResponse, VoteCreate, VoteResponse
from agora.services.comments import CommentService
from agora.services.votes import VoteService

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/{comment_id}", response_model=ApiResponse[CommentDetail])
async def get_comment(comment_id: int, db: SessionDep) -> ApiResponse[Any]:
    """Get a single comment together with its post."""
    comment = CommentService.get_comment(db, comment_id)
    return ApiResponse(data=CommentDetail.model_validate(comment))


@router.put("/{comment_id}", response_model=ApiResponse[CommentResponse])
async def update_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    comment = CommentService.update_comment(
        db,
        actor_id=current_user.id,
        comment_id=comment_id,
        content=comment_data.content,
    )
    return ApiResponse(data=CommentResponse.model_validate(comment))


@router.delete("/{comment_id}", response_model=ApiResponse[dict[str, Any]])
async def delete_comment(
    comment_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Delete a comment and every reply beneath it."""
    CommentService.delete_comment(db, actor_id=current_user.id, comment_id=comment_id)
    return ApiResponse(data={})


@router.post("/{comment_id}/vote", response_model=ApiResponse[VoteResponse])
async def vote_comment(
    comment_id: int,
    vote_data: VoteCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Upvote or downvote a comment; repeating the same vote retracts it."""
    tally = VoteService.cast_vote(
        db,
        actor_id=current_user.id,
        target_kind=VoteTarget.COMMENT,
        target_id=comment_id,
        value=vote_data.value,
    )
    return ApiResponse(data=VoteResponse.model_validate(tally))


@router.get("/{comment_id}/my-vote", response_model=ApiResponse[MyVoteResponse])
async def get_my_comment_vote(
    comment_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    value = VoteService.get_vote(
        db, actor_id=current_user.id, target_kind=VoteTarget.COMMENT, target_id=comment_id
    )
    return ApiResponse(data=MyVoteResponse(value=value))


@router.get("/{comment_id}/replies", response_model=ApiResponse[list[CommentResponse]])
async def get_comment_replies(comment_id: int, db: SessionDep) -> ApiResponse[Any]:
    """Direct replies to a comment, highest score first."""
    replies = CommentService.get_replies(db, comment_id)
    return ApiResponse(**list_response([CommentResponse.model_validate(r) for r in replies]))
