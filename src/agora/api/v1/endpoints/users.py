"""Public user profile endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from agora.schemas.comment import CommentResponse
from agora.schemas.common import ApiResponse, list_response
from agora.schemas.post import PostResponse
from agora.schemas.user import ProfileUpdate, UserProfile
from agora.services.comments import CommentService
from agora.services.posts import PostService
from agora.services.users import UserService

from ..dependencies import CurrentUserDep, PageDep, SessionDep

router = APIRouter(prefix="/users", tags=["users"])


@router.put("/profile", response_model=ApiResponse[UserProfile])
async def update_profile(
    profile_data: ProfileUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> ApiResponse[Any]:
    """Update the authenticated user's bio."""
    user = UserService.update_profile(db, actor_id=current_user.id, bio=profile_data.bio)
    return ApiResponse(data=UserProfile.model_validate(user))


@router.get("/{username}", response_model=ApiResponse[UserProfile])
async def get_user(username: str, db: SessionDep) -> ApiResponse[Any]:
    """Return the public profile of a user."""
    user = UserService.get_by_username(db, username)
    return ApiResponse(data=UserProfile.model_validate(user))


@router.get("/{username}/posts", response_model=ApiResponse[list[PostResponse]])
async def get_user_posts(username: str, db: SessionDep, page: PageDep) -> ApiResponse[Any]:
    """Posts written by a user, newest first."""
    user = UserService.get_by_username(db, username)
    posts, total = PostService.list_by_author(db, user.id, page)
    items = [PostResponse.model_validate(post) for post in posts]
    return ApiResponse(**list_response(items, pagination=page.pagination(total)))


@router.get("/{username}/comments", response_model=ApiResponse[list[CommentResponse]])
async def get_user_comments(username: str, db: SessionDep, page: PageDep) -> ApiResponse[Any]:
    """Comments written by a user, newest first."""
    user = UserService.get_by_username(db, username)
    comments, total = CommentService.list_by_author(db, user.id, page)
    items = [CommentResponse.model_validate(comment) for comment in comments]
    return ApiResponse(**list_response(items, pagination=page.pagination(total)))
