"""User profile lookups and self-service profile edits."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from agora.core.errors import NotFoundError, ValidationError
from agora.db.transaction import run_in_transaction
from agora.models import User
from agora.schemas.user import BIO_MAX_LENGTH

logger = logging.getLogger(__name__)


class UserService:
    """Service for public profiles."""

    @staticmethod
    def get_by_username(db: Session, username: str) -> User:
        user = db.scalars(select(User).where(User.username == username)).first()
        if user is None:
            raise NotFoundError("User not found")
        return user

    @staticmethod
    def update_profile(db: Session, *, actor_id: int, bio: str | None) -> User:
        """Replace the actor's bio; a blank bio clears it.

        Raises:
            ValidationError: Bio longer than 500 characters.
            NotFoundError: The actor no longer exists.
        """
        text = (bio or "").strip() or None
        if text is not None and len(text) > BIO_MAX_LENGTH:
            raise ValidationError("Bio cannot be more than 500 characters")

        def work() -> User:
            user = db.get(User, actor_id)
            if user is None:
                raise NotFoundError("User not found")
            user.bio = text
            return user

        user = run_in_transaction(db, work)
        logger.info("User %s updated their profile", actor_id)
        return user
