"""SQLAlchemy models for communities and their member/moderator sets."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agora.db.session import Base
from agora.db.time import utcnow

from .user import User


class Community(Base):
    """A named space grouping posts, members and moderators."""

    __tablename__ = "community"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(21), unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(21), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # List of {"title": str, "description": str | None}.
    rules: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    creator_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forum_user.id"),
        nullable=False,
    )
    # Always |members|; recomputed on every membership change.
    member_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    creator: Mapped[User] = relationship("User", foreign_keys=[creator_id])
    moderators: Mapped[list[User]] = relationship(
        "User",
        secondary="community_moderator",
        viewonly=True,
        order_by="User.id",
    )


class CommunityMember(Base):
    """Membership set entry; presence implies membership."""

    __tablename__ = "community_member"

    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forum_user.id", ondelete="CASCADE"),
        primary_key=True,
    )
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class CommunityModerator(Base):
    """Moderator set entry; every moderator is also a member."""

    __tablename__ = "community_moderator"

    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forum_user.id", ondelete="CASCADE"),
        primary_key=True,
    )
