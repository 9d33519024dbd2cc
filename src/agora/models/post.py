"""SQLAlchemy model for posts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agora.db.session import Base
from agora.db.time import utcnow

from .community import Community
from .user import User


class Post(Base):
    """Primary content entity submitted to a community."""

    __tablename__ = "post"
    __table_args__ = (
        Index("ix_post_community_id", "community_id"),
        Index("ix_post_author_id", "author_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    author_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forum_user.id"),
        nullable=False,
    )
    community_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("community.id"),
        nullable=False,
    )

    # Derived from the vote ledger; never written outside the vote service.
    upvotes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    downvotes: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    vote_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Maintained incrementally by the counter synchronizer.
    comment_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    author: Mapped[User] = relationship("User")
    community: Mapped[Community] = relationship("Community")
