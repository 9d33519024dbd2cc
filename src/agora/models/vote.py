"""Vote ledger shared by posts and comments."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, SmallInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from agora.db.session import Base
from agora.db.time import utcnow


class VoteTarget(str, enum.Enum):
    """Kinds of content that accept votes."""

    POST = "post"
    COMMENT = "comment"


class Vote(Base):
    """Per-user vote on a post or comment.

    The composite primary key is the unique index that guarantees at most one
    ledger entry per (user, target). Upvote/downvote counts and the score on
    the target are always recomputed from these rows.
    """

    __tablename__ = "vote"
    __table_args__ = (
        CheckConstraint("value IN (1, -1)", name="ck_vote_value"),
        CheckConstraint("target_kind IN ('post', 'comment')", name="ck_vote_target_kind"),
        Index("ix_vote_target", "target_kind", "target_id"),
    )

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forum_user.id", ondelete="CASCADE"),
        primary_key=True,
    )
    target_kind: Mapped[str] = mapped_column(String(16), primary_key=True)
    target_id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # 1 = upvote, -1 = downvote.
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
