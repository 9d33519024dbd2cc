"""Vote ledger: one vote per (user, target) with click-again-to-retract toggling."""

from __future__ import annotations

import enum
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from agora.core.errors import NotFoundError, ValidationError
from agora.db.transaction import run_in_transaction
from agora.models import Comment, Post, Vote, VoteTarget
from agora.services.counters import VoteTally, recount_votes

logger = logging.getLogger(__name__)


class VoteState(enum.IntEnum):
    """Vote an actor currently holds on a target."""

    DOWN = -1
    NONE = 0
    UP = 1


# (current state, requested value) -> next state. Repeating the held vote
# retracts it; the opposite value replaces it.
VOTE_TRANSITIONS: dict[tuple[VoteState, VoteState], VoteState] = {
    (VoteState.NONE, VoteState.UP): VoteState.UP,
    (VoteState.NONE, VoteState.DOWN): VoteState.DOWN,
    (VoteState.UP, VoteState.UP): VoteState.NONE,
    (VoteState.UP, VoteState.DOWN): VoteState.DOWN,
    (VoteState.DOWN, VoteState.UP): VoteState.UP,
    (VoteState.DOWN, VoteState.DOWN): VoteState.NONE,
}

_TARGET_MODELS: dict[VoteTarget, type[Post] | type[Comment]] = {
    VoteTarget.POST: Post,
    VoteTarget.COMMENT: Comment,
}

_NOT_FOUND_MESSAGES = {
    VoteTarget.POST: "Post not found",
    VoteTarget.COMMENT: "Comment not found",
}


def next_vote_state(current: VoteState, requested: int) -> VoteState:
    """Return the state reached when ``requested`` is cast from ``current``."""
    if requested not in (VoteState.UP, VoteState.DOWN) or isinstance(requested, bool):
        raise ValidationError("Vote value must be 1 or -1")
    return VOTE_TRANSITIONS[(current, VoteState(requested))]


def _lock_target(db: Session, target_kind: VoteTarget, target_id: int) -> Post | Comment:
    model = _TARGET_MODELS[target_kind]
    target = db.execute(
        select(model)
        .where(model.id == target_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if target is None:
        raise NotFoundError(_NOT_FOUND_MESSAGES[target_kind])
    return target


def _find_vote(db: Session, actor_id: int, target_kind: VoteTarget, target_id: int) -> Vote | None:
    return db.scalars(
        select(Vote).where(
            Vote.user_id == actor_id,
            Vote.target_kind == target_kind.value,
            Vote.target_id == target_id,
        )
    ).first()


class VoteService:
    """Service applying votes to posts and comments."""

    @staticmethod
    def cast_vote(
        db: Session,
        *,
        actor_id: int,
        target_kind: VoteTarget,
        target_id: int,
        value: int,
    ) -> VoteTally:
        """Cast, switch or retract ``actor_id``'s vote on a target.

        The target row stays locked from the ledger read until commit, so
        concurrent votes on the same target are applied one after another and
        the recomputed tally always reflects every committed ledger row.

        Args:
            db: Database session.
            actor_id: Voting user.
            target_kind: Whether the target is a post or a comment.
            target_id: Identifier of the target.
            value: 1 for an upvote, -1 for a downvote.

        Returns:
            Vote counters of the target after the change.

        Raises:
            ValidationError: If ``value`` is not 1 or -1.
            NotFoundError: If the target does not exist.
        """
        # Reject bad input before touching the store.
        next_vote_state(VoteState.NONE, value)

        def work() -> VoteTally:
            target = _lock_target(db, target_kind, target_id)
            existing = _find_vote(db, actor_id, target_kind, target_id)
            current = VoteState(existing.value) if existing else VoteState.NONE
            new_state = next_vote_state(current, value)

            if new_state is VoteState.NONE:
                if existing is not None:
                    db.delete(existing)
            elif existing is not None:
                existing.value = int(new_state)
            else:
                db.add(
                    Vote(
                        user_id=actor_id,
                        target_kind=target_kind.value,
                        target_id=target_id,
                        value=int(new_state),
                    )
                )

            tally = recount_votes(db, target, target_kind.value)
            logger.debug(
                "User %s vote on %s %s: %s -> %s (score %d)",
                actor_id,
                target_kind.value,
                target_id,
                current.name,
                new_state.name,
                tally.vote_score,
            )
            return tally

        return run_in_transaction(db, work)

    @staticmethod
    def get_vote(
        db: Session,
        *,
        actor_id: int,
        target_kind: VoteTarget,
        target_id: int,
    ) -> int:
        """Return the actor's current vote on a target (0 when none)."""
        model = _TARGET_MODELS[target_kind]
        if db.get(model, target_id) is None:
            raise NotFoundError(_NOT_FOUND_MESSAGES[target_kind])
        vote = _find_vote(db, actor_id, target_kind, target_id)
        return vote.value if vote else 0
