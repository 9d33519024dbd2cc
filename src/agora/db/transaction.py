"""Unit-of-work runner shared by every mutating service.

A unit of work is a callable that issues reads and writes on the session
without committing. ``run_in_transaction`` commits it exactly once, rolls
back on any failure and re-runs it when the store reports a transient
conflict: a lock timeout/deadlock (``OperationalError``) or a concurrent
insert that lost the race on a unique index (``IntegrityError``).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from agora.core.errors import ForumError, StoreError
from agora.core.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS: tuple[type[SQLAlchemyError], ...] = (IntegrityError, OperationalError)


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    *,
    attempts: int | None = None,
    retry_on: tuple[type[SQLAlchemyError], ...] = RETRYABLE_ERRORS,
) -> T:
    """Run ``work`` and commit, retrying transient store conflicts.

    Args:
        db: Session the unit of work operates on.
        work: Callable performing the reads and writes; must be safe to re-run
            from scratch after a rollback.
        attempts: Maximum number of tries; defaults to ``settings.store_retry_attempts``.
        retry_on: Store exceptions that trigger a retry.

    Returns:
        Whatever ``work`` returned on the successful attempt.

    Raises:
        ForumError: Domain errors raised by ``work`` propagate unchanged after rollback.
        StoreError: The store failed permanently or kept conflicting.
    """
    max_attempts = attempts or settings.store_retry_attempts
    last_error: SQLAlchemyError | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            result = work()
            db.commit()
            return result
        except ForumError:
            db.rollback()
            raise
        except retry_on as exc:
            db.rollback()
            last_error = exc
            logger.warning(
                "Store conflict (%s) on attempt %d/%d, retrying",
                type(exc).__name__,
                attempt,
                max_attempts,
            )
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Store operation failed: %s", exc, exc_info=True)
            raise StoreError() from exc

    logger.error("Store operation gave up after %d attempts: %s", max_attempts, last_error)
    raise StoreError() from last_error
