"""
Plateful Backend — Voting Service
===================================

What:  Upvote / downvote / remove-vote / vote-status for a (restaurant, user).
Why:   Keeps each restaurant's vote rows and its denormalized counts in step,
       with at most one vote per user per restaurant.
How:   Every mutation runs inside a per-restaurant critical section:
       load restaurant + vote rows → build VoteState → apply transition →
       write changed vote row and all three count columns, commit.
Who:   Called by the vote route handlers.

Concurrency Strategy:
    ┌──────────────┐   ┌─────────────────┐   ┌────────────────────────────┐
    │ KeyedLock    │──▶│ read-modify-    │──▶│ versioned UPDATE restaurants│
    │ (per id)     │   │ write VoteState │   │ + vote row INSERT/UPDATE   │
    └──────────────┘   └─────────────────┘   └────────────────────────────┘

    - In-process: KeyedLock serializes coroutines voting on the same id.
    - Cross-process: the row's version column turns a lost race into
      StaleDataError; a duplicate vote row into IntegrityError. Both roll
      back and retry (tenacity, bounded). After the last attempt the caller
      gets TransientConflictError (409) instead of an endless loop.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.exc import StaleDataError
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import (
    DatabaseError,
    NotFoundError,
    PlatefulError,
    TransientConflictError,
    ValidationError,
)
from app.models.restaurant import Restaurant, RestaurantVote
from app.schemas.vote import VoteResponse, VoteStatusResponse
from app.services.keyed_lock import KeyedLock
from app.services.vote_state import (
    VoteState,
    apply_downvote,
    apply_remove,
    apply_upvote,
)

logger = logging.getLogger(__name__)

Transition = Callable[[VoteState, str], VoteState]


class _VoteConflict(Exception):
    """Internal signal: another writer changed the restaurant first."""


def require_user_id(user_id: Optional[str]) -> str:
    """Rejects a missing or blank user id with a 400 ValidationError."""
    if user_id is None or not user_id.strip():
        raise ValidationError(message="userId is required", field="userId")
    return user_id.strip()


class VotingService:
    """
    Business logic for restaurant votes.

    Responsibilities:
        - upvote() / downvote(): add or switch the user's vote
        - remove_vote(): withdraw the user's vote if any
        - get_vote_status(): read-only view of the user's vote and the counts
    """

    def __init__(self, locks: Optional[KeyedLock] = None):
        self._locks = locks or KeyedLock()

    async def upvote(self, db: AsyncSession, restaurant_id: str, user_id: Optional[str]) -> VoteResponse:
        return await self._mutate(db, restaurant_id, user_id, apply_upvote, "Upvoted successfully")

    async def downvote(self, db: AsyncSession, restaurant_id: str, user_id: Optional[str]) -> VoteResponse:
        return await self._mutate(db, restaurant_id, user_id, apply_downvote, "Downvoted successfully")

    async def remove_vote(self, db: AsyncSession, restaurant_id: str, user_id: Optional[str]) -> VoteResponse:
        return await self._mutate(db, restaurant_id, user_id, apply_remove, "Vote removed successfully")

    async def get_vote_status(
        self, db: AsyncSession, restaurant_id: str, user_id: Optional[str]
    ) -> VoteStatusResponse:
        """
        Report whether the user has upvoted, downvoted or not voted.

        Raises:
            ValidationError: blank user id (→ 400)
            NotFoundError: unknown restaurant (→ 404)
        """
        user_id = require_user_id(user_id)
        try:
            restaurant = await self._load(db, restaurant_id)
        except PlatefulError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error reading votes of %s: %s", restaurant_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the vote status. Please try again.",
                context={"restaurant_id": restaurant_id},
            )

        state = self._state_of(restaurant)
        direction = state.direction_of(user_id)
        return VoteStatusResponse(
            restaurant_id=restaurant.id,
            user_id=user_id,
            has_upvoted=direction == "up",
            has_downvoted=direction == "down",
            user_vote=direction,
            upvote_count=state.upvote_count,
            downvote_count=state.downvote_count,
            vote_count=state.vote_count,
        )

    # ── Internals ─────────────────────────────────────────────────────────

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            stop=stop_after_attempt(settings.vote_retry_max_attempts),
            wait=wait_exponential_jitter(
                initial=settings.vote_retry_min_wait_ms / 1000,
                max=settings.vote_retry_max_wait_ms / 1000,
                jitter=settings.vote_retry_min_wait_ms / 1000,
            ),
            retry=retry_if_exception_type(_VoteConflict),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

    async def _mutate(
        self,
        db: AsyncSession,
        restaurant_id: str,
        user_id: Optional[str],
        transition: Transition,
        message: str,
    ) -> VoteResponse:
        user_id = require_user_id(user_id)

        async with self._locks.hold(restaurant_id):
            try:
                async for attempt in self._retrying():
                    with attempt:
                        state, changed = await self._apply(db, restaurant_id, user_id, transition)
            except RetryError:
                logger.warning(
                    "Vote on %s by %s abandoned after %d conflicting attempts",
                    restaurant_id,
                    user_id,
                    settings.vote_retry_max_attempts,
                )
                raise TransientConflictError(context={"restaurant_id": restaurant_id})
            except PlatefulError:
                raise
            except SQLAlchemyError as e:
                logger.error("Database error voting on %s: %s", restaurant_id, str(e), exc_info=True)
                raise DatabaseError(
                    message="Could not record your vote. Please try again.",
                    context={"restaurant_id": restaurant_id},
                )

        if changed:
            logger.info(
                "%s: restaurant=%s user=%s up=%d down=%d",
                message,
                restaurant_id,
                user_id,
                state.upvote_count,
                state.downvote_count,
            )
        return VoteResponse(
            message=message,
            upvote_count=state.upvote_count,
            downvote_count=state.downvote_count,
            vote_count=state.vote_count,
        )

    async def _apply(
        self,
        db: AsyncSession,
        restaurant_id: str,
        user_id: str,
        transition: Transition,
    ) -> Tuple[VoteState, bool]:
        """One read-modify-write attempt. Returns (new state, whether anything was written)."""
        restaurant = await self._load(db, restaurant_id)
        before = self._state_of(restaurant)
        after = transition(before, user_id)

        counts_stale = (
            restaurant.upvote_count != before.upvote_count
            or restaurant.downvote_count != before.downvote_count
            or restaurant.vote_count != before.vote_count
        )
        if after == before and not counts_stale:
            return after, False

        if after != before:
            self._sync_vote_row(restaurant, user_id, after.direction_of(user_id))
        restaurant.upvote_count = after.upvote_count
        restaurant.downvote_count = after.downvote_count
        restaurant.vote_count = after.vote_count

        # Commit inside the critical section: the next holder of the lock
        # must read this write, not the pre-commit snapshot.
        try:
            await db.flush()
            await db.commit()
        except (StaleDataError, IntegrityError) as e:
            await db.rollback()
            raise _VoteConflict(str(e)) from e
        return after, True

    async def _load(self, db: AsyncSession, restaurant_id: str) -> Restaurant:
        result = await db.execute(
            select(Restaurant)
            .where(Restaurant.id == restaurant_id)
            .options(selectinload(Restaurant.votes))
            .execution_options(populate_existing=True)
        )
        restaurant = result.scalar_one_or_none()
        if restaurant is None:
            raise NotFoundError(resource="restaurant", resource_id=restaurant_id)
        return restaurant

    @staticmethod
    def _state_of(restaurant: Restaurant) -> VoteState:
        return VoteState.from_votes((v.user_id, v.direction) for v in restaurant.votes)

    @staticmethod
    def _sync_vote_row(restaurant: Restaurant, user_id: str, direction: Optional[str]) -> None:
        """Makes the user's vote row match `direction` (None deletes it)."""
        existing = next((v for v in restaurant.votes if v.user_id == user_id), None)
        if direction is None:
            if existing is not None:
                restaurant.votes.remove(existing)
            return
        if existing is None:
            restaurant.votes.append(
                RestaurantVote(restaurant_id=restaurant.id, user_id=user_id, direction=direction)
            )
        else:
            existing.direction = direction
            existing.created_at = datetime.now(timezone.utc)


# ── Singleton Instance ────────────────────────────────────────────────────
# One lock table per process, shared by every request.
voting_service = VotingService()
