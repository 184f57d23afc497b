"""
Plateful Backend — Voting Service Tests
=========================================

What:  Tests VotingService against a real SQLite database.
Why:   The vote rows and the three count columns must stay in step, also
       when several coroutines vote on the same restaurant at once.
How:   Restaurants are inserted with make_restaurant; concurrent voters each
       get their own session from session_factory.

What we test:
    ✅ Upvote / downvote / remove transitions and their response messages
    ✅ Idempotent repeats and switching direction
    ✅ Blank user id → ValidationError, unknown restaurant → NotFoundError
    ✅ Concurrent votes are all counted
    ✅ Conflicts are retried, then surfaced as TransientConflictError
"""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from app.config import settings
from app.exceptions import (
    DatabaseError,
    NotFoundError,
    TransientConflictError,
    ValidationError,
)
from app.models.restaurant import Restaurant, RestaurantVote
from app.services.voting_service import VotingService, _VoteConflict, require_user_id


async def _stored_counts(session_factory, restaurant_id):
    async with session_factory() as session:
        restaurant = await session.get(Restaurant, restaurant_id)
        votes = (
            await session.execute(
                select(RestaurantVote.direction, func.count())
                .where(RestaurantVote.restaurant_id == restaurant_id)
                .group_by(RestaurantVote.direction)
            )
        ).all()
    rows = dict(votes)
    return {
        "columns": (restaurant.upvote_count, restaurant.downvote_count, restaurant.vote_count),
        "rows": (rows.get("up", 0), rows.get("down", 0)),
    }


class TestRequireUserId:

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank_is_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            require_user_id(value)
        assert exc_info.value.message == "userId is required"

    def test_value_is_trimmed(self):
        assert require_user_id("  u1 ") == "u1"


class TestVotingTransitions:

    def setup_method(self):
        self.service = VotingService()

    @pytest.mark.asyncio
    async def test_upvote(self, make_restaurant, db_session):
        await make_restaurant(id="r1")

        result = await self.service.upvote(db_session, "r1", "u1")

        assert result.message == "Upvoted successfully"
        assert (result.upvote_count, result.downvote_count, result.vote_count) == (1, 0, 1)

    @pytest.mark.asyncio
    async def test_repeated_upvote_is_idempotent(self, make_restaurant, session_factory, db_session):
        await make_restaurant(id="r1")

        await self.service.upvote(db_session, "r1", "u1")
        result = await self.service.upvote(db_session, "r1", "u1")

        assert (result.upvote_count, result.vote_count) == (1, 1)
        stored = await _stored_counts(session_factory, "r1")
        assert stored == {"columns": (1, 0, 1), "rows": (1, 0)}

    @pytest.mark.asyncio
    async def test_switching_direction(self, make_restaurant, session_factory, db_session):
        await make_restaurant(id="r1")

        up = await self.service.upvote(db_session, "r1", "u1")
        down = await self.service.downvote(db_session, "r1", "u1")

        assert down.message == "Downvoted successfully"
        assert (down.upvote_count, down.downvote_count, down.vote_count) == (0, 1, -1)
        assert up.vote_count - down.vote_count == 2
        stored = await _stored_counts(session_factory, "r1")
        assert stored == {"columns": (0, 1, -1), "rows": (0, 1)}

    @pytest.mark.asyncio
    async def test_remove_vote(self, make_restaurant, session_factory, db_session):
        await make_restaurant(id="r1")
        await self.service.downvote(db_session, "r1", "u1")
        await self.service.upvote(db_session, "r1", "u2")

        result = await self.service.remove_vote(db_session, "r1", "u1")

        assert result.message == "Vote removed successfully"
        assert (result.upvote_count, result.downvote_count, result.vote_count) == (1, 0, 1)
        stored = await _stored_counts(session_factory, "r1")
        assert stored == {"columns": (1, 0, 1), "rows": (1, 0)}

    @pytest.mark.asyncio
    async def test_remove_without_vote_is_a_no_op(self, make_restaurant, db_session):
        await make_restaurant(id="r1")

        result = await self.service.remove_vote(db_session, "r1", "nobody")

        assert result.message == "Vote removed successfully"
        assert (result.upvote_count, result.downvote_count, result.vote_count) == (0, 0, 0)

    @pytest.mark.asyncio
    async def test_stale_count_columns_are_rewritten(self, make_restaurant, session_factory, db_session):
        await make_restaurant(id="r1", upvote_count=7, downvote_count=2, vote_count=5)

        result = await self.service.upvote(db_session, "r1", "u1")

        assert (result.upvote_count, result.downvote_count, result.vote_count) == (1, 0, 1)
        stored = await _stored_counts(session_factory, "r1")
        assert stored["columns"] == (1, 0, 1)

    @pytest.mark.asyncio
    async def test_user_id_is_trimmed(self, make_restaurant, db_session):
        await make_restaurant(id="r1")

        await self.service.upvote(db_session, "r1", "  u1  ")
        status = await self.service.get_vote_status(db_session, "r1", "u1")

        assert status.has_upvoted is True

    @pytest.mark.asyncio
    async def test_blank_user_is_rejected(self, make_restaurant, db_session):
        await make_restaurant(id="r1")

        with pytest.raises(ValidationError):
            await self.service.upvote(db_session, "r1", "  ")

    @pytest.mark.asyncio
    async def test_unknown_restaurant(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.downvote(db_session, "missing", "u1")


class TestVoteStatus:

    def setup_method(self):
        self.service = VotingService()

    @pytest.mark.asyncio
    async def test_status_reflects_user_vote(self, make_restaurant, db_session):
        await make_restaurant(id="r1")
        await self.service.upvote(db_session, "r1", "u1")
        await self.service.downvote(db_session, "r1", "u2")
        await self.service.downvote(db_session, "r1", "u3")

        status = await self.service.get_vote_status(db_session, "r1", "u2")

        assert status.restaurant_id == "r1"
        assert status.user_id == "u2"
        assert status.has_upvoted is False
        assert status.has_downvoted is True
        assert status.user_vote == "down"
        assert (status.upvote_count, status.downvote_count, status.vote_count) == (1, 2, -1)

    @pytest.mark.asyncio
    async def test_status_for_user_without_vote(self, make_restaurant, db_session):
        await make_restaurant(id="r1")

        status = await self.service.get_vote_status(db_session, "r1", "u9")

        assert status.has_upvoted is False
        assert status.has_downvoted is False
        assert status.user_vote is None

    @pytest.mark.asyncio
    async def test_status_requires_user(self, make_restaurant, db_session):
        await make_restaurant(id="r1")
        with pytest.raises(ValidationError):
            await self.service.get_vote_status(db_session, "r1", None)

    @pytest.mark.asyncio
    async def test_status_unknown_restaurant(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_vote_status(db_session, "missing", "u1")


class TestConcurrentVoting:

    @pytest.mark.asyncio
    async def test_concurrent_upvotes_are_all_counted(self, make_restaurant, session_factory):
        await make_restaurant(id="r1")
        service = VotingService()

        async def vote(user_id):
            async with session_factory() as session:
                return await service.upvote(session, "r1", user_id)

        await asyncio.gather(*(vote(f"u{i}") for i in range(20)))

        stored = await _stored_counts(session_factory, "r1")
        assert stored == {"columns": (20, 0, 20), "rows": (20, 0)}
        assert len(service._locks) == 0

    @pytest.mark.asyncio
    async def test_concurrent_mixed_votes_stay_consistent(self, make_restaurant, session_factory):
        await make_restaurant(id="r1")
        service = VotingService()

        async def vote(user_id, action):
            async with session_factory() as session:
                await getattr(service, action)(session, "r1", user_id)

        await asyncio.gather(*(vote(f"u{i}", "upvote") for i in range(10)))
        await asyncio.gather(
            *(vote(f"u{i}", "downvote") for i in range(4)),
            *(vote(f"u{i}", "remove_vote") for i in range(4, 6)),
            *(vote(f"u{i}", "upvote") for i in range(6, 10)),
        )

        stored = await _stored_counts(session_factory, "r1")
        assert stored == {"columns": (4, 4, 0), "rows": (4, 4)}


class TestConflictRetry:

    @pytest.mark.asyncio
    async def test_conflict_is_retried(self, make_restaurant, session_factory, db_session, monkeypatch):
        await make_restaurant(id="r1")
        service = VotingService()
        original_flush = db_session.flush
        calls = {"count": 0}

        async def flaky_flush(*args, **kwargs):
            calls["count"] += 1
            if calls["count"] == 1:
                raise StaleDataError("restaurant row changed underneath us")
            return await original_flush(*args, **kwargs)

        monkeypatch.setattr(db_session, "flush", flaky_flush)

        result = await service.upvote(db_session, "r1", "u1")

        assert calls["count"] == 2
        assert result.upvote_count == 1
        stored = await _stored_counts(session_factory, "r1")
        assert stored == {"columns": (1, 0, 1), "rows": (1, 0)}

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_transient_conflict(self, make_restaurant, db_session):
        await make_restaurant(id="r1")
        service = VotingService()

        with patch.object(
            VotingService, "_apply", AsyncMock(side_effect=_VoteConflict("race"))
        ) as mock_apply:
            with pytest.raises(TransientConflictError) as exc_info:
                await service.upvote(db_session, "r1", "u1")

        assert mock_apply.await_count == settings.vote_retry_max_attempts
        assert exc_info.value.retry_after == 1
        assert len(service._locks) == 0

    @pytest.mark.asyncio
    async def test_database_failure_is_not_retried(self, make_restaurant, db_session):
        await make_restaurant(id="r1")
        service = VotingService()
        failure = OperationalError("UPDATE restaurants", {}, Exception("disk I/O error"))

        with patch.object(VotingService, "_apply", AsyncMock(side_effect=failure)) as mock_apply:
            with pytest.raises(DatabaseError):
                await service.downvote(db_session, "r1", "u1")

        assert mock_apply.await_count == 1
