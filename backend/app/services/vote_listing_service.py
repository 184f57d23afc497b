"""
Plateful Backend — Vote Listing Service
=========================================

What:  Paginated lists of the restaurants a user has up- or downvoted.
Who:   Called by GET /api/me/votes/up and /api/me/votes/down.

Pagination:
    Offset based (page, size). size is clamped to [1, 100] and page to
    [0, MAX_PAGE] here, so out-of-range query values degrade instead of failing.
    Most recent votes come first.
"""

import logging
import math

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, ValidationError
from app.models.restaurant import VOTE_DOWN, VOTE_UP, Restaurant, RestaurantVote
from app.schemas.restaurant import Page, RestaurantResponse

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100
# Keeps page * size well inside a 64-bit OFFSET
MAX_PAGE = 1_000_000


def clamp_page(page: int, size: int) -> tuple:
    return min(MAX_PAGE, max(0, page)), min(MAX_PAGE_SIZE, max(1, size))


class VoteListingService:

    async def upvoted_by(
        self, db: AsyncSession, user_id: str, page: int = 0, size: int = 20
    ) -> Page[RestaurantResponse]:
        return await self._voted_by(db, user_id, VOTE_UP, page, size)

    async def downvoted_by(
        self, db: AsyncSession, user_id: str, page: int = 0, size: int = 20
    ) -> Page[RestaurantResponse]:
        return await self._voted_by(db, user_id, VOTE_DOWN, page, size)

    async def _voted_by(
        self, db: AsyncSession, user_id: str, direction: str, page: int, size: int
    ) -> Page[RestaurantResponse]:
        if direction not in (VOTE_UP, VOTE_DOWN):
            raise ValidationError(message=f"Unknown vote direction '{direction}'")
        page, size = clamp_page(page, size)

        matches = (RestaurantVote.user_id == user_id, RestaurantVote.direction == direction)
        try:
            total = (
                await db.execute(
                    select(func.count()).select_from(RestaurantVote).where(*matches)
                )
            ).scalar() or 0
            result = await db.execute(
                select(Restaurant)
                .join(RestaurantVote, RestaurantVote.restaurant_id == Restaurant.id)
                .where(*matches)
                .order_by(RestaurantVote.created_at.desc(), Restaurant.id.asc())
                .offset(page * size)
                .limit(size)
            )
            restaurants = list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing %svotes of %s: %s", direction, user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve your votes. Please try again.",
                context={"direction": direction},
            )

        return Page[RestaurantResponse](
            content=[RestaurantResponse.from_model(r) for r in restaurants],
            page=page,
            size=size,
            total_elements=total,
            total_pages=math.ceil(total / size) if total else 0,
        )


vote_listing_service = VoteListingService()
