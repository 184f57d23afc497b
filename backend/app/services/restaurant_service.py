"""
Plateful Backend — Restaurant Service (Listing, Search & Filtering)
=====================================================================

What:  Read-side business logic for restaurant discovery.
Why:   Keeps query composition and the filter pipeline out of the routes.
How:   Static criteria go to the database through build_filter_query();
       the resulting candidate list is narrowed in memory by the open-now,
       tag and text filters.
Who:   Called by the restaurant route handlers.

Filter Pipeline (GET /api/restaurants/filter):
    ┌───────────────────┐    ┌──────────────┐    ┌─────────────┐
    │ build_filter_query│───▶│ open now?    │───▶│ text query  │
    │ (SQL WHERE)       │    │ (in memory)  │    │ (in memory) │
    └───────────────────┘    └──────────────┘    └─────────────┘
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import ColumnElement, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError
from app.models.restaurant import Restaurant
from app.schemas.restaurant import RestaurantResponse
from app.services.filters import (
    build_filter_query,
    filter_by_text,
    match_all_tags,
    match_any_tags,
)
from app.services.opening_hours import Clock, SystemClock, filter_open_now

logger = logging.getLogger(__name__)


def _has_values(values: Optional[Sequence[str]]) -> bool:
    return bool(values) and any(v is not None and v.strip() for v in values)


def _to_responses(restaurants: List[Restaurant]) -> List[RestaurantResponse]:
    return [RestaurantResponse.from_model(r) for r in restaurants]


class RestaurantService:
    """
    Business logic layer for restaurant discovery.

    Responsibilities:
        - list_restaurants() / get_restaurant(): plain reads
        - search(): free-text search
        - filter_restaurants(): the multi-criteria pipeline
        - list_cuisines(), by_tags(), popular()
    """

    def __init__(self, clock: Optional[Clock] = None):
        # None → a SystemClock in the configured zone, created per call
        self.clock = clock

    async def _fetch(
        self, db: AsyncSession, where: Optional[ColumnElement[bool]] = None
    ) -> List[Restaurant]:
        query = select(Restaurant).where(where if where is not None else true())
        query = query.order_by(Restaurant.name.asc(), Restaurant.id.asc())
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error listing restaurants: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve restaurants. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return list(result.scalars().all())

    async def list_restaurants(self, db: AsyncSession) -> List[RestaurantResponse]:
        return _to_responses(await self._fetch(db))

    async def get_restaurant(self, db: AsyncSession, restaurant_id: str) -> RestaurantResponse:
        """
        Raises:
            NotFoundError: no restaurant with this id (→ 404)
        """
        try:
            restaurant = await db.get(Restaurant, restaurant_id)
        except SQLAlchemyError as e:
            logger.error("Database error fetching restaurant %s: %s", restaurant_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the restaurant. Please try again.",
                context={"restaurant_id": restaurant_id},
            )
        if restaurant is None:
            raise NotFoundError(resource="restaurant", resource_id=restaurant_id)
        return RestaurantResponse.from_model(restaurant)

    async def search(self, db: AsyncSession, query: Optional[str]) -> List[RestaurantResponse]:
        """Case-insensitive substring search over name, description and cuisine."""
        restaurants = await self._fetch(db)
        return _to_responses(filter_by_text(restaurants, query))

    async def filter_restaurants(
        self,
        db: AsyncSession,
        query: Optional[str] = None,
        cuisine: Optional[str] = None,
        price_min: Optional[int] = None,
        price_max: Optional[int] = None,
        reservation: Optional[bool] = None,
        open_now: Optional[bool] = None,
        cities: Optional[Sequence[str]] = None,
    ) -> List[RestaurantResponse]:
        """
        Run the full filter pipeline.

        open_now only narrows when explicitly True; False and None both mean
        "don't care", matching how the frontend toggle sends the flag.
        """
        where = build_filter_query(
            cuisine=cuisine,
            price_min=price_min,
            price_max=price_max,
            reservation=reservation,
            cities=cities,
        )
        candidates = await self._fetch(db, where)

        if open_now is True:
            candidates = filter_open_now(candidates, self.clock or SystemClock())

        candidates = filter_by_text(candidates, query)
        logger.debug("Filter pipeline returned %d restaurants", len(candidates))
        return _to_responses(candidates)

    async def list_cuisines(self, db: AsyncSession) -> List[str]:
        """Sorted unique cuisine values, blanks excluded."""
        try:
            result = await db.execute(
                select(Restaurant.cuisine).where(Restaurant.cuisine.is_not(None)).distinct()
            )
        except SQLAlchemyError as e:
            logger.error("Database error listing cuisines: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve cuisines. Please try again.")
        return sorted({c for c in result.scalars().all() if c and c.strip()})

    async def by_tags(
        self,
        db: AsyncSession,
        any_tags: Optional[Sequence[str]] = None,
        all_tags: Optional[Sequence[str]] = None,
    ) -> List[RestaurantResponse]:
        """
        Tag filter. `all_tags` takes precedence over `any_tags`; with neither,
        every restaurant is returned.
        """
        restaurants = await self._fetch(db)
        if _has_values(all_tags):
            restaurants = match_all_tags(restaurants, all_tags)
        elif _has_values(any_tags):
            restaurants = match_any_tags(restaurants, any_tags)
        return _to_responses(restaurants)

    async def popular(self, db: AsyncSession, limit: Optional[int] = None) -> List[RestaurantResponse]:
        """Restaurants ranked by net score, most popular first."""
        query = select(Restaurant).order_by(
            Restaurant.vote_count.desc(),
            Restaurant.upvote_count.desc(),
            Restaurant.name.asc(),
        )
        if limit is not None:
            query = query.limit(limit)
        try:
            result = await db.execute(query)
        except SQLAlchemyError as e:
            logger.error("Database error ranking restaurants: %s", str(e), exc_info=True)
            raise DatabaseError(message="Could not retrieve popular restaurants. Please try again.")
        return _to_responses(list(result.scalars().all()))


# ── Singleton Instance ────────────────────────────────────────────────────
restaurant_service = RestaurantService()
