"""
Plateful Backend — Restaurant Route Handlers
==============================================

What:  Listing, lookup, search, filtering, cuisines, tags and popularity.
How:   Extracts query parameters, delegates to RestaurantService, returns JSON.
Who:   Called by the frontend Search, Favorites and RestaurantDetails pages.

Route order matters: the fixed paths (/search, /filter, /cuisines, ...)
are declared before /{restaurant_id} so they are not captured as ids.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.exceptions import ValidationError
from app.schemas.restaurant import ErrorResponse, RestaurantResponse
from app.services.restaurant_service import restaurant_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/restaurants", tags=["Restaurants"])


def reject_inverted_price_bounds(price_min: Optional[int], price_max: Optional[int]) -> None:
    """
    Fail fast on priceMin > priceMax.

    The query builder would swap the bounds, but a request that states an
    impossible range is a client mistake worth reporting.
    """
    if price_min is not None and price_max is not None and price_min > price_max:
        raise ValidationError(
            message="priceMin cannot be greater than priceMax",
            field="priceMin",
            context={"priceMin": price_min, "priceMax": price_max},
        )


@router.get(
    "",
    response_model=List[RestaurantResponse],
    summary="List all restaurants",
)
async def list_restaurants(
    db: AsyncSession = Depends(get_db_session),
) -> List[RestaurantResponse]:
    return await restaurant_service.list_restaurants(db)


@router.get(
    "/search",
    response_model=List[RestaurantResponse],
    summary="Free-text search",
    description=(
        "Case-insensitive partial match across name, description and cuisine. "
        "An empty query returns every restaurant."
    ),
)
async def search_restaurants(
    query: Optional[str] = Query(default=None, description="Search term"),
    db: AsyncSession = Depends(get_db_session),
) -> List[RestaurantResponse]:
    return await restaurant_service.search(db, query)


@router.get(
    "/filter",
    response_model=List[RestaurantResponse],
    responses={400: {"description": "priceMin > priceMax", "model": ErrorResponse}},
    summary="Multi-criteria filter",
    description=(
        "Combines text search, cuisine, inclusive price range, reservation "
        "requirement, open-now and city list. All parameters are optional."
    ),
)
async def filter_restaurants(
    query: Optional[str] = Query(default=None, description="Free text over name/description/cuisine"),
    cuisine: Optional[str] = Query(default=None, description="Case-insensitive partial cuisine match"),
    price_min: Optional[int] = Query(default=None, alias="priceMin"),
    price_max: Optional[int] = Query(default=None, alias="priceMax"),
    reservation: Optional[bool] = Query(default=None),
    open_now: Optional[bool] = Query(default=None, alias="openNow"),
    city: Optional[List[str]] = Query(default=None, description="Repeatable; exact, case-insensitive"),
    db: AsyncSession = Depends(get_db_session),
) -> List[RestaurantResponse]:
    reject_inverted_price_bounds(price_min, price_max)
    return await restaurant_service.filter_restaurants(
        db,
        query=query,
        cuisine=cuisine,
        price_min=price_min,
        price_max=price_max,
        reservation=reservation,
        open_now=open_now,
        cities=city,
    )


@router.get(
    "/cuisines",
    response_model=List[str],
    summary="Distinct cuisines",
)
async def list_cuisines(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> List[str]:
    cuisines = await restaurant_service.list_cuisines(db)
    # Cuisine values only change when restaurants are re-seeded
    response.headers["Cache-Control"] = "public, max-age=300"
    return cuisines


@router.get(
    "/by-tags",
    response_model=List[RestaurantResponse],
    summary="Filter by tags",
    description=(
        "`all` keeps restaurants carrying every tag; `any` keeps restaurants "
        "carrying at least one. `all` wins when both are given."
    ),
)
async def restaurants_by_tags(
    any_tags: Optional[List[str]] = Query(default=None, alias="any"),
    all_tags: Optional[List[str]] = Query(default=None, alias="all"),
    db: AsyncSession = Depends(get_db_session),
) -> List[RestaurantResponse]:
    return await restaurant_service.by_tags(db, any_tags=any_tags, all_tags=all_tags)


@router.get(
    "/popular",
    response_model=List[RestaurantResponse],
    summary="Restaurants ranked by net vote score",
)
async def popular_restaurants(
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    db: AsyncSession = Depends(get_db_session),
) -> List[RestaurantResponse]:
    return await restaurant_service.popular(db, limit=limit)


@router.get(
    "/{restaurant_id}",
    response_model=RestaurantResponse,
    responses={404: {"description": "Restaurant not found", "model": ErrorResponse}},
    summary="Get a single restaurant",
)
async def get_restaurant(
    restaurant_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> RestaurantResponse:
    return await restaurant_service.get_restaurant(db, restaurant_id)
