"""
Plateful Backend — "My Votes" Route Handlers
==============================================

What:  Paginated restaurants the logged-in user has up- or downvoted.
Who:   Called by the frontend UserProfile page.

Auth:  The user comes from the session (see app/auth.py); anonymous
       requests get 401. page/size are clamped by the service, so
       ?size=500 yields 100 items rather than an error.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import get_current_user_id
from app.database import get_db_session
from app.schemas.restaurant import ErrorResponse, Page, RestaurantResponse
from app.services.vote_listing_service import vote_listing_service

router = APIRouter(prefix="/api/me/votes", tags=["My Votes"])

_RESPONSES = {401: {"description": "Not logged in", "model": ErrorResponse}}


@router.get(
    "/up",
    response_model=Page[RestaurantResponse],
    responses=_RESPONSES,
    summary="Restaurants I upvoted",
)
async def my_upvotes(
    page: int = Query(default=0, description="Zero-based page index, clamped to 0-1000000"),
    size: int = Query(default=20, description="Page size, clamped to 1-100"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Page[RestaurantResponse]:
    return await vote_listing_service.upvoted_by(db, user_id, page=page, size=size)


@router.get(
    "/down",
    response_model=Page[RestaurantResponse],
    responses=_RESPONSES,
    summary="Restaurants I downvoted",
)
async def my_downvotes(
    page: int = Query(default=0, description="Zero-based page index, clamped to 0-1000000"),
    size: int = Query(default=20, description="Page size, clamped to 1-100"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Page[RestaurantResponse]:
    return await vote_listing_service.downvoted_by(db, user_id, page=page, size=size)
