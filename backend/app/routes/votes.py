"""
Plateful Backend — Voting Route Handlers
==========================================

What:  Upvote, downvote, remove vote and vote status for a restaurant.
Who:   Called by the vote buttons on restaurant cards and detail pages.

Request body for the three mutations: {"userId": "..."}.
A missing or blank userId is a 400 validation_error, checked here before
the voting service takes the per-restaurant lock.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.restaurant import ErrorResponse
from app.schemas.vote import VoteRequest, VoteResponse, VoteStatusResponse
from app.services.voting_service import require_user_id, voting_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/restaurants", tags=["Votes"])

_VOTE_RESPONSES = {
    400: {"description": "userId missing or blank", "model": ErrorResponse},
    404: {"description": "Restaurant not found", "model": ErrorResponse},
    409: {"description": "Concurrent update, retry", "model": ErrorResponse},
}


def _user_id_from(body: Optional[VoteRequest]) -> str:
    return require_user_id(body.user_id if body is not None else None)


@router.post(
    "/{restaurant_id}/upvote",
    response_model=VoteResponse,
    responses=_VOTE_RESPONSES,
    summary="Upvote a restaurant",
)
async def upvote(
    restaurant_id: str,
    body: Optional[VoteRequest] = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await voting_service.upvote(db, restaurant_id, _user_id_from(body))


@router.post(
    "/{restaurant_id}/downvote",
    response_model=VoteResponse,
    responses=_VOTE_RESPONSES,
    summary="Downvote a restaurant",
)
async def downvote(
    restaurant_id: str,
    body: Optional[VoteRequest] = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await voting_service.downvote(db, restaurant_id, _user_id_from(body))


@router.delete(
    "/{restaurant_id}/vote",
    response_model=VoteResponse,
    responses=_VOTE_RESPONSES,
    summary="Remove the user's vote",
)
async def remove_vote(
    restaurant_id: str,
    body: Optional[VoteRequest] = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> VoteResponse:
    return await voting_service.remove_vote(db, restaurant_id, _user_id_from(body))


@router.get(
    "/{restaurant_id}/vote-status",
    response_model=VoteStatusResponse,
    responses={
        400: {"description": "userId missing or blank", "model": ErrorResponse},
        404: {"description": "Restaurant not found", "model": ErrorResponse},
    },
    summary="Current user's vote and the vote counts",
)
async def vote_status(
    restaurant_id: str,
    user_id: Optional[str] = Query(default=None, alias="userId"),
    db: AsyncSession = Depends(get_db_session),
) -> VoteStatusResponse:
    return await voting_service.get_vote_status(db, restaurant_id, require_user_id(user_id))
