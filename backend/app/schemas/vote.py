"""
Plateful Backend — Voting Schemas
===================================

What:  Request and response bodies for the vote endpoints.
Why:   The vote response shape ({message, upvoteCount, downvoteCount,
       voteCount}) is what the frontend's vote buttons read after each click.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator

from app.schemas.restaurant import CamelModel


class VoteRequest(CamelModel):
    """
    Body of POST /upvote, POST /downvote and DELETE /vote.

    user_id is optional at the schema level so that a missing or blank value
    produces our 400 validation_error instead of FastAPI's generic 422.
    Numeric ids are accepted as their string form ({"userId": 123} → "123").
    """
    user_id: Optional[str] = Field(default=None, description="Id of the voting user")

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, v):
        if isinstance(v, bool):
            return None
        if isinstance(v, (int, float)):
            return str(v)
        return v if isinstance(v, str) else None


class VoteResponse(CamelModel):
    message: str
    upvote_count: int
    downvote_count: int
    vote_count: int


class VoteStatusResponse(CamelModel):
    restaurant_id: str
    user_id: str
    has_upvoted: bool
    has_downvoted: bool
    user_vote: Optional[Literal["up", "down"]] = Field(
        default=None, description="'up', 'down', or null when the user has not voted"
    )
    upvote_count: int
    downvote_count: int
    vote_count: int
