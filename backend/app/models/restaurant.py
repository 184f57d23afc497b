"""
Plateful Backend — Restaurant SQLAlchemy Models
=================================================

What:  ORM models for the `restaurants` and `restaurant_votes` tables.
Why:   Maps restaurant documents and per-user votes to rows for type-safe queries.
How:   Inherits from the shared DeclarativeBase; Alembic reads these for migrations.
Who:   Queried by RestaurantService; mutated only by VotingService.

Table Design Rationale:
    - String primary key: restaurant ids are opaque and come from the seeding
      process, so no numeric sequence is implied.
    - tags / hours: JSON columns keep the document shape of the seed data
      (a list of strings and a weekday → "HH:MM-HH:MM" map).
    - restaurant_votes: one row per (restaurant, user). The composite primary
      key means a user can sit in the upvoters OR the downvoters, never both.
    - upvote_count / downvote_count / vote_count: denormalized copies of the
      vote row counts so "popular" can ORDER BY without aggregating.
    - version: optimistic concurrency counter; every vote mutation rewrites
      the counts, so concurrent writers on the same row are detected.
"""

import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

# JSONB on PostgreSQL, plain JSON everywhere else (SQLite in tests)
DocumentJSON = JSON().with_variant(JSONB(), "postgresql")

VOTE_UP = "up"
VOTE_DOWN = "down"


def _new_restaurant_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Restaurant(Base):
    """
    A restaurant listing.

    Lifecycle:
        Created by the seeding process (outside this service). The API only
        ever mutates the vote rows and the three derived count columns.
    """

    __tablename__ = "restaurants"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_restaurant_id)

    # ── Descriptive fields ────────────────────────────────────────────────
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cuisine: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    price_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    reservation_required: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # ── Address ───────────────────────────────────────────────────────────
    street: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    postcode: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # ── Document fields ───────────────────────────────────────────────────
    # tags: ["vegan", "date-night", ...]
    # hours: {"monday": "09:00-17:00", "friday": "22:00-02:00", ...}
    # images: ["https://.../cover.jpg", ...], first entry is the cover
    tags: Mapped[Optional[List[str]]] = mapped_column(DocumentJSON, nullable=True)
    images: Mapped[Optional[List[str]]] = mapped_column(DocumentJSON, nullable=True)
    hours: Mapped[Optional[Dict[str, Optional[str]]]] = mapped_column(DocumentJSON, nullable=True)

    # ── Denormalized vote counts ──────────────────────────────────────────
    upvote_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    downvote_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )
    vote_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=text("0")
    )

    version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, server_default=text("1")
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    # lazy="raise": listing endpoints never need vote rows; the voting
    # service loads them explicitly with selectinload().
    votes: Mapped[List["RestaurantVote"]] = relationship(
        back_populates="restaurant",
        cascade="all, delete-orphan",
        lazy="raise",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_restaurants_vote_count", vote_count.desc()),
        Index("idx_restaurants_city", city),
    )

    def __repr__(self) -> str:
        return f"<Restaurant(id={self.id}, name='{self.name}', votes={self.vote_count})>"


class RestaurantVote(Base):
    """
    A single user's vote on a restaurant.

    The composite primary key (restaurant_id, user_id) allows one row per
    user per restaurant, so switching direction is an UPDATE of `direction`
    rather than a second row.
    """

    __tablename__ = "restaurant_votes"

    restaurant_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    direction: Mapped[str] = mapped_column(String(4), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    restaurant: Mapped[Restaurant] = relationship(back_populates="votes", lazy="raise")

    __table_args__ = (
        CheckConstraint("direction IN ('up', 'down')", name="ck_restaurant_votes_direction"),
        Index("idx_restaurant_votes_user", "user_id", "direction"),
    )

    def __repr__(self) -> str:
        return (
            f"<RestaurantVote(restaurant_id={self.restaurant_id}, "
            f"user_id='{self.user_id}', direction='{self.direction}')>"
        )
