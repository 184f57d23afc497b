"""Create restaurants and restaurant_votes tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Creates the restaurant listing table and the per-user vote table.
Rollback: downgrade() drops both tables (all votes are lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

document_json = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    op.create_table(
        "restaurants",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("cuisine", sa.String(100), nullable=True),
        sa.Column("price_level", sa.Integer(), nullable=True),
        sa.Column(
            "reservation_required",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("website", sa.String(500), nullable=True),
        sa.Column("street", sa.String(255), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("postcode", sa.String(20), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        # ["vegan", "date-night", ...]
        sa.Column("tags", document_json, nullable=True),
        sa.Column("images", document_json, nullable=True),
        # {"monday": "09:00-17:00", ...}; a missing day means closed
        sa.Column("hours", document_json, nullable=True),
        # Denormalized from restaurant_votes, rewritten on every vote change
        sa.Column("upvote_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("downvote_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("vote_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_restaurants_vote_count", "restaurants", [sa.text("vote_count DESC")])
    op.create_index("idx_restaurants_city", "restaurants", ["city"])

    op.create_table(
        "restaurant_votes",
        sa.Column("restaurant_id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("direction", sa.String(4), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.ForeignKeyConstraint(["restaurant_id"], ["restaurants.id"], ondelete="CASCADE"),
        # One row per user per restaurant: never both an upvote and a downvote
        sa.PrimaryKeyConstraint("restaurant_id", "user_id"),
        sa.CheckConstraint("direction IN ('up', 'down')", name="ck_restaurant_votes_direction"),
    )
    op.create_index("idx_restaurant_votes_user", "restaurant_votes", ["user_id", "direction"])


def downgrade() -> None:
    op.drop_index("idx_restaurant_votes_user", table_name="restaurant_votes")
    op.drop_table("restaurant_votes")
    op.drop_index("idx_restaurants_city", table_name="restaurants")
    op.drop_index("idx_restaurants_vote_count", table_name="restaurants")
    op.drop_table("restaurants")
