"""Create recipe tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  users, images, recipes, ratings and collections.
How:   Reference lists (banners, ratings, members, saved recipes) are JSON
       arrays of id strings; `version` columns back optimistic locking.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(with_updated: bool = True):
    columns = [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP")),
    ]
    if with_updated:
        columns.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False,
                      server_default=sa.text("CURRENT_TIMESTAMP")),
        )
    return columns


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(50), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default=sa.text("'user'")),
        sa.Column("saved_recipe_ids", sa.JSON(), nullable=False),
        sa.Column("collection_ids", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )

    op.create_table(
        "images",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("public_id", sa.String(255), nullable=False,
                  comment="Asset id at the image provider"),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("type", sa.String(50), nullable=False, server_default=sa.text("'recipe'")),
        *_timestamps(with_updated=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_images_public_id", "images", ["public_id"])

    op.create_table(
        "recipes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("status", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("servings", sa.Integer(), nullable=False),
        sa.Column("time", sa.Integer(), nullable=True, comment="Minutes"),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.Column("banner_ids", sa.JSON(), nullable=False),
        sa.Column("ingredients", sa.JSON(), nullable=False),
        sa.Column("methods", sa.JSON(), nullable=False),
        sa.Column("rating_avg", sa.Float(), nullable=False, server_default=sa.text("0")),
        sa.Column("rating_total", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("rating_ids", sa.JSON(), nullable=False),
        sa.Column("search_text", sa.Text(), nullable=False, server_default=sa.text("''")),
        *_timestamps(),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("servings BETWEEN 1 AND 16", name="ck_recipes_servings"),
        sa.CheckConstraint('"time" IS NULL OR "time" BETWEEN 1 AND 200', name="ck_recipes_time"),
    )
    op.create_index("ix_recipes_category", "recipes", ["category"])
    op.create_index("ix_recipes_created_by", "recipes", ["created_by"])
    # Serves ORDER BY created_at DESC as a backward index scan
    op.create_index("idx_recipes_created_at", "recipes", ["created_at"])
    op.create_index("idx_recipes_rating", "recipes", ["rating_total", "rating_avg"])

    op.create_table(
        "ratings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("recipe_id", sa.Uuid(),
                  sa.ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.Uuid(),
                  sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("rate_value", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("recipe_id", "user_id", name="uq_ratings_recipe_user"),
        sa.CheckConstraint("rate_value BETWEEN 1 AND 5", name="ck_ratings_rate_value"),
    )
    op.create_index("ix_ratings_recipe_id", "ratings", ["recipe_id"])

    op.create_table(
        "collections",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("created_by", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("recipe_ids", sa.JSON(), nullable=False),
        *_timestamps(),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_collections_created_by", "collections", ["created_by"])


def downgrade() -> None:
    op.drop_index("ix_collections_created_by", table_name="collections")
    op.drop_table("collections")
    op.drop_index("ix_ratings_recipe_id", table_name="ratings")
    op.drop_table("ratings")
    op.drop_index("idx_recipes_rating", table_name="recipes")
    op.drop_index("idx_recipes_created_at", table_name="recipes")
    op.drop_index("ix_recipes_created_by", table_name="recipes")
    op.drop_index("ix_recipes_category", table_name="recipes")
    op.drop_table("recipes")
    op.drop_index("ix_images_public_id", table_name="images")
    op.drop_table("images")
    op.drop_table("users")
