"""
RecipeShelf Backend — Rating SQLAlchemy Model
==============================================

What:  One user's star rating of one recipe.
How:   Ratings are owned by the rater but only meaningful through the recipe
       they target; the recipe's `{avg, total}` summary is derived from this
       table by RecipeService.update_rating().

Query patterns:
    - Rollup: SELECT avg(rate_value), count(id) WHERE recipe_id = :id
      → idx_ratings_recipe_id
    - Re-rating: WHERE recipe_id = :r AND user_id = :u → unique constraint
"""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recipeshelf.database import Base
from recipeshelf.models.common import utcnow


class Rating(Base):
    __tablename__ = "ratings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    recipe_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("recipes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    rate_value: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    __table_args__ = (
        UniqueConstraint("recipe_id", "user_id", name="uq_ratings_recipe_user"),
        CheckConstraint("rate_value BETWEEN 1 AND 5", name="ck_ratings_rate_value"),
    )

    def __repr__(self) -> str:
        return f"<Rating(id={self.id}, recipe_id={self.recipe_id}, rate_value={self.rate_value})>"
