"""
RecipeShelf Backend — Collection SQLAlchemy Model
==================================================

What:  A named, user-owned list of recipe references.
How:   `recipe_ids` is an ordered JSON array of recipe id strings used as a
       set: add_recipe/remove_recipe are idempotent and preserve insertion
       order. Members are resolved to recipes only by
       CollectionService.get_collection_detail().
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable, List, Union

from sqlalchemy import DateTime, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recipeshelf.database import Base
from recipeshelf.models.common import IdLike, MutableJSONList, ref, utcnow
from recipeshelf.schemas.collection import CollectionDetail, CollectionView

if TYPE_CHECKING:
    from recipeshelf.models.recipe import Recipe
    from recipeshelf.models.user import User


class Collection(Base):
    __tablename__ = "collections"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    recipe_ids: Mapped[List[str]] = mapped_column(MutableJSONList, nullable=False, default=list)

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

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("recipe_ids", [])
        super().__init__(**kwargs)

    # ── Membership ────────────────────────────────────────────────────────

    def has_recipe(self, recipe_id: IdLike) -> bool:
        return ref(recipe_id) in self.recipe_ids

    def add_recipe(self, recipe_id: IdLike) -> "Collection":
        recipe_ref = ref(recipe_id)
        if recipe_ref not in self.recipe_ids:
            self.recipe_ids.append(recipe_ref)
        return self

    def remove_recipe(self, recipe_id: IdLike) -> "Collection":
        recipe_ref = ref(recipe_id)
        if recipe_ref in self.recipe_ids:
            self.recipe_ids.remove(recipe_ref)
        return self

    def is_created_by(self, user: Union["User", IdLike, None]) -> bool:
        if user is None:
            return False
        user_id = getattr(user, "id", user)
        return user_id is not None and str(self.created_by) == str(user_id)

    # ── Projections ───────────────────────────────────────────────────────

    def to_view(self) -> CollectionView:
        return CollectionView(
            id=self.id,
            name=self.name,
            created_by=self.created_by,
            recipes=list(self.recipe_ids),
            created_at=self.created_at,
        )

    def to_detail_for(self, user: "User", recipes: Iterable["Recipe"]) -> CollectionDetail:
        """
        Detail view with members rendered as recipe cards for `user`.

        `recipes` must be the resolved members (banners attached), as
        produced by CollectionService.get_collection_detail().
        """
        return CollectionDetail(
            id=self.id,
            name=self.name,
            created_by=self.created_by,
            created_by_user=self.is_created_by(user),
            recipes=[recipe.to_thumbnail_for(user) for recipe in recipes],
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"<Collection(id={self.id}, name='{self.name}', size={len(self.recipe_ids)})>"
