"""
RecipeShelf Backend — User SQLAlchemy Model
============================================

What:  The minimal user profile the recipe and collection aggregates talk to.
How:   Identity comes from the upstream auth layer (see dependencies.py);
       this table only keeps what the domain needs: role, saved recipes and
       the user's own collections.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Union

from sqlalchemy import DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recipeshelf.database import Base
from recipeshelf.models.common import IdLike, MutableJSONList, ref, utcnow
from recipeshelf.schemas.collection import UserView

if TYPE_CHECKING:
    from recipeshelf.models.collection import Collection
    from recipeshelf.models.recipe import Recipe

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=ROLE_USER)

    saved_recipe_ids: Mapped[List[str]] = mapped_column(
        MutableJSONList, nullable=False, default=list
    )
    collection_ids: Mapped[List[str]] = mapped_column(
        MutableJSONList, nullable=False, default=list
    )

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
        kwargs.setdefault("saved_recipe_ids", [])
        kwargs.setdefault("collection_ids", [])
        kwargs.setdefault("role", ROLE_USER)
        super().__init__(**kwargs)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def did_save_recipe(self, recipe: Union["Recipe", IdLike]) -> bool:
        return ref(recipe) in self.saved_recipe_ids

    def save_recipe(self, recipe_id: IdLike) -> "User":
        recipe_ref = ref(recipe_id)
        if recipe_ref not in self.saved_recipe_ids:
            self.saved_recipe_ids.append(recipe_ref)
        return self

    def unsave_recipe(self, recipe_id: IdLike) -> "User":
        recipe_ref = ref(recipe_id)
        if recipe_ref in self.saved_recipe_ids:
            self.saved_recipe_ids.remove(recipe_ref)
        return self

    def create_collection(self, collection_id: IdLike) -> "User":
        """Link a collection to this profile (idempotent). The caller flushes."""
        collection_ref = ref(collection_id)
        if collection_ref not in self.collection_ids:
            self.collection_ids.append(collection_ref)
        return self

    def can_edit(self, collection: "Collection") -> bool:
        return self.is_admin or collection.is_created_by(self)

    def to_view(self) -> UserView:
        return UserView(
            id=self.id,
            username=self.username,
            role=self.role,
            saved_recipes=list(self.saved_recipe_ids),
            collections=list(self.collection_ids),
            created_at=self.created_at,
        )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', role='{self.role}')>"
