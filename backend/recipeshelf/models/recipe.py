"""
RecipeShelf Backend — Recipe SQLAlchemy Model
==============================================

What:  The recipe aggregate: content, banners, ingredients, methods and the
       rolling rating summary, plus its audience-specific projections.
How:   Plain columns for scalar fields, JSON arrays for ordered lists and
       references. Projection methods are pure: they read only attributes
       and banner images that a service attached beforehand with
       `attach_banners()`. Nothing here issues a query.
Who:   Created/updated by RecipeService; projected by routes and by
       Collection.to_detail_for.

Lifecycle:
    1. Created by an authenticated owner with 1-4 existing banner images
    2. `rating_ids` grows through add_rating(); `rating_avg`/`rating_total`
       are rewritten by RecipeService.update_rating()
    3. Deleted only through RecipeService.delete_recipe(), which first
       removes the recipe from collections and saved lists

Concurrency:
    `version` is the optimistic-lock counter. A flush that updates a row
    whose version changed since it was loaded raises StaleDataError, which
    `flush_or_raise` turns into ConflictError.
"""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Union

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column

from recipeshelf.database import Base
from recipeshelf.models.common import IdLike, MutableJSONList, ref, utcnow
from recipeshelf.schemas.recipe import (
    RatingSummary,
    RecipeEditObject,
    RecipeSearchResult,
    RecipeThumbnail,
    RecipeView,
    UserRecipeSearchResult,
    UserRecipeThumbnail,
    UserRecipeView,
)

if TYPE_CHECKING:
    from recipeshelf.models.image import Image
    from recipeshelf.models.user import User


class Recipe(Base):
    __tablename__ = "recipes"

    # Text relevance weights per searchable field. Shared with the search
    # query in RecipeService so ranking and matching use the same fields.
    SEARCH_WEIGHTS = {
        "name": 10,
        "category": 7,
        "tags": 6,
        "ingredients.ingredient": 6,
        "description": 5,
    }

    MIN_BANNERS = 1
    MAX_BANNERS = 4

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # true: public, false: private (visible to the owner only)
    status: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Stored lowercased and trimmed; see RecipeCreate
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    servings: Mapped[int] = mapped_column(Integer, nullable=False)
    time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, comment="Minutes")

    tags: Mapped[List[str]] = mapped_column(MutableJSONList, nullable=False, default=list)

    # Ordered image ids; the first one is the display thumbnail
    banner_ids: Mapped[List[str]] = mapped_column(MutableJSONList, nullable=False, default=list)

    # [{"quantity": "200 g", "ingredient": "flour"}, ...]
    ingredients: Mapped[List[Dict[str, str]]] = mapped_column(
        MutableJSONList, nullable=False, default=list
    )
    methods: Mapped[List[str]] = mapped_column(MutableJSONList, nullable=False, default=list)

    # ── Rating rollup ─────────────────────────────────────────────────────
    rating_avg: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating_ids: Mapped[List[str]] = mapped_column(MutableJSONList, nullable=False, default=list)

    # Lowercased name, category, tags, ingredient text and description.
    # Rebuilt before every insert/update; search candidates match on it.
    search_text: Mapped[str] = mapped_column(Text, nullable=False, default="")

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

    __table_args__ = (
        CheckConstraint("servings BETWEEN 1 AND 16", name="ck_recipes_servings"),
        CheckConstraint('"time" IS NULL OR "time" BETWEEN 1 AND 200', name="ck_recipes_time"),
        Index("idx_recipes_created_at", "created_at"),
        Index("idx_recipes_rating", "rating_total", "rating_avg"),
    )

    __mapper_args__ = {"version_id_col": version}

    # Transient, never persisted. Filled by RecipeService.
    _banner_images = None
    score = None

    def __init__(self, **kwargs: Any) -> None:
        for field in ("tags", "banner_ids", "ingredients", "methods", "rating_ids"):
            kwargs.setdefault(field, [])
        kwargs.setdefault("description", "")
        kwargs.setdefault("status", True)
        kwargs.setdefault("rating_avg", 0.0)
        kwargs.setdefault("rating_total", 0)
        super().__init__(**kwargs)

    # ══════════════════════════════════════════════════════════════════════
    # Reference resolution
    # ══════════════════════════════════════════════════════════════════════

    def attach_banners(self, images: Iterable["Image"]) -> "Recipe":
        self._banner_images = list(images)
        return self

    @property
    def banners_resolved(self) -> bool:
        return self._banner_images is not None

    @property
    def banner_images(self) -> List["Image"]:
        if self._banner_images is None:
            raise RuntimeError(
                f"Banners of recipe {self.id} are not resolved yet. "
                "Call RecipeService.resolve_banners() before projecting."
            )
        return self._banner_images

    @property
    def image_url(self) -> str:
        images = self.banner_images
        return images[0].url if images else ""

    @property
    def rating(self) -> RatingSummary:
        return RatingSummary(avg=self.rating_avg or 0.0, total=self.rating_total or 0)

    # ══════════════════════════════════════════════════════════════════════
    # Domain behaviour
    # ══════════════════════════════════════════════════════════════════════

    def is_created_by(self, user: Union["User", IdLike, None]) -> bool:
        """Identity check of the owner against a user (or a bare user id)."""
        if user is None:
            return False
        user_id = getattr(user, "id", user)
        return user_id is not None and str(self.created_by) == str(user_id)

    def add_rating(self, rating_id: IdLike) -> "Recipe":
        """Record a rating reference once. The caller flushes."""
        rating_ref = ref(rating_id)
        if rating_ref not in self.rating_ids:
            self.rating_ids.append(rating_ref)
        return self

    def apply_rating_summary(self, summary: RatingSummary) -> "Recipe":
        self.rating_avg = summary.avg
        self.rating_total = summary.total
        return self

    def is_visible_to(self, user: Optional["User"]) -> bool:
        return bool(self.status) or self.is_created_by(user)

    def relevance(self, terms: Iterable[str]) -> int:
        """
        Weighted text relevance for a list of lowercase search terms.

        Each occurrence of a term inside a field adds that field's weight
        from SEARCH_WEIGHTS (name 10, category 7, tags 6, ingredient text 6,
        description 5).
        """
        haystacks = self._search_fields()
        score = 0
        for path, weight in self.SEARCH_WEIGHTS.items():
            text = haystacks[path].lower()
            for term in terms:
                if term:
                    score += weight * text.count(term)
        return score

    def _search_fields(self) -> Dict[str, str]:
        return {
            "name": self.name or "",
            "category": self.category or "",
            "tags": " ".join(self.tags or []),
            "ingredients.ingredient": " ".join(
                item.get("ingredient", "") for item in (self.ingredients or [])
            ),
            "description": self.description or "",
        }

    def refresh_search_text(self) -> "Recipe":
        fields = self._search_fields()
        self.search_text = "\n".join(fields[path] for path in self.SEARCH_WEIGHTS).lower()
        return self

    # ══════════════════════════════════════════════════════════════════════
    # Projections
    # ══════════════════════════════════════════════════════════════════════

    def _card_fields(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "image_url": self.image_url,
            "rating": self.rating,
        }

    def _content_fields(self) -> Dict[str, Any]:
        return {
            **self._card_fields(),
            "description": self.description,
            "status": self.status,
            "category": self.category,
            "servings": self.servings,
            "time": self.time,
            "tags": list(self.tags),
            "ingredients": list(self.ingredients),
            "methods": list(self.methods),
        }

    def _user_flags(self, user: "User") -> Dict[str, bool]:
        return {
            "saved_by_user": user.did_save_recipe(self),
            "created_by_user": self.is_created_by(user),
        }

    def to_json(self) -> RecipeView:
        return RecipeView(
            **self._content_fields(),
            created_by=self.created_by,
            created_at=self.created_at,
            banners=[image.to_view() for image in self.banner_images],
        )

    def to_json_for(self, user: "User") -> UserRecipeView:
        return UserRecipeView(
            **self._content_fields(),
            created_by=self.created_by,
            created_at=self.created_at,
            banners=[image.to_view() for image in self.banner_images],
            **self._user_flags(user),
        )

    def to_thumbnail_for(
        self, user: Optional["User"] = None
    ) -> Union[RecipeThumbnail, UserRecipeThumbnail]:
        if user is None:
            return RecipeThumbnail(**self._card_fields())
        return UserRecipeThumbnail(**self._card_fields(), **self._user_flags(user))

    def to_search_result_for(
        self, user: Optional["User"] = None
    ) -> Union[RecipeSearchResult, UserRecipeSearchResult]:
        if user is None:
            return RecipeSearchResult(**self._card_fields())
        return UserRecipeSearchResult(**self._card_fields(), **self._user_flags(user))

    def to_edit_obj(self) -> RecipeEditObject:
        return RecipeEditObject(
            **self._content_fields(),
            banners=[image.to_edit_object() for image in self.banner_images],
        )

    def __repr__(self) -> str:
        return f"<Recipe(id={self.id}, name='{self.name}', category='{self.category}')>"


@event.listens_for(Recipe, "before_insert")
@event.listens_for(Recipe, "before_update")
def _sync_search_text(mapper, connection, target: Recipe) -> None:
    target.refresh_search_text()
