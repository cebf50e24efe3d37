"""
RecipeShelf Backend — Recipe & Rating Schemas
==============================================

What:  Pydantic input models and the audience-specific recipe views.
How:   Every projection is its own class with an explicit field list. A view
       cannot leak a field it does not declare, so "a thumbnail never carries
       the ingredient list" is a property of the type, not of a delete-list.

View family:
    RecipeView              full recipe (anonymous)
    UserRecipeView          full recipe + saved_by_user / created_by_user
    RecipeThumbnail         grid card: id, name, image_url, rating
    UserRecipeThumbnail     grid card + user flags
    RecipeSearchResult      search hit: same card fields, never the score
    UserRecipeSearchResult  search hit + user flags
    RecipeEditObject        full edit payload, banners as {id, url}, no owner/timestamps
"""

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from recipeshelf.schemas.image import ImageEditObject, ImageView


# ══════════════════════════════════════════════════════════════════════════
# Shared value objects
# ══════════════════════════════════════════════════════════════════════════


class Ingredient(BaseModel):
    """One ingredient line: a free-text quantity and the ingredient itself."""

    model_config = ConfigDict(str_strip_whitespace=True)

    quantity: str = Field(min_length=1, max_length=100)
    ingredient: str = Field(min_length=1, max_length=200)


class RatingSummary(BaseModel):
    """Rolling `{avg, total}` summary stored on every recipe."""

    avg: float = 0.0
    total: int = 0

    @classmethod
    def from_aggregate(cls, avg: Optional[float], total: Optional[int]) -> "RatingSummary":
        """
        Build a summary from an `avg(...)`, `count(...)` aggregate row.

        An aggregate over zero ratings yields `(NULL, 0)`; that maps to the
        empty summary `{avg: 0, total: 0}`.
        """
        if not total:
            return cls(avg=0.0, total=0)
        return cls(avg=float(avg or 0.0), total=int(total))


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class RecipeCreate(BaseModel):
    """
    Recipe fields accepted on create and on full edit.

    Normalisation:
        - strings are trimmed
        - category and tags are lowercased; empty/duplicate tags are dropped
        - banners accept bare ids or `{id, url}` objects (the edit payload shape)

    Existence of the referenced images is checked by the service, since it
    needs the database.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    status: bool = Field(default=True, description="true: public, false: private")
    category: str = Field(min_length=1, max_length=100)
    servings: int = Field(ge=1, le=16)
    time: Optional[int] = Field(default=None, ge=1, le=200, description="Minutes")
    tags: List[str] = Field(default_factory=list)
    banners: List[uuid.UUID] = Field(min_length=1, max_length=4)
    ingredients: List[Ingredient] = Field(default_factory=list)
    methods: List[str] = Field(min_length=1)

    @field_validator("category")
    @classmethod
    def lowercase_category(cls, v: str) -> str:
        return v.lower()

    @field_validator("tags")
    @classmethod
    def normalise_tags(cls, v: List[str]) -> List[str]:
        seen: List[str] = []
        for tag in v:
            tag = tag.strip().lower()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    @field_validator("banners", mode="before")
    @classmethod
    def unwrap_banner_objects(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [item.get("id") if isinstance(item, dict) else item for item in v]
        return v

    @field_validator("methods")
    @classmethod
    def reject_blank_steps(cls, v: List[str]) -> List[str]:
        if any(not step for step in v):
            raise ValueError("method steps must not be empty")
        return v


class RatingCreate(BaseModel):
    """Body of POST /api/recipes/{id}/ratings."""

    rate_value: int = Field(ge=1, le=5, strict=True, description="Star rating, 1 to 5")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class RecipeView(BaseModel):
    id: uuid.UUID
    name: str
    description: str
    status: bool
    category: str
    created_by: uuid.UUID
    servings: int
    time: Optional[int] = None
    tags: List[str]
    banners: List[ImageView]
    image_url: str
    ingredients: List[Ingredient]
    methods: List[str]
    rating: RatingSummary
    created_at: datetime


class UserRecipeView(RecipeView):
    saved_by_user: bool
    created_by_user: bool


class RecipeThumbnail(BaseModel):
    """Compact card for list/grid displays."""

    id: uuid.UUID
    name: str
    image_url: str
    rating: RatingSummary


class UserRecipeThumbnail(RecipeThumbnail):
    saved_by_user: bool
    created_by_user: bool


class RecipeSearchResult(BaseModel):
    """One search hit. Results are ordered by relevance; the score itself stays server-side."""

    id: uuid.UUID
    name: str
    image_url: str
    rating: RatingSummary


class UserRecipeSearchResult(RecipeSearchResult):
    saved_by_user: bool
    created_by_user: bool


class RecipeEditObject(BaseModel):
    """
    Everything a client needs to resubmit a complete edit.

    Banners are `{id, url}` pairs; ownership and audit fields are left out.
    """

    id: uuid.UUID
    name: str
    description: str
    status: bool
    category: str
    servings: int
    time: Optional[int] = None
    tags: List[str]
    banners: List[ImageEditObject]
    image_url: str
    ingredients: List[Ingredient]
    methods: List[str]
    rating: RatingSummary


class CategorySummary(BaseModel):
    """One category in the public category rollup."""

    name: str
    total: int
    image_url: str


class RatingResult(BaseModel):
    """Response of the rating route: the caller's rating and the recomputed summary."""

    id: uuid.UUID
    recipe_id: uuid.UUID
    rate_value: int
    summary: RatingSummary
