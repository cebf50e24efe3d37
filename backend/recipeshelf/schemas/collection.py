"""
RecipeShelf Backend — Collection & User Schemas
================================================
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from recipeshelf.schemas.recipe import UserRecipeThumbnail


class CollectionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)


class CollectionUpdate(BaseModel):
    """Partial update; only the name is editable."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)


class CollectionView(BaseModel):
    """A collection with its member references (not resolved)."""

    id: uuid.UUID
    name: str
    created_by: uuid.UUID
    recipes: List[uuid.UUID]
    created_at: datetime


class CollectionDetail(BaseModel):
    """A collection whose members have been resolved to recipe cards."""

    id: uuid.UUID
    name: str
    created_by: uuid.UUID
    created_by_user: bool
    recipes: List[UserRecipeThumbnail]
    created_at: datetime


class UserCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")


class UserView(BaseModel):
    id: uuid.UUID
    username: str
    role: str
    saved_recipes: List[uuid.UUID]
    collections: List[uuid.UUID]
    created_at: datetime
