"""
RecipeShelf Backend — Image Schemas
====================================

What:  Request body for registering an uploaded asset, and the two image views.
How:   The upload itself happens at the external image provider; the client
       (or the upload middleware) reports the provider id and delivery URL here.
"""

import uuid

from pydantic import BaseModel, ConfigDict, Field


class ImageCreate(BaseModel):
    """Body of POST /api/images."""

    model_config = ConfigDict(str_strip_whitespace=True)

    public_id: str = Field(min_length=1, max_length=255, description="Provider asset id")
    url: str = Field(min_length=1, max_length=2048, description="Delivery URL of the asset")
    type: str = Field(default="recipe", min_length=1, max_length=50)


class ImageEditObject(BaseModel):
    """`{id, url}` pair handed to clients that edit a recipe's banners."""

    id: uuid.UUID
    url: str


class ImageView(BaseModel):
    """Full image as embedded in a recipe's detail view."""

    id: uuid.UUID
    public_id: str
    url: str
    type: str

    model_config = {"from_attributes": True}
