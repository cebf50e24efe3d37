"""
RecipeShelf Backend — Image SQLAlchemy Model
=============================================

What:  A stored asset hosted by the external image provider.
How:   Only the provider id and delivery URL are kept; bytes never touch
       this service. Recipes reference images by id (see Recipe.banner_ids).
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from recipeshelf.database import Base
from recipeshelf.models.common import utcnow
from recipeshelf.schemas.image import ImageEditObject, ImageView


class Image(Base):
    __tablename__ = "images"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    public_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Asset id at the image provider",
    )
    url: Mapped[str] = mapped_column(String(2048), nullable=False)

    # e.g. "recipe"; lets other asset kinds share the table later
    type: Mapped[str] = mapped_column(String(50), nullable=False, default="recipe")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    def to_edit_object(self) -> ImageEditObject:
        return ImageEditObject(id=self.id, url=self.url)

    def to_view(self) -> ImageView:
        return ImageView.model_validate(self)

    def __repr__(self) -> str:
        return f"<Image(id={self.id}, public_id='{self.public_id}')>"
