"""
RecipeShelf Backend — Image Service
====================================

What:  Registers provider-hosted images and answers existence lookups.
How:   The upload itself happens against the image provider; this service
       only records the resulting `{public_id, url}` and resolves ids.
Who:   POST /api/images, and RecipeService (banner validation/resolution).
"""

import logging
import uuid
from typing import Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recipeshelf.database import execute_or_raise, flush_or_raise
from recipeshelf.models.common import IdLike, as_uuid
from recipeshelf.models.image import Image

logger = logging.getLogger(__name__)


def _distinct_ids(refs: Iterable[IdLike]) -> List[uuid.UUID]:
    ids: List[uuid.UUID] = []
    for value in refs:
        image_id = as_uuid(value)
        if image_id not in ids:
            ids.append(image_id)
    return ids


class ImageService:

    async def register_image(
        self,
        db: AsyncSession,
        public_id: str,
        url: str,
        type: str = "recipe",
    ) -> Image:
        image = Image(public_id=public_id, url=url, type=type)
        db.add(image)
        await flush_or_raise(db, "image")
        logger.info("Image registered: %s (public_id=%s)", image.id, public_id)
        return image

    async def get_images(self, db: AsyncSession, refs: Iterable[IdLike]) -> Dict[uuid.UUID, Image]:
        """Map of id → Image for every ref that exists. Missing ids are simply absent."""
        ids = _distinct_ids(refs)
        if not ids:
            return {}
        result = await execute_or_raise(db, select(Image).where(Image.id.in_(ids)), "image")
        return {image.id: image for image in result.scalars().all()}

    async def check_images_exist(self, db: AsyncSession, refs: Iterable[IdLike]) -> bool:
        """
        True iff every distinct ref names a stored image.

        An empty list is vacuously true; the banner count rule on recipes
        is what rejects "no images".
        """
        ids = _distinct_ids(refs)
        if not ids:
            return True
        found = await self.get_images(db, ids)
        missing = [str(image_id) for image_id in ids if image_id not in found]
        if missing:
            logger.debug("Unknown image ids: %s", ", ".join(missing))
        return not missing


image_service = ImageService()
