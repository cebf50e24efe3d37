"""
RecipeShelf Backend — Collection Service
=========================================

What:  Collection lifecycle and membership, plus the detail "populate" step.
How:   Membership changes are the model's idempotent add_recipe/remove_recipe
       followed by a flush. The version column on collections turns a lost
       concurrent update into ConflictError instead of a silent overwrite.

Creation is a two-step unit of work inside the request transaction:
    1. INSERT the collection, flush (assigns the id)
    2. owner.create_collection(id), flush the owner
    get_db_session commits both or neither.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from recipeshelf.database import execute_or_raise, flush_or_raise
from recipeshelf.exceptions import ForbiddenError, NotFoundError, ValidationError
from recipeshelf.models.collection import Collection
from recipeshelf.models.common import IdLike, as_uuid
from recipeshelf.models.recipe import Recipe
from recipeshelf.models.user import User
from recipeshelf.schemas.collection import CollectionDetail
from recipeshelf.services.recipe_service import recipe_service

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError(message="Collection name must not be empty", field="name")
    return cleaned


class CollectionService:

    async def create_collection(self, db: AsyncSession, owner: User, name: str) -> Collection:
        collection = Collection(name=_clean_name(name), created_by=owner.id)
        db.add(collection)
        await flush_or_raise(db, "collection")

        owner.create_collection(collection.id)
        await flush_or_raise(db, "user")

        logger.info("Collection created: %s by user %s", collection.id, owner.id)
        return collection

    async def get_collection(self, db: AsyncSession, collection_id: IdLike) -> Collection:
        result = await execute_or_raise(
            db,
            select(Collection).where(Collection.id == as_uuid(collection_id)),
            "collection",
        )
        collection = result.scalar_one_or_none()
        if collection is None:
            raise NotFoundError(resource="collection", resource_id=str(collection_id))
        return collection

    @staticmethod
    def ensure_can_edit(user: User, collection: Collection) -> None:
        """Owner or admin only."""
        if not user.can_edit(collection):
            logger.info("User %s may not edit collection %s", user.id, collection.id)
            raise ForbiddenError(
                message="You can only modify your own collections",
                context={"collection_id": str(collection.id)},
            )

    async def rename_collection(
        self, db: AsyncSession, collection: Collection, name: str
    ) -> Collection:
        collection.name = _clean_name(name)
        await flush_or_raise(db, "collection")
        return collection

    async def add_recipe(
        self, db: AsyncSession, collection: Collection, recipe: Recipe
    ) -> Collection:
        """Adding a recipe that is already a member is a no-op."""
        collection.add_recipe(recipe.id)
        await flush_or_raise(db, "collection")
        return collection

    async def remove_recipe(
        self, db: AsyncSession, collection: Collection, recipe_id: IdLike
    ) -> Collection:
        """
        Removing a non-member is a no-op. Takes a bare id so that members
        whose recipe no longer exists can still be removed.
        """
        collection.remove_recipe(recipe_id)
        await flush_or_raise(db, "collection")
        return collection

    async def get_collection_detail(
        self, db: AsyncSession, collection: Collection, user: User
    ) -> CollectionDetail:
        """
        Resolve members (membership order, orphaned ids skipped) and their
        banners, then project with Collection.to_detail_for().
        """
        recipes = await recipe_service.get_recipes(db, collection.recipe_ids)
        await recipe_service.resolve_banners(db, recipes)
        return collection.to_detail_for(user, recipes)


collection_service = CollectionService()
