"""
RecipeShelf Backend — Collection Route Handlers
================================================

What:  Create/read/rename collections and manage their members.
How:   Membership endpoints are PUT/DELETE on the member path, both
       idempotent: repeating either returns the same collection, never an error.
Who:   Authenticated users; mutations are limited to the owner or an admin.
"""

import uuid
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipeshelf.database import get_db_session
from recipeshelf.dependencies import get_current_user, load_collection
from recipeshelf.models.collection import Collection
from recipeshelf.models.user import User
from recipeshelf.routes.envelope import wrap
from recipeshelf.schemas.collection import CollectionCreate, CollectionUpdate
from recipeshelf.schemas.common import ErrorResponse
from recipeshelf.services.collection_service import collection_service
from recipeshelf.services.recipe_service import recipe_service


router = APIRouter(prefix="/api/collections", tags=["Collections"])

ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Missing or unknown user", "model": ErrorResponse},
    403: {"description": "Not the owner", "model": ErrorResponse},
    404: {"description": "Collection or recipe not found", "model": ErrorResponse},
    409: {"description": "Concurrent update", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses=ERRORS,
    summary="Create a collection",
)
async def create_collection(
    body: CollectionCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    collection = await collection_service.create_collection(db, user, body.name)
    return wrap(collection.to_view(), "collection")


@router.get(
    "/{collection_id}",
    responses=ERRORS,
    summary="Get a collection with its recipes",
    description="Members are returned as recipe cards, in the order they were added.",
)
async def get_collection(
    collection: Collection = Depends(load_collection),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    detail = await collection_service.get_collection_detail(db, collection, user)
    return wrap(detail, "collection")


@router.put("/{collection_id}", responses=ERRORS, summary="Rename a collection")
async def update_collection(
    body: CollectionUpdate,
    collection: Collection = Depends(load_collection),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    collection_service.ensure_can_edit(user, collection)
    if body.name is not None:
        collection = await collection_service.rename_collection(db, collection, body.name)
    return wrap(collection.to_view(), "collection")


@router.put(
    "/{collection_id}/recipes/{recipe_id}",
    responses=ERRORS,
    summary="Add a recipe to a collection",
)
async def add_recipe_to_collection(
    recipe_id: uuid.UUID,
    collection: Collection = Depends(load_collection),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    collection_service.ensure_can_edit(user, collection)
    recipe = await recipe_service.get_recipe(db, recipe_id)
    collection = await collection_service.add_recipe(db, collection, recipe)
    return wrap(collection.to_view(), "collection")


@router.delete(
    "/{collection_id}/recipes/{recipe_id}",
    responses=ERRORS,
    summary="Remove a recipe from a collection",
)
async def remove_recipe_from_collection(
    recipe_id: uuid.UUID,
    collection: Collection = Depends(load_collection),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    collection_service.ensure_can_edit(user, collection)
    collection = await collection_service.remove_recipe(db, collection, recipe_id)
    return wrap(collection.to_view(), "collection")
