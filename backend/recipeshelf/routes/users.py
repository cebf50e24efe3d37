"""
RecipeShelf Backend — User Route Handlers
==========================================

What:  Sign-up stand-in, the caller's profile, and the saved-recipes list.
How:   /me routes act on the user named by the auth header.
"""

import uuid
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipeshelf.database import get_db_session
from recipeshelf.dependencies import get_current_user
from recipeshelf.exceptions import ForbiddenError
from recipeshelf.models.user import User
from recipeshelf.routes.envelope import wrap
from recipeshelf.schemas.collection import UserCreate
from recipeshelf.schemas.common import ErrorResponse
from recipeshelf.services.recipe_service import recipe_service
from recipeshelf.services.user_service import user_service

router = APIRouter(prefix="/api/users", tags=["Users"])

ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Missing or unknown user", "model": ErrorResponse},
    404: {"description": "Recipe not found", "model": ErrorResponse},
}


@router.post("", status_code=status.HTTP_201_CREATED, responses=ERRORS, summary="Create a user")
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    user = await user_service.create_user(db, body.username)
    return wrap(user.to_view(), "user")


@router.get("/me", responses=ERRORS, summary="The caller's profile")
async def get_me(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return wrap(user.to_view(), "user")


@router.put("/me/saved/{recipe_id}", responses=ERRORS, summary="Save a recipe")
async def save_recipe(
    recipe_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    recipe = await recipe_service.get_recipe(db, recipe_id)
    if not recipe.is_visible_to(user):
        raise ForbiddenError(message="This recipe is private")
    user = await user_service.save_recipe(db, user, recipe)
    return wrap(user.to_view(), "user")


@router.delete("/me/saved/{recipe_id}", responses=ERRORS, summary="Unsave a recipe")
async def unsave_recipe(
    recipe_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    user = await user_service.unsave_recipe(db, user, recipe_id)
    return wrap(user.to_view(), "user")
