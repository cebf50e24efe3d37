"""
RecipeShelf Backend — Request Dependencies
===========================================

What:  The current-user context and path preloaders shared by the routers.
How:   Identity is asserted by the upstream auth layer through a header
       (settings.auth_header, default `X-User-Id`) carrying the user's id.
       This module only turns that id into a User row.
Who:   Injected into route handlers with Depends().

    get_current_user   → User, or 401 when the header is missing/unknown
    get_optional_user  → User or None (anonymous views)
    load_recipe        → Recipe for {recipe_id}, 404 when missing
    load_collection    → Collection for {collection_id}, 404 when missing
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from recipeshelf.config import settings
from recipeshelf.database import get_db_session
from recipeshelf.exceptions import NotFoundError, UnauthorizedError
from recipeshelf.models.collection import Collection
from recipeshelf.models.recipe import Recipe
from recipeshelf.models.user import User
from recipeshelf.services.collection_service import collection_service
from recipeshelf.services.recipe_service import recipe_service
from recipeshelf.services.user_service import user_service

logger = logging.getLogger(__name__)


def _header_user_id(request: Request) -> Optional[uuid.UUID]:
    raw = request.headers.get(settings.auth_header)
    if not raw:
        return None
    try:
        return uuid.UUID(raw.strip())
    except ValueError:
        raise UnauthorizedError(message=f"Malformed {settings.auth_header} header")


async def get_optional_user(
    request: Request,
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    user_id = _header_user_id(request)
    if user_id is None:
        return None
    try:
        return await user_service.get_user(db, user_id)
    except NotFoundError:
        logger.info("Unknown user id in %s header: %s", settings.auth_header, user_id)
        raise UnauthorizedError(message="Unknown user")


async def get_current_user(
    user: Optional[User] = Depends(get_optional_user),
) -> User:
    if user is None:
        raise UnauthorizedError()
    return user


async def load_recipe(
    recipe_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> Recipe:
    return await recipe_service.get_recipe(db, recipe_id)


async def load_collection(
    collection_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> Collection:
    return await collection_service.get_collection(db, collection_id)
