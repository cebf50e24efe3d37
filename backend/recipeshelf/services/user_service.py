"""
RecipeShelf Backend — User Service
===================================

What:  Profile creation/lookup and the saved-recipes list.
Who:   dependencies.get_current_user (lookup) and the /api/users routes.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from recipeshelf.database import execute_or_raise, flush_or_raise
from recipeshelf.exceptions import NotFoundError, PersistenceError, ValidationError
from recipeshelf.models.common import IdLike, as_uuid
from recipeshelf.models.recipe import Recipe
from recipeshelf.models.user import ROLE_USER, User

logger = logging.getLogger(__name__)


class UserService:

    async def create_user(self, db: AsyncSession, username: str, role: str = ROLE_USER) -> User:
        existing = await execute_or_raise(
            db, select(User.id).where(User.username == username), "user"
        )
        if existing.scalar_one_or_none() is not None:
            raise ValidationError(message="Username is already taken", field="username")

        user = User(username=username, role=role)
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            # concurrent signup with the same name
            raise ValidationError(message="Username is already taken", field="username") from e
        except SQLAlchemyError as e:
            logger.error("Database error while saving user: %s", str(e), exc_info=True)
            raise PersistenceError(context={"resource": "user", "error_type": type(e).__name__}) from e
        logger.info("User created: %s (%s)", user.id, username)
        return user

    async def get_user(self, db: AsyncSession, user_id: IdLike) -> User:
        result = await execute_or_raise(
            db, select(User).where(User.id == as_uuid(user_id)), "user"
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return user

    async def save_recipe(self, db: AsyncSession, user: User, recipe: Recipe) -> User:
        user.save_recipe(recipe.id)
        await flush_or_raise(db, "user")
        return user

    async def unsave_recipe(self, db: AsyncSession, user: User, recipe_id: IdLike) -> User:
        user.unsave_recipe(recipe_id)
        await flush_or_raise(db, "user")
        return user


user_service = UserService()
