"""
RecipeShelf Backend — Recipe Route Handlers
============================================

What:  Recipe CRUD, listings, category rollup, search and rating.
How:   Thin handlers: resolve the caller, call RecipeService, project the
       result for that caller, wrap as `{recipes: [...]}` / `{recipe: {...}}`.

Route order matters: the fixed paths (/new, /top, /search, /categories)
are declared before /{recipe_id} so they are never parsed as an id.

Visibility:
    Listings and search only include public recipes plus the caller's own.
    A private recipe read by anyone but its owner → 403.
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from recipeshelf.config import settings
from recipeshelf.database import get_db_session
from recipeshelf.dependencies import get_current_user, get_optional_user, load_recipe
from recipeshelf.exceptions import ForbiddenError
from recipeshelf.models.recipe import Recipe
from recipeshelf.models.user import User
from recipeshelf.routes.envelope import wrap
from recipeshelf.schemas.common import ErrorResponse
from recipeshelf.schemas.recipe import RatingCreate, RatingResult
from recipeshelf.services.recipe_service import recipe_service


router = APIRouter(prefix="/api/recipes", tags=["Recipes"])

ERRORS = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    401: {"description": "Missing or unknown user", "model": ErrorResponse},
    403: {"description": "Not allowed", "model": ErrorResponse},
    404: {"description": "Recipe not found", "model": ErrorResponse},
    409: {"description": "Concurrent update", "model": ErrorResponse},
}


def _page_size(limit: Optional[int]) -> int:
    return limit or settings.page_size_default


def _ensure_owner(recipe: Recipe, user: User) -> None:
    if not recipe.is_created_by(user):
        raise ForbiddenError(
            message="You can only modify your own recipes",
            context={"recipe_id": str(recipe.id)},
        )


def _ensure_visible(recipe: Recipe, user: Optional[User]) -> None:
    if not recipe.is_visible_to(user):
        raise ForbiddenError(
            message="This recipe is private",
            context={"recipe_id": str(recipe.id)},
        )


def _thumbnails(response: Response, page, user: Optional[User]) -> Dict[str, Any]:
    recipes, total = page
    response.headers["X-Total-Count"] = str(total)
    return wrap([recipe.to_thumbnail_for(user) for recipe in recipes], "recipes")


# ══════════════════════════════════════════════════════════════════════════
# Create & listings
# ══════════════════════════════════════════════════════════════════════════


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    responses=ERRORS,
    summary="Create a recipe",
    description=(
        "Creates a recipe owned by the caller. Every invalid field is reported "
        "at once under details.errors; banners must name 1 to 4 registered images."
    ),
)
async def create_recipe(
    fields: Dict[str, Any] = Body(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    recipe = await recipe_service.create_recipe(db, user, fields)
    return wrap(recipe.to_json_for(user), "recipe")


@router.get("/new", summary="Newest recipes first")
async def list_new_recipes(
    response: Response,
    limit: Optional[int] = Query(default=None, ge=1, le=settings.page_size_max),
    offset: int = Query(default=0, ge=0),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    page = await recipe_service.get_new_recipes(
        db, limit=_page_size(limit), offset=offset, public_only=True, viewer=user
    )
    return _thumbnails(response, page, user)


@router.get("/top", summary="Most-rated recipes first")
async def list_high_rated_recipes(
    response: Response,
    limit: Optional[int] = Query(default=None, ge=1, le=settings.page_size_max),
    offset: int = Query(default=0, ge=0),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    page = await recipe_service.get_high_rated_recipes(
        db, limit=_page_size(limit), offset=offset, public_only=True, viewer=user
    )
    return _thumbnails(response, page, user)


@router.get(
    "/search",
    summary="Weighted text search",
    description=(
        "Matches any query term in name, category, tags, ingredients or "
        "description. Results are ordered by relevance; the score is not returned."
    ),
)
async def search_recipes(
    response: Response,
    q: str = Query(min_length=1, max_length=200),
    limit: Optional[int] = Query(default=None, ge=1, le=settings.page_size_max),
    offset: int = Query(default=0, ge=0),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    recipes, total = await recipe_service.search_recipes(
        db, q, viewer=user, limit=_page_size(limit), offset=offset
    )
    response.headers["X-Total-Count"] = str(total)
    return wrap([recipe.to_search_result_for(user) for recipe in recipes], "recipes")


@router.get(
    "/categories",
    summary="Category rollup over public recipes",
    description="One entry per category: name, number of public recipes, and an image.",
)
async def list_categories(
    limit: Optional[int] = Query(default=None, ge=1),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    return wrap(await recipe_service.get_categories(db, limit=limit), "categories")


@router.get("/categories/{category}", summary="Recipes in one category")
async def list_recipes_by_category(
    category: str,
    response: Response,
    limit: Optional[int] = Query(default=None, ge=1, le=settings.page_size_max),
    offset: int = Query(default=0, ge=0),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    page = await recipe_service.get_recipes_by_category(
        db, category, limit=_page_size(limit), offset=offset, public_only=True, viewer=user
    )
    return _thumbnails(response, page, user)


# ══════════════════════════════════════════════════════════════════════════
# Single recipe
# ══════════════════════════════════════════════════════════════════════════


@router.get("/{recipe_id}", responses=ERRORS, summary="Get a recipe")
async def get_recipe(
    recipe: Recipe = Depends(load_recipe),
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    _ensure_visible(recipe, user)
    await recipe_service.resolve_banners(db, [recipe])
    view = recipe.to_json_for(user) if user is not None else recipe.to_json()
    return wrap(view, "recipe")


@router.get(
    "/{recipe_id}/edit",
    responses=ERRORS,
    summary="Get the edit payload of a recipe",
    description="Banners come back as {id, url}; the payload can be sent back unchanged to PUT.",
)
async def get_recipe_for_edit(
    recipe: Recipe = Depends(load_recipe),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    _ensure_owner(recipe, user)
    await recipe_service.resolve_banners(db, [recipe])
    return wrap(recipe.to_edit_obj(), "recipe")


@router.put("/{recipe_id}", responses=ERRORS, summary="Replace a recipe's content")
async def update_recipe(
    fields: Dict[str, Any] = Body(...),
    recipe: Recipe = Depends(load_recipe),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    _ensure_owner(recipe, user)
    recipe = await recipe_service.update_recipe(db, recipe, fields)
    return wrap(recipe.to_json_for(user), "recipe")


@router.delete(
    "/{recipe_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=ERRORS,
    summary="Delete a recipe",
    description="Also removes it from every collection and saved list, and drops its ratings.",
)
async def delete_recipe(
    recipe: Recipe = Depends(load_recipe),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    _ensure_owner(recipe, user)
    await recipe_service.delete_recipe(db, recipe)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{recipe_id}/ratings",
    status_code=status.HTTP_201_CREATED,
    responses=ERRORS,
    summary="Rate a recipe (1-5)",
    description="Rating again replaces the caller's previous value. Returns the new summary.",
)
async def rate_recipe(
    body: RatingCreate,
    recipe: Recipe = Depends(load_recipe),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Dict[str, Any]:
    _ensure_visible(recipe, user)
    rating = await recipe_service.rate_recipe(db, recipe, user, body.rate_value)
    summary = await recipe_service.update_rating(db, recipe)
    result = RatingResult(
        id=rating.id,
        recipe_id=recipe.id,
        rate_value=rating.rate_value,
        summary=summary,
    )
    return wrap(result, "rating")
