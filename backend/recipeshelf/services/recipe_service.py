"""
RecipeShelf Backend — Recipe Service (Business Logic Orchestrator)
===================================================================

What:  Create/edit/delete recipes, the listing queries, category and rating
       rollups, text search, and the explicit banner resolution step.
How:   Stateless; receives the request's AsyncSession on every call and only
       flushes (get_db_session commits). Models stay free of I/O: every
       projection-bound recipe returned from here has its banners attached.
Who:   Called by the recipe, collection and user routes.

Validation Flow (create/update):
    ┌────────────┐    ┌─────────────────┐    ┌──────────────┐    ┌─────────┐
    │  raw dict  │───▶│  RecipeCreate   │───▶│ images exist │───▶│  flush  │
    └────────────┘    │  (per-field     │    │ (one query)  │    └─────────┘
                      │   messages)     │    └──────────────┘
                      └─────────────────┘
    Both checks always run; their messages are merged into ONE
    ValidationError so the client sees every bad field at once.

Rating rollup:
    rate_recipe() records the rating only. update_rating() is the explicit
    recomputation: SELECT avg(rate_value), count(id) for the recipe.
"""

import logging
import uuid
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import String, cast, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from recipeshelf.database import execute_or_raise, flush_or_raise
from recipeshelf.exceptions import NotFoundError, ValidationError
from recipeshelf.models.collection import Collection
from recipeshelf.models.common import IdLike, as_uuid, ref
from recipeshelf.models.rating import Rating
from recipeshelf.models.recipe import Recipe
from recipeshelf.models.user import User
from recipeshelf.schemas.recipe import CategorySummary, RatingSummary, RecipeCreate
from recipeshelf.services.aggregation import group_categories
from recipeshelf.services.image_service import image_service

logger = logging.getLogger(__name__)

IMAGE_NOT_EXISTS = "Image not exists"

Page = Tuple[List[Recipe], int]


def _field_errors(exc: PydanticValidationError) -> Dict[str, str]:
    """First message per top-level field, e.g. {"servings": "Input should be ..."}."""
    errors: Dict[str, str] = {}
    for error in exc.errors():
        loc = error.get("loc") or ("__root__",)
        errors.setdefault(str(loc[0]), error.get("msg", "Invalid value"))
    return errors


def _raw_banner_ids(value: Any) -> List[uuid.UUID]:
    """Banner ids from an unvalidated payload; [] when they cannot be read."""
    if not isinstance(value, (list, tuple)):
        return []
    ids: List[uuid.UUID] = []
    for item in value:
        if isinstance(item, Mapping):
            item = item.get("id")
        try:
            ids.append(as_uuid(item))
        except (TypeError, ValueError, AttributeError):
            return []
    return ids


def _search_terms(query: str) -> List[str]:
    terms: List[str] = []
    for term in (query or "").lower().split():
        if term not in terms:
            terms.append(term)
    return terms


class RecipeService:
    """
    Business logic layer for recipe operations.

    Error Handling Strategy:
        Field problems → ValidationError (400) carrying `errors`
        Missing rows   → NotFoundError (404)
        Lost races     → ConflictError (409), via flush_or_raise
        Anything else from SQLAlchemy → PersistenceError (500)
    """

    # ══════════════════════════════════════════════════════════════════════
    # Create / Update / Delete
    # ══════════════════════════════════════════════════════════════════════

    async def _validate(self, db: AsyncSession, fields: Mapping[str, Any]) -> RecipeCreate:
        errors: Dict[str, str] = {}
        data: Optional[RecipeCreate] = None

        try:
            data = RecipeCreate.model_validate(dict(fields))
        except PydanticValidationError as e:
            errors.update(_field_errors(e))

        banner_ids = list(data.banners) if data else _raw_banner_ids(fields.get("banners"))
        if banner_ids and not await image_service.check_images_exist(db, banner_ids):
            errors.setdefault("banners", IMAGE_NOT_EXISTS)

        if errors:
            logger.info("Recipe rejected, invalid fields: %s", ", ".join(sorted(errors)))
            raise ValidationError(
                message=f"Recipe validation failed: {', '.join(sorted(errors))}",
                errors=errors,
            )
        return data

    @staticmethod
    def _apply(recipe: Recipe, data: RecipeCreate) -> None:
        recipe.name = data.name
        recipe.description = data.description
        recipe.status = data.status
        recipe.category = data.category
        recipe.servings = data.servings
        recipe.time = data.time
        recipe.tags = list(data.tags)
        recipe.banner_ids = [ref(image_id) for image_id in data.banners]
        recipe.ingredients = [item.model_dump() for item in data.ingredients]
        recipe.methods = list(data.methods)

    async def create_recipe(
        self,
        db: AsyncSession,
        owner: User,
        fields: Mapping[str, Any],
    ) -> Recipe:
        """
        Validate `fields` and insert a recipe owned by `owner`.

        Raises:
            ValidationError: one or more fields invalid, or a banner id
                             that names no stored image ("Image not exists")
        """
        data = await self._validate(db, fields)

        recipe = Recipe(created_by=owner.id)
        self._apply(recipe, data)
        db.add(recipe)
        await flush_or_raise(db, "recipe")
        logger.info("Recipe created: %s by user %s", recipe.id, owner.id)

        await self.resolve_banners(db, [recipe])
        return recipe

    async def update_recipe(
        self,
        db: AsyncSession,
        recipe: Recipe,
        fields: Mapping[str, Any],
    ) -> Recipe:
        """
        Full edit. Accepts the edit payload shape (banners as `{id, url}`).

        Owner, ratings and created_at are never touched.
        """
        data = await self._validate(db, fields)
        self._apply(recipe, data)
        await flush_or_raise(db, "recipe")
        logger.info("Recipe updated: %s", recipe.id)

        await self.resolve_banners(db, [recipe])
        return recipe

    async def delete_recipe(self, db: AsyncSession, recipe: Recipe) -> None:
        """
        Delete a recipe and every reference to it.

        Order: collection memberships, saved lists, ratings, the recipe.
        """
        recipe_ref = ref(recipe.id)
        needle = f'"{recipe_ref}"'

        collections = await execute_or_raise(
            db,
            select(Collection).where(cast(Collection.recipe_ids, String).contains(needle)),
            "collection",
        )
        for collection in collections.scalars().all():
            collection.remove_recipe(recipe_ref)

        users = await execute_or_raise(
            db,
            select(User).where(cast(User.saved_recipe_ids, String).contains(needle)),
            "user",
        )
        for user in users.scalars().all():
            user.unsave_recipe(recipe_ref)

        await execute_or_raise(db, delete(Rating).where(Rating.recipe_id == recipe.id), "rating")
        await db.delete(recipe)
        await flush_or_raise(db, "recipe")
        logger.info("Recipe deleted: %s", recipe_ref)

    # ══════════════════════════════════════════════════════════════════════
    # Lookup & reference resolution
    # ══════════════════════════════════════════════════════════════════════

    async def get_recipe(self, db: AsyncSession, recipe_id: IdLike) -> Recipe:
        """
        Query plan:
            SELECT * FROM recipes WHERE id = :uuid → PRIMARY KEY lookup
        """
        result = await execute_or_raise(
            db, select(Recipe).where(Recipe.id == as_uuid(recipe_id)), "recipe"
        )
        recipe = result.scalar_one_or_none()
        if recipe is None:
            raise NotFoundError(resource="recipe", resource_id=str(recipe_id))
        return recipe

    async def get_recipes(self, db: AsyncSession, recipe_ids: Iterable[IdLike]) -> List[Recipe]:
        """Recipes in the order of `recipe_ids`; ids with no row are skipped."""
        ids = [as_uuid(recipe_id) for recipe_id in recipe_ids]
        if not ids:
            return []
        result = await execute_or_raise(db, select(Recipe).where(Recipe.id.in_(ids)), "recipe")
        by_id = {recipe.id: recipe for recipe in result.scalars().all()}
        return [by_id[recipe_id] for recipe_id in ids if recipe_id in by_id]

    async def resolve_banners(self, db: AsyncSession, recipes: Sequence[Recipe]) -> List[Recipe]:
        """
        Attach banner images to every recipe with a single query.

        Banner order is kept; ids without a stored image are skipped.
        """
        recipes = list(recipes)
        wanted = [banner_id for recipe in recipes for banner_id in recipe.banner_ids]
        images = await image_service.get_images(db, wanted)
        for recipe in recipes:
            recipe.attach_banners(
                images[as_uuid(banner_id)]
                for banner_id in recipe.banner_ids
                if as_uuid(banner_id) in images
            )
        return recipes

    # ══════════════════════════════════════════════════════════════════════
    # Listings
    # ══════════════════════════════════════════════════════════════════════

    @staticmethod
    def _visibility(query, public_only: bool, viewer: Optional[User]):
        if not public_only:
            return query
        if viewer is None:
            return query.where(Recipe.status.is_(True))
        return query.where(or_(Recipe.status.is_(True), Recipe.created_by == viewer.id))

    async def _page(
        self,
        db: AsyncSession,
        query,
        limit: Optional[int],
        offset: int,
    ) -> Page:
        count = await execute_or_raise(
            db, select(func.count()).select_from(query.order_by(None).subquery()), "recipe"
        )
        total = count.scalar() or 0

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        result = await execute_or_raise(db, query, "recipe")
        recipes = list(result.scalars().all())
        await self.resolve_banners(db, recipes)
        return recipes, total

    async def get_new_recipes(
        self,
        db: AsyncSession,
        limit: Optional[int] = None,
        offset: int = 0,
        public_only: bool = False,
        viewer: Optional[User] = None,
    ) -> Page:
        """
        Recipes, newest first.

        Query plan:
            ORDER BY created_at DESC → idx_recipes_created_at
        """
        query = select(Recipe).order_by(Recipe.created_at.desc(), Recipe.id)
        return await self._page(db, self._visibility(query, public_only, viewer), limit, offset)

    async def get_high_rated_recipes(
        self,
        db: AsyncSession,
        limit: Optional[int] = None,
        offset: int = 0,
        public_only: bool = False,
        viewer: Optional[User] = None,
    ) -> Page:
        """Most-rated first; equal totals fall back to the higher average."""
        query = select(Recipe).order_by(
            Recipe.rating_total.desc(),
            Recipe.rating_avg.desc(),
            Recipe.created_at.desc(),
        )
        return await self._page(db, self._visibility(query, public_only, viewer), limit, offset)

    async def get_recipes_by_category(
        self,
        db: AsyncSession,
        category: str,
        limit: Optional[int] = None,
        offset: int = 0,
        public_only: bool = False,
        viewer: Optional[User] = None,
    ) -> Page:
        """Exact match on the stored (trimmed, lowercased) category."""
        query = (
            select(Recipe)
            .where(Recipe.category == (category or "").strip().lower())
            .order_by(Recipe.created_at.desc(), Recipe.id)
        )
        return await self._page(db, self._visibility(query, public_only, viewer), limit, offset)

    # ══════════════════════════════════════════════════════════════════════
    # Aggregations
    # ══════════════════════════════════════════════════════════════════════

    async def get_categories(
        self,
        db: AsyncSession,
        limit: Optional[int] = None,
    ) -> List[CategorySummary]:
        """
        Category rollup over public recipes.

        Each entry: `{name, total, image_url}`, where image_url is the first
        banner of the category's newest recipe. Ordered by total desc, then
        name asc. No limit returns every category.
        """
        if limit is not None and limit < 1:
            raise ValidationError(message="limit must be a positive integer", field="limit")

        rows = await execute_or_raise(
            db,
            select(Recipe.category, Recipe.banner_ids, Recipe.created_at).where(
                Recipe.status.is_(True),
                Recipe.category.is_not(None),
            ),
            "recipe",
        )
        groups = group_categories(rows.all(), limit=limit)

        images = await image_service.get_images(
            db, [group.image_id for group in groups if group.image_id]
        )
        summaries = []
        for group in groups:
            image = images.get(as_uuid(group.image_id)) if group.image_id else None
            summaries.append(
                CategorySummary(
                    name=group.name,
                    total=group.total,
                    image_url=image.url if image else "",
                )
            )
        return summaries

    async def rate_recipe(
        self,
        db: AsyncSession,
        recipe: Recipe,
        user: User,
        rate_value: int,
    ) -> Rating:
        """
        Record `user`'s rating of `recipe` and link it with add_rating().

        A second rating by the same user overwrites the value. The summary
        is NOT recomputed here; call update_rating() for that.
        """
        # bool is an int subclass; True must not count as a 1-star rating
        valid = isinstance(rate_value, int) and not isinstance(rate_value, bool)
        if not valid or not 1 <= rate_value <= 5:
            raise ValidationError(message="rate_value must be between 1 and 5", field="rate_value")

        result = await execute_or_raise(
            db,
            select(Rating).where(Rating.recipe_id == recipe.id, Rating.user_id == user.id),
            "rating",
        )
        rating = result.scalar_one_or_none()
        if rating is None:
            rating = Rating(recipe_id=recipe.id, user_id=user.id, rate_value=rate_value)
            db.add(rating)
        else:
            rating.rate_value = rate_value
        await flush_or_raise(db, "rating")

        recipe.add_rating(rating.id)
        await flush_or_raise(db, "recipe")
        logger.info("Recipe %s rated %d by user %s", recipe.id, rate_value, user.id)
        return rating

    async def update_rating(self, db: AsyncSession, recipe: Recipe) -> RatingSummary:
        """
        Recompute the `{avg, total}` summary from the ratings table.

        Query plan:
            SELECT avg(rate_value), count(id) FROM ratings WHERE recipe_id = :id
            → idx on ratings.recipe_id
        Zero ratings reset the summary to {avg: 0, total: 0}.
        """
        result = await execute_or_raise(
            db,
            select(func.avg(Rating.rate_value), func.count(Rating.id)).where(
                Rating.recipe_id == recipe.id
            ),
            "rating",
        )
        avg, total = result.one()
        summary = RatingSummary.from_aggregate(avg, total)

        recipe.apply_rating_summary(summary)
        await flush_or_raise(db, "recipe")
        logger.debug("Rating summary of %s: avg=%.2f total=%d", recipe.id, summary.avg, summary.total)
        return summary

    # ══════════════════════════════════════════════════════════════════════
    # Search
    # ══════════════════════════════════════════════════════════════════════

    async def search_recipes(
        self,
        db: AsyncSession,
        query: str,
        viewer: Optional[User] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Page:
        """
        Weighted text search over name, category, tags, ingredient text
        and description.

        Candidates come from one SQL query (any term inside the recipe's
        lowercased search_text, public recipes plus the viewer's own).
        Ranking uses Recipe.relevance() so the score follows
        Recipe.SEARCH_WEIGHTS; ties go to the newest recipe. Each hit keeps its score on `recipe.score`.
        """
        terms = _search_terms(query)
        if not terms:
            return [], 0

        # search_text and terms are both lowercased in Python.
        matches = [Recipe.search_text.contains(term, autoescape=True) for term in terms]
        statement = self._visibility(select(Recipe).where(or_(*matches)), True, viewer)
        result = await execute_or_raise(db, statement, "recipe")

        hits = []
        for recipe in result.scalars().all():
            recipe.score = recipe.relevance(terms)
            if recipe.score > 0:
                hits.append(recipe)
        hits.sort(key=lambda recipe: recipe.created_at, reverse=True)
        hits.sort(key=lambda recipe: recipe.score, reverse=True)

        total = len(hits)
        end = None if limit is None else offset + limit
        page = hits[offset:end]
        await self.resolve_banners(db, page)
        return page, total


# ── Singleton Instance ────────────────────────────────────────────────────
recipe_service = RecipeService()
