"""
RecipeShelf Backend — Recipe Service Tests
===========================================

What:  RecipeService against a real (in-memory SQLite) database, plus the
       error translation paths with a mocked session.

What we test:
    ✅ Create succeeds with 1-4 existing images; image_url = first banner
    ✅ 0 / 5 banners and unknown images → one ValidationError listing fields
    ✅ Rating rollup: [3, 5] → {avg 4, total 2}; re-rating replaces; zero → {0, 0}
    ✅ High-rated ordering: total desc, then avg desc
    ✅ Category rollup counts public recipes only
    ✅ Search ranks by weight and respects visibility
    ✅ Delete removes memberships, saved entries and ratings
    ✅ SQLAlchemy failures become PersistenceError / ConflictError
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from recipeshelf.exceptions import (
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from recipeshelf.models.collection import Collection
from recipeshelf.models.rating import Rating
from recipeshelf.models.recipe import Recipe
from recipeshelf.schemas.recipe import RatingSummary
from recipeshelf.services.collection_service import collection_service
from recipeshelf.services.recipe_service import RecipeService
from recipeshelf.services.user_service import user_service


class TestCreateRecipe:

    def setup_method(self):
        self.service = RecipeService()

    @pytest.mark.asyncio
    async def test_create_success(self, db_session, make_user, make_image, recipe_fields):
        owner = await make_user()
        first = await make_image("https://img.example.com/first.jpg")
        second = await make_image()

        recipe = await self.service.create_recipe(db_session, owner, recipe_fields([first, second]))

        assert recipe.id is not None
        assert recipe.image_url == "https://img.example.com/first.jpg"
        assert recipe.category == "breakfast"
        assert recipe.tags == ["eggs", "tomato"]
        assert recipe.banner_ids == [str(first.id), str(second.id)]
        assert recipe.is_created_by(owner)
        assert recipe.rating == RatingSummary(avg=0, total=0)

    @pytest.mark.asyncio
    async def test_four_banners_allowed(self, db_session, make_user, make_image, recipe_fields):
        owner = await make_user()
        images = [await make_image() for _ in range(4)]
        recipe = await self.service.create_recipe(db_session, owner, recipe_fields(images))
        assert len(recipe.banner_images) == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("count", [0, 5])
    async def test_banner_count_rejected(
        self, db_session, make_user, make_image, recipe_fields, count
    ):
        owner = await make_user()
        images = [await make_image() for _ in range(count)]

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_recipe(db_session, owner, recipe_fields(images))

        assert "banners" in exc_info.value.errors

    @pytest.mark.asyncio
    async def test_unknown_image_rejected(self, db_session, make_user, recipe_fields):
        owner = await make_user()

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_recipe(db_session, owner, recipe_fields([uuid4()]))

        assert exc_info.value.errors == {"banners": "Image not exists"}

    @pytest.mark.asyncio
    async def test_all_invalid_fields_reported_together(self, db_session, make_user, recipe_fields):
        owner = await make_user()
        fields = recipe_fields([uuid4()], servings=40, name="")

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_recipe(db_session, owner, fields)

        assert set(exc_info.value.errors) == {"banners", "servings", "name"}
        assert exc_info.value.errors["banners"] == "Image not exists"

    @pytest.mark.asyncio
    async def test_update_accepts_edit_payload(
        self, db_session, make_user, make_image, recipe_fields
    ):
        owner = await make_user()
        image = await make_image()
        recipe = await self.service.create_recipe(db_session, owner, recipe_fields([image]))

        payload = recipe.to_edit_obj().model_dump(mode="json")
        payload["name"] = "Green Shakshuka"
        updated = await self.service.update_recipe(db_session, recipe, payload)

        assert updated.name == "Green Shakshuka"
        assert updated.banner_ids == [str(image.id)]
        assert updated.is_created_by(owner)


class TestRatings:

    def setup_method(self):
        self.service = RecipeService()

    @pytest.mark.asyncio
    async def test_update_rating_average(self, db_session, make_user, make_recipe):
        recipe = await make_recipe()
        for value in (3, 5):
            await self.service.rate_recipe(db_session, recipe, await make_user(), value)

        summary = await self.service.update_rating(db_session, recipe)

        assert summary == RatingSummary(avg=4, total=2)
        assert recipe.rating_avg == 4
        assert recipe.rating_total == 2
        assert len(recipe.rating_ids) == 2

    @pytest.mark.asyncio
    async def test_rate_recipe_does_not_recompute(self, db_session, make_user, make_recipe):
        recipe = await make_recipe()
        await self.service.rate_recipe(db_session, recipe, await make_user(), 5)
        assert recipe.rating_total == 0

    @pytest.mark.asyncio
    async def test_rerating_replaces_value(self, db_session, make_user, make_recipe):
        recipe = await make_recipe()
        rater = await make_user()

        first = await self.service.rate_recipe(db_session, recipe, rater, 2)
        second = await self.service.rate_recipe(db_session, recipe, rater, 4)
        summary = await self.service.update_rating(db_session, recipe)

        assert first.id == second.id
        assert recipe.rating_ids == [str(first.id)]
        assert summary == RatingSummary(avg=4, total=1)

    @pytest.mark.asyncio
    async def test_zero_ratings_reset_summary(self, db_session, make_recipe):
        recipe = await make_recipe(rating_avg=3.5, rating_total=2)
        summary = await self.service.update_rating(db_session, recipe)
        assert summary == RatingSummary(avg=0, total=0)
        assert recipe.rating_total == 0

    @pytest.mark.asyncio
    async def test_out_of_range_value_rejected(self, db_session, make_user, make_recipe):
        recipe = await make_recipe()
        with pytest.raises(ValidationError):
            await self.service.rate_recipe(db_session, recipe, await make_user(), 6)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [True, False])
    async def test_boolean_value_rejected(self, db_session, make_user, make_recipe, value):
        recipe = await make_recipe()
        with pytest.raises(ValidationError):
            await self.service.rate_recipe(db_session, recipe, await make_user(), value)
        assert recipe.rating_ids == []


class TestListings:

    def setup_method(self):
        self.service = RecipeService()

    @pytest.mark.asyncio
    async def test_high_rated_ordering(self, db_session, make_recipe):
        few_great = await make_recipe(name="few-great", rating_total=2, rating_avg=5.0)
        many_ok = await make_recipe(name="many-ok", rating_total=5, rating_avg=2.0)
        many_good = await make_recipe(name="many-good", rating_total=5, rating_avg=4.0)

        recipes, total = await self.service.get_high_rated_recipes(db_session)

        assert [r.id for r in recipes] == [many_good.id, many_ok.id, few_great.id]
        assert total == 3

    @pytest.mark.asyncio
    async def test_new_recipes_newest_first_with_paging(self, db_session, make_recipe):
        old = await make_recipe(name="old", age=30)
        new = await make_recipe(name="new", age=0)
        middle = await make_recipe(name="middle", age=10)

        recipes, total = await self.service.get_new_recipes(db_session)
        assert [r.id for r in recipes] == [new.id, middle.id, old.id]

        page, total = await self.service.get_new_recipes(db_session, limit=1, offset=1)
        assert [r.id for r in page] == [middle.id]
        assert total == 3
        assert page[0].banners_resolved

    @pytest.mark.asyncio
    async def test_public_only_listing_hides_other_users_private(
        self, db_session, make_user, make_recipe
    ):
        owner = await make_user()
        await make_recipe(owner=owner, status=False)
        await make_recipe()

        _, anonymous_total = await self.service.get_new_recipes(db_session, public_only=True)
        _, owner_total = await self.service.get_new_recipes(
            db_session, public_only=True, viewer=owner
        )

        assert anonymous_total == 1
        assert owner_total == 2

    @pytest.mark.asyncio
    async def test_by_category_normalises_input(self, db_session, make_recipe):
        await make_recipe(category="dessert")
        await make_recipe(category="breakfast")

        recipes, total = await self.service.get_recipes_by_category(db_session, "  Dessert ")

        assert total == 1
        assert recipes[0].category == "dessert"


class TestCategories:

    def setup_method(self):
        self.service = RecipeService()

    @pytest.mark.asyncio
    async def test_public_recipes_only(self, db_session, make_image, make_recipe):
        newest_image = await make_image("https://img.example.com/newest.jpg")
        await make_recipe(category="breakfast", age=60)
        await make_recipe(category="breakfast", age=0, images=[newest_image])
        await make_recipe(category="dinner")
        await make_recipe(category="secret", status=False)

        categories = await self.service.get_categories(db_session)

        assert [(c.name, c.total) for c in categories] == [("breakfast", 2), ("dinner", 1)]
        assert categories[0].image_url == "https://img.example.com/newest.jpg"

    @pytest.mark.asyncio
    async def test_explicit_limit_truncates(self, db_session, make_recipe):
        for category in ("a", "b", "c"):
            await make_recipe(category=category)

        assert len(await self.service.get_categories(db_session)) == 3
        assert len(await self.service.get_categories(db_session, limit=2)) == 2


class TestSearch:

    def setup_method(self):
        self.service = RecipeService()

    @pytest.mark.asyncio
    async def test_ranked_by_field_weight(self, db_session, make_recipe):
        by_description = await make_recipe(name="Pasta", description="with tomato sauce")
        by_name = await make_recipe(name="Tomato soup", description="")
        await make_recipe(name="Waffles", description="")

        recipes, total = await self.service.search_recipes(db_session, "TOMATO")

        assert [r.id for r in recipes] == [by_name.id, by_description.id]
        assert total == 2
        assert recipes[0].score > recipes[1].score

    @pytest.mark.asyncio
    async def test_matches_tags_and_ingredients(self, db_session, make_recipe):
        tagged = await make_recipe(name="Salad", tags=["vegan"])
        with_basil = await make_recipe(
            name="Pesto", ingredients=[{"quantity": "1 bunch", "ingredient": "basil"}]
        )

        assert [r.id for r in (await self.service.search_recipes(db_session, "vegan"))[0]] == [tagged.id]
        assert [r.id for r in (await self.service.search_recipes(db_session, "basil"))[0]] == [with_basil.id]

    @pytest.mark.asyncio
    async def test_matches_accented_tags_and_ingredients(self, db_session, make_recipe):
        dessert = await make_recipe(name="Dessert", tags=["crème"])
        salsa = await make_recipe(
            name="Salsa", ingredients=[{"quantity": "2", "ingredient": "Jalapeño"}]
        )

        recipes, total = await self.service.search_recipes(db_session, "Crème")
        assert [r.id for r in recipes] == [dessert.id]
        assert total == 1
        assert recipes[0].score == 6

        recipes, _ = await self.service.search_recipes(db_session, "jalapeño")
        assert [r.id for r in recipes] == [salsa.id]

    @pytest.mark.asyncio
    async def test_edited_tags_are_searchable(self, db_session, make_recipe):
        recipe = await make_recipe(name="Stew", tags=["winter"])
        recipe.tags = ["smørrebrød"]
        await db_session.flush()

        assert (await self.service.search_recipes(db_session, "winter"))[0] == []
        hits, _ = await self.service.search_recipes(db_session, "smørrebrød")
        assert [r.id for r in hits] == [recipe.id]

    @pytest.mark.asyncio
    async def test_private_recipes_only_for_owner(self, db_session, make_user, make_recipe):
        owner = await make_user()
        await make_recipe(owner=owner, name="Secret stew", status=False)

        anonymous, _ = await self.service.search_recipes(db_session, "stew")
        stranger, _ = await self.service.search_recipes(db_session, "stew", viewer=await make_user())
        own, _ = await self.service.search_recipes(db_session, "stew", viewer=owner)

        assert anonymous == []
        assert stranger == []
        assert len(own) == 1

    @pytest.mark.asyncio
    async def test_blank_query(self, db_session):
        assert await self.service.search_recipes(db_session, "   ") == ([], 0)


class TestDeleteRecipe:

    def setup_method(self):
        self.service = RecipeService()

    @pytest.mark.asyncio
    async def test_cascade(self, db_session, make_user, make_recipe):
        owner = await make_user()
        fan = await make_user()
        recipe = await make_recipe(owner=owner)
        keeper = await make_recipe(owner=owner)

        collection = await collection_service.create_collection(db_session, fan, "Favourites")
        await collection_service.add_recipe(db_session, collection, recipe)
        await collection_service.add_recipe(db_session, collection, keeper)
        await user_service.save_recipe(db_session, fan, recipe)
        await self.service.rate_recipe(db_session, recipe, fan, 5)

        await self.service.delete_recipe(db_session, recipe)

        assert collection.recipe_ids == [str(keeper.id)]
        assert fan.saved_recipe_ids == []
        count = await db_session.execute(select(func.count(Rating.id)))
        assert count.scalar() == 0
        assert await db_session.get(Recipe, recipe.id) is None


class TestErrorTranslation:

    def setup_method(self):
        self.service = RecipeService()

    @pytest.mark.asyncio
    async def test_get_recipe_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_recipe(db_session, uuid4())

    @pytest.mark.asyncio
    async def test_query_failure_becomes_persistence_error(self, mock_db_session):
        mock_db_session.execute.side_effect = OperationalError("SELECT", {}, Exception("gone"))
        with pytest.raises(PersistenceError):
            await self.service.get_recipe(mock_db_session, uuid4())

    @pytest.mark.asyncio
    async def test_stale_flush_becomes_conflict(self, mock_db_session):
        mock_db_session.flush.side_effect = StaleDataError("version mismatch")
        collection = Collection(id=uuid4(), name="Weeknight", created_by=uuid4())

        with pytest.raises(ConflictError):
            await collection_service.add_recipe(mock_db_session, collection, MagicMock(id=uuid4()))
