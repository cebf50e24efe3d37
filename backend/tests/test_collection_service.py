"""
RecipeShelf Backend — Collection Tests
=======================================

What:  Collection membership (model + service), the two-step creation, the
       detail view and edit permissions.
"""

from datetime import datetime
from uuid import uuid4

import pytest

from recipeshelf.exceptions import ForbiddenError, ValidationError
from recipeshelf.models.collection import Collection
from recipeshelf.services.collection_service import CollectionService


class TestCollectionModel:

    def test_add_and_remove_are_idempotent(self):
        collection = Collection(id=uuid4(), name="Weeknight", created_by=uuid4())
        r1, r2 = uuid4(), uuid4()

        collection.add_recipe(r1).add_recipe(r2).add_recipe(r1)
        assert collection.recipe_ids == [str(r1), str(r2)]

        collection.remove_recipe(r1).remove_recipe(r1)
        assert collection.recipe_ids == [str(r2)]

    def test_view_lists_member_ids(self):
        collection = Collection(
            id=uuid4(), name="Weeknight", created_by=uuid4(), created_at=datetime(2024, 1, 1)
        )
        member = uuid4()
        collection.add_recipe(member)
        assert collection.to_view().recipes == [member]


class TestCollectionService:

    def setup_method(self):
        self.service = CollectionService()

    @pytest.mark.asyncio
    async def test_weeknight_scenario(self, db_session, make_user, make_recipe):
        owner = await make_user()
        r1 = await make_recipe()

        collection = await self.service.create_collection(db_session, owner, "Weeknight")
        assert owner.collection_ids == [str(collection.id)]
        assert collection.recipe_ids == []

        await self.service.add_recipe(db_session, collection, r1)
        await self.service.add_recipe(db_session, collection, r1)
        assert collection.recipe_ids == [str(r1.id)]

        await self.service.remove_recipe(db_session, collection, r1.id)
        await self.service.remove_recipe(db_session, collection, r1.id)
        assert collection.recipe_ids == []

    @pytest.mark.asyncio
    async def test_blank_name_rejected(self, db_session, make_user):
        with pytest.raises(ValidationError):
            await self.service.create_collection(db_session, await make_user(), "   ")

    @pytest.mark.asyncio
    async def test_rename(self, db_session, make_user):
        owner = await make_user()
        collection = await self.service.create_collection(db_session, owner, "Weeknight")
        await self.service.rename_collection(db_session, collection, " Quick dinners ")
        assert collection.name == "Quick dinners"

    @pytest.mark.asyncio
    async def test_detail_resolves_members_in_order(
        self, db_session, make_user, make_image, make_recipe
    ):
        owner = await make_user()
        viewer = await make_user()
        image = await make_image("https://img.example.com/soup.jpg")
        soup = await make_recipe(name="Soup", images=[image])
        bread = await make_recipe(name="Bread", owner=viewer)

        collection = await self.service.create_collection(db_session, owner, "Weeknight")
        await self.service.add_recipe(db_session, collection, soup)
        collection.add_recipe(uuid4())
        await self.service.add_recipe(db_session, collection, bread)
        viewer.save_recipe(soup.id)

        detail = await self.service.get_collection_detail(db_session, collection, viewer)

        assert [card.name for card in detail.recipes] == ["Soup", "Bread"]
        assert detail.recipes[0].image_url == "https://img.example.com/soup.jpg"
        assert detail.recipes[0].saved_by_user is True
        assert detail.recipes[1].created_by_user is True
        assert detail.created_by_user is False

    @pytest.mark.asyncio
    async def test_only_owner_or_admin_may_edit(self, db_session, make_user):
        owner = await make_user()
        stranger = await make_user()
        admin = await make_user(role="admin")
        collection = await self.service.create_collection(db_session, owner, "Weeknight")

        self.service.ensure_can_edit(owner, collection)
        self.service.ensure_can_edit(admin, collection)
        with pytest.raises(ForbiddenError):
            self.service.ensure_can_edit(stranger, collection)
