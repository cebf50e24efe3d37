"""
RecipeShelf Backend — Recipe Schema Tests
==========================================

What:  Input normalisation and bounds of RecipeCreate/RatingCreate, and the
       RatingSummary aggregate mapping.
"""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from recipeshelf.schemas.recipe import RatingCreate, RatingSummary, RecipeCreate


def _payload(**overrides):
    payload = {
        "name": "  Green Curry ",
        "category": " Dinner ",
        "servings": 4,
        "banners": [str(uuid4())],
        "methods": ["Fry the paste", "Add coconut milk"],
    }
    payload.update(overrides)
    return payload


class TestRecipeCreate:

    def test_normalises_strings(self):
        data = RecipeCreate.model_validate(_payload(tags=[" Thai", "spicy", "thai ", ""]))
        assert data.name == "Green Curry"
        assert data.category == "dinner"
        assert data.tags == ["thai", "spicy"]
        assert data.status is True

    @pytest.mark.parametrize("count", [0, 5])
    def test_banner_count_bounds(self, count):
        with pytest.raises(ValidationError) as exc_info:
            RecipeCreate.model_validate(_payload(banners=[str(uuid4()) for _ in range(count)]))
        assert exc_info.value.errors()[0]["loc"][0] == "banners"

    def test_banner_objects_are_unwrapped(self):
        image_id = uuid4()
        data = RecipeCreate.model_validate(
            _payload(banners=[{"id": str(image_id), "url": "https://img.example.com/x.jpg"}])
        )
        assert data.banners == [image_id]

    @pytest.mark.parametrize("servings", [0, 17])
    def test_servings_bounds(self, servings):
        with pytest.raises(ValidationError):
            RecipeCreate.model_validate(_payload(servings=servings))

    @pytest.mark.parametrize("time", [0, 201])
    def test_time_bounds(self, time):
        with pytest.raises(ValidationError):
            RecipeCreate.model_validate(_payload(time=time))

    def test_time_is_optional(self):
        assert RecipeCreate.model_validate(_payload()).time is None

    def test_blank_method_step_rejected(self):
        with pytest.raises(ValidationError):
            RecipeCreate.model_validate(_payload(methods=["Fry", "   "]))


class TestRating:

    @pytest.mark.parametrize("value", [0, 6, True, "4"])
    def test_rate_value_bounds(self, value):
        with pytest.raises(ValidationError):
            RatingCreate(rate_value=value)

    def test_summary_from_empty_aggregate(self):
        assert RatingSummary.from_aggregate(None, 0) == RatingSummary(avg=0, total=0)

    def test_summary_from_aggregate(self):
        summary = RatingSummary.from_aggregate(4, 2)
        assert summary.avg == 4.0
        assert summary.total == 2
