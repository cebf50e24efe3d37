"""
RecipeShelf Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Environment is pointed at SQLite before any application import, so
       the module-level engine never targets a real server.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session for error-path tests
    ├── db_session:      real AsyncSession on a fresh in-memory SQLite database
    ├── make_user / make_image / make_recipe: factories bound to db_session
    └── test_client:     HTTPX AsyncClient sharing db_session with the app
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"

from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Any, Dict, Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from recipeshelf.database import Base  # noqa: E402
from recipeshelf.models.collection import Collection  # noqa: E402,F401
from recipeshelf.models.image import Image  # noqa: E402
from recipeshelf.models.rating import Rating  # noqa: E402,F401
from recipeshelf.models.recipe import Recipe  # noqa: E402
from recipeshelf.models.user import User  # noqa: E402

BASE_TIME = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


# ══════════════════════════════════════════════════════════════════════════
# Sessions
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = None
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_session():
    """
    AsyncSession on a private in-memory SQLite database with all tables.

    StaticPool keeps one connection, so every statement sees the same
    in-memory database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


# ══════════════════════════════════════════════════════════════════════════
# Factories
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session):
    async def _make_user(username: Optional[str] = None, role: str = "user") -> User:
        user = User(username=username or f"cook_{uuid4().hex[:8]}", role=role)
        db_session.add(user)
        await db_session.flush()
        return user

    return _make_user


@pytest.fixture
def make_image(db_session):
    async def _make_image(url: Optional[str] = None) -> Image:
        public_id = f"recipes/{uuid4().hex[:12]}"
        image = Image(public_id=public_id, url=url or f"https://img.example.com/{public_id}.jpg")
        db_session.add(image)
        await db_session.flush()
        return image

    return _make_image


@pytest.fixture
def recipe_fields():
    """Valid create payload; banner ids are filled in by the test."""

    def _fields(banners, **overrides: Any) -> Dict[str, Any]:
        fields = {
            "name": "Shakshuka",
            "description": "Eggs poached in a spiced tomato sauce",
            "status": True,
            "category": "Breakfast",
            "servings": 2,
            "time": 30,
            "tags": ["Eggs", "tomato", "eggs "],
            "banners": [str(getattr(b, "id", b)) for b in banners],
            "ingredients": [
                {"quantity": "4", "ingredient": "eggs"},
                {"quantity": "400 g", "ingredient": "crushed tomatoes"},
            ],
            "methods": ["Simmer the sauce", "Crack in the eggs", "Cover and cook"],
        }
        fields.update(overrides)
        return fields

    return _fields


@pytest.fixture
def make_recipe(db_session, make_user, make_image):
    """
    Insert a recipe directly (bypassing validation) for listing/rollup tests.

    `age` shifts created_at into the past so ordering is deterministic.
    """

    async def _make_recipe(
        owner: Optional[User] = None,
        images=None,
        age: int = 0,
        **fields: Any,
    ) -> Recipe:
        owner = owner or await make_user()
        if images is None:
            images = [await make_image()]
        values = {
            "name": "Pancakes",
            "category": "breakfast",
            "servings": 4,
            "methods": ["Mix", "Fry"],
        }
        values.update(fields)
        recipe = Recipe(
            created_by=owner.id,
            banner_ids=[str(image.id) for image in images],
            created_at=BASE_TIME - timedelta(minutes=age),
            **values,
        )
        db_session.add(recipe)
        await db_session.flush()
        return recipe

    return _make_recipe


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_session):
    """
    HTTPX AsyncClient talking to the app in-process.

    get_db_session is overridden to hand out the test's db_session, so rows
    created by factories are visible to the routes and vice versa.
    """
    from recipeshelf.database import get_db_session
    from recipeshelf.main import app

    async def _session_override():
        yield db_session

    app.dependency_overrides[get_db_session] = _session_override
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth():
    """Headers the upstream auth layer would set for `user`."""

    def _auth(user: User) -> Dict[str, str]:
        return {"X-User-Id": str(user.id)}

    return _auth
