"""
RecipeShelf Backend — Application Package Initializer
======================================================

What: Marks the `recipeshelf` directory as a Python package.
Who:  Imported by uvicorn (`recipeshelf.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Dependencies (user, preloaders)   │  ← current user, path lookups
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← queries, rollups, resolution
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← ORM aggregates + Pydantic views
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Async SQLAlchemy sessions
    └─────────────────────────────────────┘

    Models never perform I/O. Anything that has to be loaded (banner images,
    collection members) is resolved by a service before a projection runs.
"""

__version__ = "1.0.0"
