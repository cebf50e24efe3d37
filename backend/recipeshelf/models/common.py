"""
RecipeShelf Backend — Shared Column Types and Helpers
======================================================

Reference lists (banner ids, rating ids, member recipe ids, saved recipes)
are stored as JSON arrays of id strings. `MutableJSONList` makes in-place
`append`/`remove` on those lists visible to the unit of work, so the model
methods can mutate them directly and a later flush persists the change.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Union

from sqlalchemy import JSON
from sqlalchemy.ext.mutable import MutableList

MutableJSONList = MutableList.as_mutable(JSON)

IdLike = Union[uuid.UUID, str]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ref(value: Any) -> str:
    """Canonical string form of an id (or of an object carrying `.id`)."""
    value = getattr(value, "id", value)
    if isinstance(value, uuid.UUID):
        return str(value)
    return str(uuid.UUID(str(value)))


def as_uuid(value: IdLike) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))
