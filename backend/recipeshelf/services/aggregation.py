"""
RecipeShelf Backend — Category Rollup
======================================

Pure grouping of `(category, banner_ids, created_at)` rows into category
summaries. Kept free of I/O so it can be tested without a database;
RecipeService.get_categories() fetches the rows and resolves the images.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence


class CategoryRow(NamedTuple):
    category: Optional[str]
    banner_ids: Sequence[str]
    created_at: datetime


class CategoryGroup(NamedTuple):
    name: str
    total: int
    image_id: Optional[str]


def group_categories(
    rows: Iterable[Any],
    limit: Optional[int] = None,
) -> List[CategoryGroup]:
    """
    Group recipe rows by category.

    - total:    number of rows in the category
    - image_id: first banner of the most recently created row (None if it has none)
    - order:    total descending, then name ascending
    - limit:    None keeps every category; a positive int truncates

    Rows with an empty/None category are ignored.
    """
    groups: Dict[str, Dict[str, Any]] = {}
    for category, banner_ids, created_at in rows:
        if not category:
            continue
        group = groups.get(category)
        if group is None:
            group = groups[category] = {"total": 0, "newest": None, "image_id": None}
        group["total"] += 1
        if group["newest"] is None or created_at > group["newest"]:
            group["newest"] = created_at
            group["image_id"] = banner_ids[0] if banner_ids else None

    ordered = sorted(groups.items(), key=lambda item: (-item[1]["total"], item[0]))
    if limit is not None:
        ordered = ordered[:limit]
    return [
        CategoryGroup(name=name, total=group["total"], image_id=group["image_id"])
        for name, group in ordered
    ]
