"""Translate listing request arguments into a recipe query."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

SORT_NEWEST = "created_at"
SORT_POPULAR = "likes"


@dataclass(frozen=True)
class RecipeQuery:
    """Filter, sort and pagination criteria for listing recipes.

    Page and limit are used exactly as supplied; nothing is clamped.
    """

    page: int = 1
    limit: int = 10
    categories: tuple[str, ...] = ()
    search: Optional[str] = None
    ingredients: tuple[str, ...] = ()
    sort: str = SORT_NEWEST

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def build_recipe_query(args: Mapping[str, str], default_limit: int = 10) -> RecipeQuery:
    """Build a :class:`RecipeQuery` from listing request arguments."""

    page = _parse_int(args.get("page")) or 1
    limit = _parse_int(args.get("limit")) or default_limit

    categories: tuple[str, ...] = ()
    category = args.get("category")
    if category:
        categories = tuple(category.split(","))

    ingredients: tuple[str, ...] = ()
    raw_ingredients = args.get("ingredients")
    if raw_ingredients:
        ingredients = tuple(raw_ingredients.split(","))

    sort = SORT_POPULAR if args.get("popular") == "true" else SORT_NEWEST

    return RecipeQuery(
        page=page,
        limit=limit,
        categories=categories,
        search=args.get("search") or None,
        ingredients=ingredients,
        sort=sort,
    )


def _parse_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
