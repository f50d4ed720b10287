"""Tests for turning listing arguments into a recipe query."""
from __future__ import annotations

from werkzeug.datastructures import MultiDict

from catalog.models import PaginatedResult
from catalog.query import SORT_NEWEST, SORT_POPULAR, RecipeQuery, build_recipe_query


def test_defaults() -> None:
    query = build_recipe_query(MultiDict(), default_limit=10)

    assert query == RecipeQuery(page=1, limit=10, sort=SORT_NEWEST)
    assert query.offset == 0


def test_category_and_search() -> None:
    query = build_recipe_query(MultiDict({"category": "a,b", "search": "soup"}))

    assert query.categories == ("a", "b")
    assert query.search == "soup"
    assert query.sort == SORT_NEWEST


def test_popular_only_when_literally_true() -> None:
    assert build_recipe_query({"popular": "true"}).sort == SORT_POPULAR
    assert build_recipe_query({"popular": "1"}).sort == SORT_NEWEST
    assert build_recipe_query({"popular": "True"}).sort == SORT_NEWEST


def test_ingredients_split_on_commas() -> None:
    query = build_recipe_query({"ingredients": "telur,nasi"})

    assert query.ingredients == ("telur", "nasi")


def test_zero_or_garbage_page_and_limit_fall_back_to_defaults() -> None:
    query = build_recipe_query({"page": "0", "limit": "abc"}, default_limit=12)

    assert query.page == 1
    assert query.limit == 12


def test_page_and_limit_are_not_clamped() -> None:
    query = build_recipe_query({"page": "-2", "limit": "500"})

    assert query.page == -2
    assert query.limit == 500
    assert query.offset == -1500


def test_offset_follows_page_and_limit() -> None:
    assert build_recipe_query({"page": "3", "limit": "5"}).offset == 10


def test_total_pages_rounds_up() -> None:
    assert PaginatedResult(items=[], total=11, page=1, limit=5).total_pages == 3
    assert PaginatedResult(items=[], total=10, page=1, limit=5).total_pages == 2
    assert PaginatedResult(items=[], total=0, page=1, limit=5).total_pages == 0
