"""Shared fixtures: an in-memory repository and stub external services."""
from __future__ import annotations

import copy
import itertools
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, Iterator, List, Optional, Sequence, Set, Tuple

import pytest

from catalog.models import (
    LikeDrift,
    Nutrition,
    PaginatedResult,
    Recipe,
    RecipeFields,
    RecipeSummary,
)
from catalog.query import SORT_POPULAR, RecipeQuery
from catalog.repository import Relation
from catalog.service import RecipeService
from catalog.services import IngredientNormalizer, NutritionResolver
from catalog.social import SocialService


class _State:
    def __init__(self) -> None:
        self.recipes: Dict[int, Recipe] = {}
        self.nutrition: Dict[int, Nutrition] = {}
        self.relations: Dict[Relation, Set[Tuple[int, str]]] = {
            Relation.LIKE: set(),
            Relation.SAVE: set(),
        }


class InMemoryTransaction:
    def __init__(self, state: _State, ids: Iterator[int], failures: Set[str]) -> None:
        self._state = state
        self._ids = ids
        self._failures = failures

    def _maybe_fail(self, operation: str) -> None:
        if operation in self._failures:
            raise RuntimeError(f"storage failure during {operation}")

    def lock_recipe(self, recipe_id: int) -> Optional[Recipe]:
        return self._state.recipes.get(recipe_id)

    def insert_recipe(self, recipe: Recipe) -> int:
        self._maybe_fail("insert_recipe")
        recipe_id = next(self._ids)
        created_at = datetime(2024, 1, 1) + timedelta(minutes=recipe_id)
        self._state.recipes[recipe_id] = replace(
            recipe, id=recipe_id, likes=0, created_at=created_at
        )
        return recipe_id

    def update_recipe(self, recipe: Recipe) -> None:
        self._maybe_fail("update_recipe")
        stored = self._state.recipes[recipe.id]
        self._state.recipes[recipe.id] = replace(recipe, likes=stored.likes)

    def delete_recipe(self, recipe_id: int) -> None:
        self._maybe_fail("delete_recipe")
        self._state.recipes.pop(recipe_id, None)

    def upsert_nutrition(self, nutrition: Nutrition) -> None:
        self._maybe_fail("upsert_nutrition")
        self._state.nutrition[nutrition.recipe_id] = nutrition

    def delete_nutrition(self, recipe_id: int) -> None:
        self._state.nutrition.pop(recipe_id, None)

    def has_relation(self, relation: Relation, recipe_id: int, user_id: str) -> bool:
        return (recipe_id, user_id) in self._state.relations[relation]

    def add_relation(self, relation: Relation, recipe_id: int, user_id: str) -> None:
        pairs = self._state.relations[relation]
        if (recipe_id, user_id) in pairs:
            raise RuntimeError("duplicate relation")
        pairs.add((recipe_id, user_id))

    def remove_relation(self, relation: Relation, recipe_id: int, user_id: str) -> None:
        self._state.relations[relation].discard((recipe_id, user_id))

    def remove_all_relations(self, recipe_id: int) -> None:
        for relation, pairs in self._state.relations.items():
            self._state.relations[relation] = {p for p in pairs if p[0] != recipe_id}

    def adjust_likes(self, recipe_id: int, delta: int) -> None:
        recipe = self._state.recipes[recipe_id]
        self._state.recipes[recipe_id] = replace(recipe, likes=max(recipe.likes + delta, 0))

    def find_like_drift(self, recipe_id: Optional[int] = None) -> List[LikeDrift]:
        drifted = []
        for rid, recipe in sorted(self._state.recipes.items()):
            if recipe_id is not None and rid != recipe_id:
                continue
            actual = sum(1 for pair in self._state.relations[Relation.LIKE] if pair[0] == rid)
            if actual != recipe.likes:
                drifted.append(LikeDrift(recipe_id=rid, cached=recipe.likes, actual=actual))
        return drifted

    def recount_likes(self, recipe_id: int) -> None:
        actual = sum(1 for pair in self._state.relations[Relation.LIKE] if pair[0] == recipe_id)
        recipe = self._state.recipes[recipe_id]
        self._state.recipes[recipe_id] = replace(recipe, likes=actual)


class InMemoryRecipeRepository:
    """Implements the repository protocol.

    Transactions run one at a time and commit atomically, so this fake does
    not model row locking.
    """

    def __init__(self) -> None:
        self.state = _State()
        self.commits = 0
        self.rollbacks = 0
        self.failures: Set[str] = set()
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @contextmanager
    def transaction(self) -> Iterator[InMemoryTransaction]:
        with self._lock:
            working = copy.deepcopy(self.state)
            try:
                yield InMemoryTransaction(working, self._ids, self.failures)
            except Exception:
                self.rollbacks += 1
                raise
            self.state = working
            self.commits += 1

    def get(self, recipe_id: int) -> Optional[Recipe]:
        return self.state.recipes.get(recipe_id)

    def get_nutrition(self, recipe_id: int) -> Optional[Nutrition]:
        return self.state.nutrition.get(recipe_id)

    def has_relation(self, relation: Relation, recipe_id: int, user_id: str) -> bool:
        return (recipe_id, user_id) in self.state.relations[relation]

    def search(self, query: RecipeQuery) -> PaginatedResult:
        matches = []
        for recipe in self.state.recipes.values():
            if query.categories and recipe.category not in query.categories:
                continue
            if query.search:
                text = f"{recipe.title or ''} {recipe.description or ''}".lower()
                if not any(word in text for word in query.search.lower().split()):
                    continue
            if not all(item in recipe.ingredients for item in query.ingredients):
                continue
            matches.append(recipe)
        if query.sort == SORT_POPULAR:
            matches.sort(key=lambda r: (r.likes, r.id), reverse=True)
        else:
            matches.sort(key=lambda r: (r.created_at, r.id), reverse=True)
        page = matches[query.offset: query.offset + query.limit]
        items = [
            RecipeSummary(
                id=r.id,
                user_id=r.user_id,
                title=r.title,
                image=r.image,
                total_time=r.total_time,
                likes=r.likes,
                category=r.category,
            )
            for r in page
        ]
        return PaginatedResult(items=items, total=len(matches), page=query.page, limit=query.limit)


class StubTranslator:
    def __init__(self, dictionary: Optional[Dict[str, str]] = None) -> None:
        self.dictionary = dictionary or {}
        self.calls: List[Tuple[List[str], str, str]] = []
        self.error: Optional[Exception] = None

    def translate(self, texts: Sequence[str], source_lang: str, target_lang: str) -> List[str]:
        self.calls.append((list(texts), source_lang, target_lang))
        if self.error is not None:
            raise self.error
        return [self.dictionary.get(text, text) for text in texts]


def edamam_response(total_cal: float = 250.0) -> dict:
    return {
        "calories": int(total_cal),
        "totalNutrients": {
            "ENERC_KCAL": {"label": "Energy", "quantity": total_cal, "unit": "kcal"},
            "FAT": {"label": "Fat", "quantity": 10.5, "unit": "g"},
            "FASAT": {"label": "Saturated", "quantity": 3.2, "unit": "g"},
            "PROCNT": {"label": "Protein", "quantity": 12.0, "unit": "g"},
            "CHOCDF": {"label": "Carbs", "quantity": 40.1, "unit": "g"},
            "SUGAR": {"label": "Sugars", "quantity": 1.4, "unit": "g"},
            "NA": {"label": "Sodium", "quantity": 140.0, "unit": "mg"},
        },
        "totalDaily": {
            "FAT": {"label": "Fat", "quantity": 16.1, "unit": "%"},
            "FASAT": {"label": "Saturated", "quantity": 16.0, "unit": "%"},
            "PROCNT": {"label": "Protein", "quantity": 24.0, "unit": "%"},
            "CHOCDF": {"label": "Carbs", "quantity": 13.4, "unit": "%"},
            "NA": {"label": "Sodium", "quantity": 5.8, "unit": "%"},
        },
    }


class StubNutritionClient:
    def __init__(self, response: Optional[dict] = None) -> None:
        self.response = response or edamam_response()
        self.payloads: List[dict] = []
        self.error: Optional[Exception] = None

    def analyze(self, payload):
        self.payloads.append(dict(payload))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def repository() -> InMemoryRecipeRepository:
    return InMemoryRecipeRepository()


@pytest.fixture
def translator() -> StubTranslator:
    return StubTranslator({"telur": "egg", "nasi": "rice", "garam": "salt"})


@pytest.fixture
def nutrition_client() -> StubNutritionClient:
    return StubNutritionClient()


@pytest.fixture
def nutrition_payload():
    return edamam_response


@pytest.fixture
def service(repository, translator, nutrition_client) -> RecipeService:
    return RecipeService(
        repository,
        IngredientNormalizer(translator),
        NutritionResolver(nutrition_client),
    )


@pytest.fixture
def social(repository) -> SocialService:
    return SocialService(repository)


@pytest.fixture
def create_recipe(service):
    """Return a helper that creates a recipe through the service."""

    def _create(owner: str = "u1", **overrides) -> int:
        values = {
            "title": "Nasi Goreng",
            "description": "Fried rice with egg",
            "total_time": 20,
            "ingredients": ("telur", "nasi"),
            "step_descriptions": ("Fry egg", "Add rice"),
            "step_images": ("egg.jpg", "rice.jpg"),
            "category": "dinner",
        }
        values.update(overrides)
        return service.create(owner, RecipeFields(**values))

    return _create
