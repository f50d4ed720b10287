"""Application services for recipe reads and aggregate writes."""
from __future__ import annotations

from dataclasses import replace
import logging
from typing import Optional

from .errors import Forbidden, InvalidRecipe, NotFound
from .models import (
    CATEGORIES,
    Nutrition,
    PaginatedResult,
    Recipe,
    RecipeDetail,
    RecipeFields,
    RecipeSteps,
)
from .query import RecipeQuery
from .repository import Relation, RecipeRepository
from .services import IngredientNormalizer, NutritionResolver


logger = logging.getLogger(__name__)


class RecipeService:
    """Coordinates recipe use cases.

    A recipe and its nutrition are written as one unit: nutrition is
    resolved before any write, and both records are persisted in a single
    storage transaction.
    """

    def __init__(
        self,
        repository: RecipeRepository,
        normalizer: IngredientNormalizer,
        resolver: NutritionResolver,
    ) -> None:
        self._repository = repository
        self._normalizer = normalizer
        self._resolver = resolver

    def list(self, query: RecipeQuery) -> PaginatedResult:
        return self._repository.search(query)

    def get(self, recipe_id: int, viewer_id: Optional[str] = None) -> RecipeDetail:
        recipe = self._repository.get(recipe_id)
        if recipe is None:
            raise NotFound()
        nutrition = self._repository.get_nutrition(recipe_id)
        is_liked = False
        if viewer_id:
            is_liked = self._repository.has_relation(Relation.LIKE, recipe_id, viewer_id)
        return RecipeDetail(recipe=recipe, nutrition=nutrition, is_liked=is_liked)

    def create(self, owner_id: str, fields: RecipeFields) -> int:
        """Create a recipe with its nutrition and return the new recipe id."""

        if not fields.ingredients:
            raise InvalidRecipe("A recipe needs at least one ingredient")
        self._check_category(fields.category, required=True)

        recipe = Recipe(
            id=None,
            user_id=owner_id,
            title=fields.title,
            image=fields.image,
            description=fields.description,
            total_time=fields.total_time,
            ingredients=tuple(fields.ingredients),
            steps=RecipeSteps.pair(
                fields.video,
                fields.step_descriptions or (),
                fields.step_images or (),
            ),
            category=fields.category,
        )
        nutrition = self._resolve_nutrition(None, recipe.ingredients)

        with self._repository.transaction() as tx:
            recipe_id = tx.insert_recipe(recipe)
            tx.upsert_nutrition(replace(nutrition, recipe_id=recipe_id))

        logger.info("Created recipe %s for user %s", recipe_id, owner_id)
        return recipe_id

    def edit(self, recipe_id: int, editor_id: str, fields: RecipeFields) -> Recipe:
        """Apply a partial update; empty values leave stored values unchanged."""

        # Fails fast before the external calls; ownership is checked again
        # on the locked row below.
        self._load_owned(recipe_id, editor_id)
        if fields.category:
            self._check_category(fields.category, required=False)

        nutrition: Optional[Nutrition] = None
        if fields.ingredients:
            nutrition = self._resolve_nutrition(recipe_id, fields.ingredients)

        with self._repository.transaction() as tx:
            current = self._check_owner(tx.lock_recipe(recipe_id), editor_id)
            updated = self._apply_fields(current, fields)
            tx.update_recipe(updated)
            if nutrition is not None:
                tx.upsert_nutrition(nutrition)

        logger.info(
            "Updated recipe %s (nutrition %s)",
            recipe_id,
            "recomputed" if nutrition is not None else "unchanged",
        )
        return updated

    def delete(self, recipe_id: int, requester_id: str) -> None:
        """Delete a recipe together with its nutrition, likes and saves."""

        self._load_owned(recipe_id, requester_id)
        with self._repository.transaction() as tx:
            self._check_owner(tx.lock_recipe(recipe_id), requester_id)
            tx.delete_nutrition(recipe_id)
            tx.remove_all_relations(recipe_id)
            tx.delete_recipe(recipe_id)
        logger.info("Deleted recipe %s", recipe_id)

    def _load_owned(self, recipe_id: int, user_id: str) -> Recipe:
        return self._check_owner(self._repository.get(recipe_id), user_id)

    @staticmethod
    def _check_owner(recipe: Optional[Recipe], user_id: str) -> Recipe:
        if recipe is None:
            raise NotFound()
        if not recipe.is_owned_by(user_id):
            raise Forbidden()
        return recipe

    @staticmethod
    def _apply_fields(recipe: Recipe, fields: RecipeFields) -> Recipe:
        steps = recipe.steps
        if (
            fields.step_descriptions is not None
            and fields.step_images is not None
            and len(fields.step_descriptions) == len(fields.step_images)
        ):
            steps = RecipeSteps.pair(steps.video, fields.step_descriptions, fields.step_images)
        steps = replace(steps, video=fields.video or steps.video)

        return replace(
            recipe,
            title=fields.title or recipe.title,
            image=fields.image or recipe.image,
            description=fields.description or recipe.description,
            total_time=fields.total_time or recipe.total_time,
            ingredients=tuple(fields.ingredients) or recipe.ingredients,
            steps=steps,
            category=fields.category or recipe.category,
        )

    def _resolve_nutrition(self, recipe_id: Optional[int], ingredients) -> Nutrition:
        normalized = self._normalizer.normalize(ingredients)
        return self._resolver.resolve(recipe_id, normalized)

    @staticmethod
    def _check_category(category: Optional[str], required: bool) -> None:
        if not category and not required:
            return
        if category not in CATEGORIES:
            raise InvalidRecipe(
                f"Category must be one of: {', '.join(CATEGORIES)}"
            )
