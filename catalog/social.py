"""Like and save toggles for recipes."""
from __future__ import annotations

import logging
from typing import List, Optional

from .errors import NotFound
from .models import LikeDrift, ToggleOutcome
from .repository import Relation, RecipeRepository

logger = logging.getLogger(__name__)


class SocialService:
    """Flip per-user like/save state and keep the like counter in step.

    Each toggle locks the recipe row for the duration of its transaction,
    so concurrent toggles on one recipe are applied one after another.
    """

    def __init__(self, repository: RecipeRepository) -> None:
        self._repository = repository

    def toggle_like(self, recipe_id: int, user_id: str) -> ToggleOutcome:
        with self._repository.transaction() as tx:
            if tx.lock_recipe(recipe_id) is None:
                raise NotFound()
            if tx.has_relation(Relation.LIKE, recipe_id, user_id):
                tx.remove_relation(Relation.LIKE, recipe_id, user_id)
                tx.adjust_likes(recipe_id, -1)
                outcome = ToggleOutcome.UNLIKED
            else:
                tx.add_relation(Relation.LIKE, recipe_id, user_id)
                tx.adjust_likes(recipe_id, 1)
                outcome = ToggleOutcome.LIKED
        logger.info("User %s %s recipe %s", user_id, outcome.value, recipe_id)
        return outcome

    def toggle_save(self, recipe_id: int, user_id: str) -> ToggleOutcome:
        with self._repository.transaction() as tx:
            if tx.lock_recipe(recipe_id) is None:
                raise NotFound()
            if tx.has_relation(Relation.SAVE, recipe_id, user_id):
                tx.remove_relation(Relation.SAVE, recipe_id, user_id)
                outcome = ToggleOutcome.UNSAVED
            else:
                tx.add_relation(Relation.SAVE, recipe_id, user_id)
                outcome = ToggleOutcome.SAVED
        logger.info("User %s %s recipe %s", user_id, outcome.value, recipe_id)
        return outcome

    def reconcile_likes(self, recipe_id: Optional[int] = None) -> List[LikeDrift]:
        """Recount cached like counters that disagree with the Like rows."""

        with self._repository.transaction() as tx:
            drifted = tx.find_like_drift(recipe_id)
            for drift in drifted:
                logger.warning(
                    "Recipe %s like counter drifted: cached %s, actual %s",
                    drift.recipe_id,
                    drift.cached,
                    drift.actual,
                )
                tx.recount_likes(drift.recipe_id)
        return drifted
