"""Domain models for the recipe catalog."""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import InvalidRecipe

CATEGORIES: tuple[str, ...] = (
    "breakfast",
    "lunch",
    "dinner",
    "snack",
    "dessert",
    "drink",
)


@dataclass(frozen=True)
class RecipeStep:
    """A single preparation step with an optional illustration."""

    description: Optional[str]
    image: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {"description": self.description, "image": self.image}


@dataclass(frozen=True)
class RecipeSteps:
    """Optional video walkthrough plus the ordered list of steps."""

    video: Optional[str] = None
    step: tuple[RecipeStep, ...] = ()

    @classmethod
    def pair(
        cls,
        video: Optional[str],
        descriptions: Sequence[Optional[str]],
        images: Sequence[Optional[str]],
    ) -> "RecipeSteps":
        """Pair each description with the image at the same position."""

        steps = tuple(
            RecipeStep(
                description=description,
                image=images[index] if index < len(images) else None,
            )
            for index, description in enumerate(descriptions)
        )
        return cls(video=video, step=steps)

    def as_dict(self) -> Dict[str, Any]:
        return {"video": self.video, "step": [item.as_dict() for item in self.step]}


@dataclass(frozen=True)
class Recipe:
    """A stored recipe. Ingredients are kept exactly as the author wrote them."""

    id: Optional[int]
    user_id: str
    title: Optional[str]
    image: Optional[str]
    description: Optional[str]
    total_time: Optional[int]
    ingredients: tuple[str, ...]
    steps: RecipeSteps
    category: Optional[str]
    likes: int = 0
    created_at: Optional[datetime] = None

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        return user_id is not None and str(self.user_id) == str(user_id)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "image": self.image,
            "description": self.description,
            "total_time": self.total_time,
            "ingredients": list(self.ingredients),
            "steps": self.steps.as_dict(),
            "category": self.category,
            "likes": self.likes,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class NutrientAmount:
    """Absolute quantity of a nutrient plus its share of the daily value."""

    quantity: float
    daily: Optional[float] = None
    unit: str = "g"

    def as_dict(self) -> Dict[str, float]:
        payload = {self.unit: self.quantity}
        if self.daily is not None:
            payload["akg"] = self.daily
        return payload


@dataclass(frozen=True)
class Nutrition:
    """Nutrition facts computed for the full ingredient list of a recipe."""

    recipe_id: Optional[int]
    total_cal: float
    total_fat: NutrientAmount
    fatsat: NutrientAmount
    protein: NutrientAmount
    carb: NutrientAmount
    sugar: NutrientAmount
    salt: NutrientAmount
    id: Optional[int] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "recipe_id": self.recipe_id,
            "total_cal": self.total_cal,
            "total_fat": self.total_fat.as_dict(),
            "fatsat": self.fatsat.as_dict(),
            "protein": self.protein.as_dict(),
            "carb": self.carb.as_dict(),
            "sugar": self.sugar.as_dict(),
            "salt": self.salt.as_dict(),
        }


@dataclass(frozen=True)
class RecipeFields:
    """Incoming recipe attributes from a create or edit request.

    ``None`` and empty values mean "not provided"; edits never clear a
    stored value.
    """

    title: Optional[str] = None
    image: Optional[str] = None
    description: Optional[str] = None
    total_time: Optional[int] = None
    ingredients: tuple[str, ...] = ()
    video: Optional[str] = None
    step_descriptions: Optional[tuple[Optional[str], ...]] = None
    step_images: Optional[tuple[Optional[str], ...]] = None
    category: Optional[str] = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "RecipeFields":
        """Build fields from a decoded JSON request body."""

        return cls(
            title=payload.get("title"),
            image=payload.get("image"),
            description=payload.get("description"),
            total_time=_coerce_int(payload.get("total_time")),
            ingredients=tuple(_as_list(payload.get("ingredients"), "ingredients")),
            video=payload.get("video"),
            step_descriptions=_optional_tuple(payload.get("stepDescription"), "stepDescription"),
            step_images=_optional_tuple(payload.get("stepImage"), "stepImage"),
            category=payload.get("category"),
        )


@dataclass(frozen=True)
class RecipeSummary:
    """Reduced projection used on listing pages."""

    id: int
    user_id: str
    title: Optional[str]
    image: Optional[str]
    total_time: Optional[int]
    likes: int
    category: Optional[str]

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "image": self.image,
            "total_time": self.total_time,
            "likes": self.likes,
            "category": self.category,
        }


@dataclass(frozen=True)
class RecipeDetail:
    """A recipe with its nutrition and the viewer's like state."""

    recipe: Recipe
    nutrition: Optional[Nutrition]
    is_liked: bool = False

    def as_dict(self) -> Dict[str, Any]:
        payload = self.recipe.as_dict()
        payload["isLiked"] = self.is_liked
        payload["nutrition"] = self.nutrition.as_dict() if self.nutrition else None
        return payload


@dataclass(frozen=True)
class PaginatedResult:
    """Container holding one page of recipe summaries."""

    items: List[RecipeSummary]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


class ToggleOutcome(Enum):
    LIKED = "liked"
    UNLIKED = "unliked"
    SAVED = "saved"
    UNSAVED = "unsaved"

    @property
    def message(self) -> str:
        return f"Recipe {self.value} successfully"


@dataclass(frozen=True)
class LikeDrift:
    """A recipe whose cached like counter disagreed with its Like rows."""

    recipe_id: int
    cached: int
    actual: int


def _as_list(value: Any, field: str) -> List[Any]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)):
        raise InvalidRecipe(f"{field} must be a list")
    return list(value)


def _optional_tuple(value: Any, field: str) -> Optional[tuple]:
    if value is None:
        return None
    return tuple(_as_list(value, field))


def _coerce_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
