"""Resolve nutrition facts for a recipe's ingredient list."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Protocol, Sequence

import requests

from ..config import NutritionApiConfig
from ..errors import NutritionUnavailable
from ..models import NutrientAmount, Nutrition
from .http_client import HttpClient

logger = logging.getLogger(__name__)

# Internal group -> (nutrient code, unit, has daily value)
NUTRIENT_GROUPS: tuple[tuple[str, str, str, bool], ...] = (
    ("total_fat", "FAT", "g", True),
    ("fatsat", "FASAT", "g", True),
    ("protein", "PROCNT", "g", True),
    ("carb", "CHOCDF", "g", True),
    ("sugar", "SUGAR", "g", False),
    ("salt", "NA", "mg", True),
)
ENERGY_CODE = "ENERC_KCAL"


class NutritionClient(Protocol):
    """Protocol describing the external nutrition analysis service."""

    def analyze(self, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        """Return the raw analysis response for *payload*."""


class EdamamNutritionClient:
    """Nutrition client posting recipes to the Edamam nutrition-details API."""

    def __init__(
        self,
        url: str,
        client: HttpClient,
        app_id: Optional[str] = None,
        app_key: Optional[str] = None,
    ) -> None:
        self._url = url
        self._client = client
        self._app_id = app_id
        self._app_key = app_key

    @classmethod
    def from_config(cls, config: NutritionApiConfig) -> "EdamamNutritionClient":
        return cls(
            config.url,
            HttpClient(timeout=config.timeout),
            app_id=config.app_id,
            app_key=config.app_key,
        )

    def analyze(self, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        params = {}
        if self._app_id and self._app_key:
            params = {"app_id": self._app_id, "app_key": self._app_key}
        try:
            response = self._client.post(
                self._url,
                json=dict(payload),
                params=params or None,
                headers={"Content-Type": "application/json"},
            )
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            raise NutritionUnavailable(f"Nutrition request failed: {exc}") from exc


class NutritionResolver:
    """Turn normalized ingredients into a complete :class:`Nutrition` record."""

    def __init__(self, client: NutritionClient) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: NutritionApiConfig) -> "NutritionResolver":
        return cls(EdamamNutritionClient.from_config(config))

    @staticmethod
    def build_payload(ingredients: Sequence[str]) -> dict:
        """Only the ingredient list is sent; the descriptive fields stay blank."""

        return {
            "title": "",
            "ingr": list(ingredients),
            "url": "",
            "summary": "",
            "yield": "",
            "time": "",
            "img": "",
            "prep": "",
        }

    def resolve(self, recipe_id: Optional[int], ingredients: Sequence[str]) -> Nutrition:
        payload = self.build_payload(ingredients)
        try:
            data = self._client.analyze(payload)
        except NutritionUnavailable:
            logger.warning("Nutrition analysis failed", exc_info=True)
            raise
        except Exception as exc:
            logger.warning("Nutrition analysis failed", exc_info=True)
            raise NutritionUnavailable(str(exc)) from exc
        return self.map_response(recipe_id, data)

    def map_response(self, recipe_id: Optional[int], data: Mapping[str, Any]) -> Nutrition:
        """Map an analysis response onto the internal nutrient groups.

        Sodium is stored under ``salt`` with its raw quantity.
        """

        if not isinstance(data, Mapping):
            raise NutritionUnavailable("Nutrition response is not an object")
        totals = data.get("totalNutrients")
        daily = data.get("totalDaily")
        if not isinstance(totals, Mapping) or not isinstance(daily, Mapping):
            raise NutritionUnavailable("Nutrition response is missing nutrient totals")

        groups = {}
        for name, code, unit, has_daily in NUTRIENT_GROUPS:
            quantity = self._quantity(totals, code)
            percent = self._quantity(daily, code) if has_daily else None
            groups[name] = NutrientAmount(quantity=quantity, daily=percent, unit=unit)

        return Nutrition(
            recipe_id=recipe_id,
            total_cal=self._quantity(totals, ENERGY_CODE),
            **groups,
        )

    @staticmethod
    def _quantity(section: Mapping[str, Any], code: str) -> float:
        entry = section.get(code)
        if not isinstance(entry, Mapping) or "quantity" not in entry:
            raise NutritionUnavailable(f"Nutrition response is missing {code}")
        coerced = _coerce_to_float(entry["quantity"])
        if coerced is None:
            raise NutritionUnavailable(f"Nutrition response has a non-numeric {code}")
        return coerced


def _coerce_to_float(value: object) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None
