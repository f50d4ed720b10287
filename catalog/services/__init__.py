"""Integrations with the external translation and nutrition services."""
from .http_client import HttpClient
from .nutrition_service import EdamamNutritionClient, NutritionClient, NutritionResolver
from .translation_service import DeepLTranslator, IngredientNormalizer, Translator

__all__ = [
    "DeepLTranslator",
    "EdamamNutritionClient",
    "HttpClient",
    "IngredientNormalizer",
    "NutritionClient",
    "NutritionResolver",
    "Translator",
]
