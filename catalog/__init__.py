"""Flask application factory for the recipe catalog service."""
from __future__ import annotations

from flask import Flask

from .config import AppConfig
from .repository import MySqlRecipeRepository
from .service import RecipeService
from .services import IngredientNormalizer, NutritionResolver
from .social import SocialService
from .views import register_routes


def create_app(config: AppConfig | None = None) -> Flask:
    """Create and configure the Flask application."""

    resolved_config = config or AppConfig.from_env()
    app = Flask(__name__)
    repository = MySqlRecipeRepository.from_config(resolved_config.database)
    service = RecipeService(
        repository,
        IngredientNormalizer.from_config(resolved_config.translation),
        NutritionResolver.from_config(resolved_config.nutrition),
    )
    social = SocialService(repository)
    register_routes(app, service, social, page_size=resolved_config.page_size)
    app.secret_key = resolved_config.secret_key
    app.config["SECRET_KEY"] = resolved_config.secret_key
    app.config["APP_CONFIG"] = resolved_config
    app.config["RECIPE_SERVICE"] = service
    app.config["SOCIAL_SERVICE"] = social
    return app
