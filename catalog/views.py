"""Flask JSON API for the recipe catalog."""
from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import HTTPException

from .auth import current_user_id, require_user_id
from .errors import CatalogError
from .models import PaginatedResult, RecipeFields
from .query import build_recipe_query
from .service import RecipeService
from .social import SocialService

logger = logging.getLogger(__name__)


def register_routes(
    app: Any,
    service: RecipeService,
    social: SocialService,
    page_size: int = 10,
) -> None:
    """Register the HTTP routes on *app* using the provided services."""

    api_blueprint = Blueprint("recipes_api", __name__, url_prefix="/api")

    @api_blueprint.route("/recipes", methods=["GET"])
    def list_recipes() -> Any:
        query = build_recipe_query(request.args, default_limit=page_size)
        return jsonify(_serialize_page(service.list(query)))

    @api_blueprint.route("/recipes/<int:recipe_id>", methods=["GET"])
    def recipe_detail(recipe_id: int) -> Any:
        detail = service.get(recipe_id, viewer_id=current_user_id())
        return jsonify({"recipe": detail.as_dict()})

    @api_blueprint.route("/recipes", methods=["POST"])
    def create_recipe() -> Any:
        user_id = require_user_id()
        fields = RecipeFields.from_mapping(_json_body())
        recipe_id = service.create(user_id, fields)
        return jsonify({"message": "Recipe created successfully", "id": recipe_id}), 201

    @api_blueprint.route("/recipes/<int:recipe_id>", methods=["PUT", "PATCH"])
    def edit_recipe(recipe_id: int) -> Any:
        user_id = require_user_id()
        fields = RecipeFields.from_mapping(_json_body())
        service.edit(recipe_id, user_id, fields)
        return jsonify({"message": "Recipe updated successfully"})

    @api_blueprint.route("/recipes/<int:recipe_id>", methods=["DELETE"])
    def delete_recipe(recipe_id: int) -> Any:
        user_id = require_user_id()
        service.delete(recipe_id, user_id)
        return jsonify({"message": "Recipe deleted successfully"})

    @api_blueprint.route("/recipes/<int:recipe_id>/like", methods=["POST"])
    def toggle_like(recipe_id: int) -> Any:
        outcome = social.toggle_like(recipe_id, require_user_id())
        return jsonify({"message": outcome.message, "status": outcome.value})

    @api_blueprint.route("/recipes/<int:recipe_id>/save", methods=["POST"])
    def toggle_save(recipe_id: int) -> Any:
        outcome = social.toggle_save(recipe_id, require_user_id())
        return jsonify({"message": outcome.message, "status": outcome.value})

    @api_blueprint.errorhandler(CatalogError)
    def catalog_error(error: CatalogError) -> Any:
        if error.expose_message:
            message = error.message
        else:
            logger.warning("Dependency unavailable: %s", error.message)
            message = error.public_message
        return jsonify({"error": message}), error.status_code

    @api_blueprint.errorhandler(Exception)
    def unexpected_error(error: Exception) -> Any:
        if isinstance(error, HTTPException):
            return error
        logger.exception("Unhandled error while processing %s %s", request.method, request.path)
        return jsonify({"error": "Server error"}), 500

    app.register_blueprint(api_blueprint)


def _json_body() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _serialize_page(results: PaginatedResult) -> Dict[str, Any]:
    return {
        "recipes": [item.as_dict() for item in results.items],
        "totalPages": results.total_pages,
        "currentPage": results.page,
        "limit": results.limit,
    }
