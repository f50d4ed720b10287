"""Error types raised by the catalog services."""
from __future__ import annotations


class CatalogError(Exception):
    """Base class for failures that map onto an HTTP status."""

    status_code = 500
    public_message = "Server error"
    expose_message = True

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class NotFound(CatalogError):
    status_code = 404
    public_message = "Recipe not found"


class Forbidden(CatalogError):
    status_code = 403
    public_message = "You are not authorized to modify this recipe"


class Unauthorized(CatalogError):
    status_code = 401
    public_message = "Authentication required"


class InvalidRecipe(CatalogError):
    status_code = 400
    public_message = "Invalid recipe"


class DependencyUnavailable(CatalogError):
    """An external collaborator failed; the whole write is abandoned."""

    status_code = 503
    expose_message = False


class TranslationUnavailable(DependencyUnavailable):
    pass


class NutritionUnavailable(DependencyUnavailable):
    pass
