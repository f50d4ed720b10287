"""WSGI entrypoint for running the recipe catalog in production."""
from __future__ import annotations

from . import create_app
from .config import AppConfig
from .scripts.env_loader import load_environment


load_environment()
app = create_app(AppConfig.from_env())


def get_app():
    """Return the configured Flask application."""

    return app
