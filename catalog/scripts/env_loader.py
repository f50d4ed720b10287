"""Resolve and load the ``.env`` file used by the service and its commands."""
from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

ENV_FILE_VARIABLE = "RECIPE_CATALOG_ENV_FILE"
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def resolve_env_file(path: str | Path | None = None) -> Path:
    """Return the env file to load.

    An explicit *path* wins, then ``RECIPE_CATALOG_ENV_FILE``, then the
    ``.env`` file at the project root.
    """

    if path is not None:
        return Path(path)
    configured = os.getenv(ENV_FILE_VARIABLE)
    if configured:
        return Path(configured)
    return PROJECT_ROOT / ".env"


def load_environment(path: str | Path | None = None, *, override: bool = False) -> bool:
    """Load variables from the resolved env file; ``False`` when it does not exist."""

    env_file = resolve_env_file(path)
    if not env_file.is_file():
        return False
    return load_dotenv(dotenv_path=env_file, override=override)
