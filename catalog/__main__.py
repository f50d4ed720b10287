"""Entry point for running the recipe catalog service."""
from __future__ import annotations

import logging
import os

from . import create_app
from .config import AppConfig
from .scripts.env_loader import load_environment


def main() -> None:
    load_environment()
    logging.basicConfig(level=logging.INFO)
    config = AppConfig.from_env()
    app = create_app(config)
    port = int(os.getenv("PORT", "8000"))
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
