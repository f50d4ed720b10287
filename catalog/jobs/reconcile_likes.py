"""Recount cached like counters from the stored Like rows."""
from __future__ import annotations

import argparse
import logging
from typing import Iterable, Optional

from catalog.config import AppConfig
from catalog.repository import MySqlRecipeRepository
from catalog.scripts.env_loader import load_environment
from catalog.social import SocialService

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Iterable[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Fix recipe like counters that disagree with their Like rows",
    )
    parser.add_argument(
        "--recipe-id",
        type=int,
        help="Only reconcile this recipe.",
    )
    return parser.parse_args(None if argv is None else list(argv))


def run(social: SocialService, recipe_id: Optional[int] = None) -> int:
    """Reconcile counters and return how many drifted."""

    drifted = social.reconcile_likes(recipe_id)
    logger.info("Reconcile complete. %d like counters corrected.", len(drifted))
    return len(drifted)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=logging.INFO)
    load_environment()
    config = AppConfig.from_env()
    repository = MySqlRecipeRepository.from_config(config.database)
    run(SocialService(repository), args.recipe_id)
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
