"""Create the MySQL tables used by the recipe catalog."""
from __future__ import annotations

import argparse
import sys
from typing import Iterable

from mysql.connector import Error as MySQLError

from catalog.config import AppConfig
from catalog.repository import MySqlRecipeRepository
from catalog.scripts.env_loader import load_environment


def _parse_args(argv: Iterable[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create the recipe catalog tables if they do not exist.",
    )
    parser.add_argument(
        "--env-file",
        help="Load environment variables from this file before connecting.",
    )
    return parser.parse_args(list(argv))


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    load_environment(args.env_file)
    config = AppConfig.from_env()

    try:
        repository = MySqlRecipeRepository.from_config(config.database)
        repository.ensure_schema()
    except MySQLError as exc:
        print(f"Failed to create schema in '{config.database.database}': {exc}", file=sys.stderr)
        return 2

    print(f"Schema ready in database '{config.database.database}'.")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main(sys.argv[1:]))
