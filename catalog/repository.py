"""Data access layer for recipes, nutrition and social relations."""
from __future__ import annotations

import json
from contextlib import contextmanager
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Protocol

from mysql.connector import pooling

from .config import DatabaseConfig
from .db import create_connection_pool
from .models import (
    LikeDrift,
    NutrientAmount,
    Nutrition,
    PaginatedResult,
    Recipe,
    RecipeStep,
    RecipeSteps,
    RecipeSummary,
)
from .query import SORT_POPULAR, RecipeQuery


class Relation(Enum):
    """Per-user relationships to a recipe, keyed by their table."""

    LIKE = "recipe_likes"
    SAVE = "saved_recipes"


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS recipes (
    id BIGINT UNSIGNED AUTO_INCREMENT PRIMARY KEY,
    user_id VARCHAR(64) NOT NULL,
    title VARCHAR(255),
    image VARCHAR(1024),
    description TEXT,
    total_time INT,
    ingredients JSON NOT NULL,
    steps JSON NOT NULL,
    category VARCHAR(32),
    likes INT UNSIGNED NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    KEY idx_recipes_category (category),
    KEY idx_recipes_created_at (created_at),
    KEY idx_recipes_likes (likes),
    FULLTEXT KEY ft_recipes_text (title, description)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS nutrition (
    id BIGINT UNSIGNED AUTO_INCREMENT PRIMARY KEY,
    recipe_id BIGINT UNSIGNED NOT NULL,
    total_cal DOUBLE NOT NULL,
    total_fat_g DOUBLE NOT NULL,
    total_fat_akg DOUBLE NOT NULL,
    fatsat_g DOUBLE NOT NULL,
    fatsat_akg DOUBLE NOT NULL,
    protein_g DOUBLE NOT NULL,
    protein_akg DOUBLE NOT NULL,
    carb_g DOUBLE NOT NULL,
    carb_akg DOUBLE NOT NULL,
    sugar_g DOUBLE NOT NULL,
    salt_mg DOUBLE NOT NULL,
    salt_akg DOUBLE NOT NULL,
    UNIQUE KEY uniq_nutrition_recipe (recipe_id)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS recipe_likes (
    id BIGINT UNSIGNED AUTO_INCREMENT PRIMARY KEY,
    recipe_id BIGINT UNSIGNED NOT NULL,
    user_id VARCHAR(64) NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE KEY uniq_like (recipe_id, user_id)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4;

CREATE TABLE IF NOT EXISTS saved_recipes (
    id BIGINT UNSIGNED AUTO_INCREMENT PRIMARY KEY,
    recipe_id BIGINT UNSIGNED NOT NULL,
    user_id VARCHAR(64) NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE KEY uniq_save (recipe_id, user_id)
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4
"""

RECIPE_COLUMNS = """
    id,
    user_id,
    title,
    image,
    description,
    total_time,
    ingredients,
    steps,
    category,
    likes,
    created_at
"""

NUTRITION_COLUMNS = """
    id,
    recipe_id,
    total_cal,
    total_fat_g,
    total_fat_akg,
    fatsat_g,
    fatsat_akg,
    protein_g,
    protein_akg,
    carb_g,
    carb_akg,
    sugar_g,
    salt_mg,
    salt_akg
"""


class RecipeTransaction(Protocol):
    """Writes that commit or roll back together."""

    def lock_recipe(self, recipe_id: int) -> Optional[Recipe]:
        ...

    def insert_recipe(self, recipe: Recipe) -> int:
        ...

    def update_recipe(self, recipe: Recipe) -> None:
        ...

    def delete_recipe(self, recipe_id: int) -> None:
        ...

    def upsert_nutrition(self, nutrition: Nutrition) -> None:
        ...

    def delete_nutrition(self, recipe_id: int) -> None:
        ...

    def has_relation(self, relation: Relation, recipe_id: int, user_id: str) -> bool:
        ...

    def add_relation(self, relation: Relation, recipe_id: int, user_id: str) -> None:
        ...

    def remove_relation(self, relation: Relation, recipe_id: int, user_id: str) -> None:
        ...

    def remove_all_relations(self, recipe_id: int) -> None:
        ...

    def adjust_likes(self, recipe_id: int, delta: int) -> None:
        ...

    def find_like_drift(self, recipe_id: Optional[int] = None) -> List[LikeDrift]:
        ...

    def recount_likes(self, recipe_id: int) -> None:
        ...


class RecipeRepository(Protocol):
    """Storage operations required by the catalog services."""

    def get(self, recipe_id: int) -> Optional[Recipe]:
        ...

    def get_nutrition(self, recipe_id: int) -> Optional[Nutrition]:
        ...

    def has_relation(self, relation: Relation, recipe_id: int, user_id: str) -> bool:
        ...

    def search(self, query: RecipeQuery) -> PaginatedResult:
        ...

    def transaction(self) -> Any:
        """Return a context manager yielding a :class:`RecipeTransaction`."""


class MySqlRecipeTransaction:
    """:class:`RecipeTransaction` bound to one MySQL connection."""

    def __init__(self, connection: Any) -> None:
        self._connection = connection

    def lock_recipe(self, recipe_id: int) -> Optional[Recipe]:
        sql = f"SELECT {RECIPE_COLUMNS} FROM recipes WHERE id = %s FOR UPDATE"
        row = self._fetchone(sql, (recipe_id,))
        return _row_to_recipe(row) if row else None

    def insert_recipe(self, recipe: Recipe) -> int:
        sql = """
            INSERT INTO recipes (
                user_id,
                title,
                image,
                description,
                total_time,
                ingredients,
                steps,
                category,
                likes
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, 0)
        """
        params = (
            recipe.user_id,
            recipe.title,
            recipe.image,
            recipe.description,
            recipe.total_time,
            _to_json_text(list(recipe.ingredients)),
            _to_json_text(recipe.steps.as_dict()),
            recipe.category,
        )
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, params)
            return int(cursor.lastrowid)
        finally:
            cursor.close()

    def update_recipe(self, recipe: Recipe) -> None:
        # likes is owned by the toggles and never rewritten here
        sql = """
            UPDATE recipes
            SET title = %s,
                image = %s,
                description = %s,
                total_time = %s,
                ingredients = %s,
                steps = %s,
                category = %s
            WHERE id = %s
        """
        params = (
            recipe.title,
            recipe.image,
            recipe.description,
            recipe.total_time,
            _to_json_text(list(recipe.ingredients)),
            _to_json_text(recipe.steps.as_dict()),
            recipe.category,
            recipe.id,
        )
        self._execute(sql, params)

    def delete_recipe(self, recipe_id: int) -> None:
        self._execute("DELETE FROM recipes WHERE id = %s", (recipe_id,))

    def upsert_nutrition(self, nutrition: Nutrition) -> None:
        sql = """
            INSERT INTO nutrition (
                recipe_id,
                total_cal,
                total_fat_g,
                total_fat_akg,
                fatsat_g,
                fatsat_akg,
                protein_g,
                protein_akg,
                carb_g,
                carb_akg,
                sugar_g,
                salt_mg,
                salt_akg
            ) VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
            ON DUPLICATE KEY UPDATE
                total_cal = VALUES(total_cal),
                total_fat_g = VALUES(total_fat_g),
                total_fat_akg = VALUES(total_fat_akg),
                fatsat_g = VALUES(fatsat_g),
                fatsat_akg = VALUES(fatsat_akg),
                protein_g = VALUES(protein_g),
                protein_akg = VALUES(protein_akg),
                carb_g = VALUES(carb_g),
                carb_akg = VALUES(carb_akg),
                sugar_g = VALUES(sugar_g),
                salt_mg = VALUES(salt_mg),
                salt_akg = VALUES(salt_akg)
        """
        params = (
            nutrition.recipe_id,
            nutrition.total_cal,
            nutrition.total_fat.quantity,
            nutrition.total_fat.daily,
            nutrition.fatsat.quantity,
            nutrition.fatsat.daily,
            nutrition.protein.quantity,
            nutrition.protein.daily,
            nutrition.carb.quantity,
            nutrition.carb.daily,
            nutrition.sugar.quantity,
            nutrition.salt.quantity,
            nutrition.salt.daily,
        )
        self._execute(sql, params)

    def delete_nutrition(self, recipe_id: int) -> None:
        self._execute("DELETE FROM nutrition WHERE recipe_id = %s", (recipe_id,))

    def has_relation(self, relation: Relation, recipe_id: int, user_id: str) -> bool:
        sql = f"SELECT id FROM {relation.value} WHERE recipe_id = %s AND user_id = %s"
        return self._fetchone(sql, (recipe_id, user_id)) is not None

    def add_relation(self, relation: Relation, recipe_id: int, user_id: str) -> None:
        sql = f"INSERT INTO {relation.value} (recipe_id, user_id) VALUES (%s, %s)"
        self._execute(sql, (recipe_id, user_id))

    def remove_relation(self, relation: Relation, recipe_id: int, user_id: str) -> None:
        sql = f"DELETE FROM {relation.value} WHERE recipe_id = %s AND user_id = %s"
        self._execute(sql, (recipe_id, user_id))

    def remove_all_relations(self, recipe_id: int) -> None:
        for relation in Relation:
            self._execute(
                f"DELETE FROM {relation.value} WHERE recipe_id = %s", (recipe_id,)
            )

    def adjust_likes(self, recipe_id: int, delta: int) -> None:
        sql = (
            "UPDATE recipes SET likes = GREATEST(CAST(likes AS SIGNED) + %s, 0) "
            "WHERE id = %s"
        )
        self._execute(sql, (delta, recipe_id))

    def find_like_drift(self, recipe_id: Optional[int] = None) -> List[LikeDrift]:
        sql = """
            SELECT r.id AS recipe_id, r.likes AS cached, COUNT(l.id) AS actual
            FROM recipes r
            LEFT JOIN recipe_likes l ON l.recipe_id = r.id
        """
        params: tuple = ()
        if recipe_id is not None:
            sql += " WHERE r.id = %s"
            params = (recipe_id,)
        sql += " GROUP BY r.id, r.likes HAVING cached <> actual"
        cursor = self._connection.cursor(dictionary=True)
        try:
            cursor.execute(sql, params)
            rows = cursor.fetchall()
        finally:
            cursor.close()
        return [
            LikeDrift(
                recipe_id=int(row["recipe_id"]),
                cached=int(row["cached"]),
                actual=int(row["actual"]),
            )
            for row in rows
        ]

    def recount_likes(self, recipe_id: int) -> None:
        sql = """
            UPDATE recipes
            SET likes = (SELECT COUNT(*) FROM recipe_likes WHERE recipe_id = %s)
            WHERE id = %s
        """
        self._execute(sql, (recipe_id, recipe_id))

    def _execute(self, sql: str, params: tuple) -> None:
        cursor = self._connection.cursor()
        try:
            cursor.execute(sql, params)
        finally:
            cursor.close()

    def _fetchone(self, sql: str, params: tuple) -> Optional[dict]:
        cursor = self._connection.cursor(dictionary=True)
        try:
            cursor.execute(sql, params)
            return cursor.fetchone()
        finally:
            cursor.close()


class MySqlRecipeRepository:
    """MySQL backed implementation of :class:`RecipeRepository`."""

    def __init__(self, pool: pooling.MySQLConnectionPool) -> None:
        self._pool = pool

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> "MySqlRecipeRepository":
        return cls(create_connection_pool(config))

    @contextmanager
    def transaction(self) -> Iterator[MySqlRecipeTransaction]:
        """Yield a transaction that commits on success and rolls back on error."""

        connection = self._pool.get_connection()
        try:
            try:
                yield MySqlRecipeTransaction(connection)
            except Exception:
                connection.rollback()
                raise
            connection.commit()
        finally:
            connection.close()

    def ensure_schema(self) -> None:
        connection = self._pool.get_connection()
        try:
            cursor = connection.cursor()
            try:
                for statement in SCHEMA_SQL.split(";"):
                    if statement.strip():
                        cursor.execute(statement)
            finally:
                cursor.close()
            connection.commit()
        finally:
            connection.close()

    def get(self, recipe_id: int) -> Optional[Recipe]:
        """Return a single recipe or ``None`` if it does not exist."""

        sql = f"SELECT {RECIPE_COLUMNS} FROM recipes WHERE id = %s"
        row = self._fetchone(sql, (recipe_id,))
        return _row_to_recipe(row) if row else None

    def get_nutrition(self, recipe_id: int) -> Optional[Nutrition]:
        sql = f"SELECT {NUTRITION_COLUMNS} FROM nutrition WHERE recipe_id = %s"
        row = self._fetchone(sql, (recipe_id,))
        return _row_to_nutrition(row) if row else None

    def has_relation(self, relation: Relation, recipe_id: int, user_id: str) -> bool:
        sql = f"SELECT id FROM {relation.value} WHERE recipe_id = %s AND user_id = %s"
        return self._fetchone(sql, (recipe_id, user_id)) is not None

    def search(self, query: RecipeQuery) -> PaginatedResult:
        """Return the page of recipe summaries matching *query*."""

        where_clause, params = self.build_where(query)
        if query.sort == SORT_POPULAR:
            order_clause = "ORDER BY likes DESC, id DESC"
        else:
            order_clause = "ORDER BY created_at DESC, id DESC"
        listing_sql = f"""
            SELECT
                id,
                user_id,
                title,
                image,
                total_time,
                likes,
                category
            FROM recipes
            {where_clause}
            {order_clause}
            LIMIT %s OFFSET %s
        """
        count_sql = f"SELECT COUNT(*) AS total FROM recipes {where_clause}"
        rows = self._fetchall(listing_sql, (*params, query.limit, query.offset))
        total = self._fetch_total(count_sql, tuple(params))
        items = [
            RecipeSummary(
                id=row["id"],
                user_id=row["user_id"],
                title=row.get("title"),
                image=row.get("image"),
                total_time=row.get("total_time"),
                likes=int(row.get("likes") or 0),
                category=row.get("category"),
            )
            for row in rows
        ]
        return PaginatedResult(items=items, total=total, page=query.page, limit=query.limit)

    @staticmethod
    def build_where(query: RecipeQuery) -> tuple[str, List[object]]:
        """Render the filters of *query* as a SQL ``WHERE`` clause."""

        conditions: List[str] = []
        params: List[object] = []
        if query.categories:
            placeholders = ", ".join(["%s"] * len(query.categories))
            conditions.append(f"category IN ({placeholders})")
            params.extend(query.categories)
        if query.search:
            conditions.append(
                "MATCH(title, description) AGAINST (%s IN NATURAL LANGUAGE MODE)"
            )
            params.append(query.search)
        for ingredient in query.ingredients:
            conditions.append("JSON_CONTAINS(ingredients, JSON_QUOTE(%s))")
            params.append(ingredient)
        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return where_clause, params

    def _fetchone(self, sql: str, params: tuple) -> Optional[dict]:
        connection = self._pool.get_connection()
        try:
            cursor = connection.cursor(dictionary=True)
            try:
                cursor.execute(sql, params)
                row = cursor.fetchone()
            finally:
                cursor.close()
        finally:
            connection.close()
        return row

    def _fetchall(self, sql: str, params: tuple) -> List[dict]:
        connection = self._pool.get_connection()
        try:
            cursor = connection.cursor(dictionary=True)
            try:
                cursor.execute(sql, params)
                rows = cursor.fetchall()
            finally:
                cursor.close()
        finally:
            connection.close()
        return rows

    def _fetch_total(self, sql: str, params: tuple) -> int:
        connection = self._pool.get_connection()
        try:
            cursor = connection.cursor()
            try:
                cursor.execute(sql, params)
                (total,) = cursor.fetchone()
            finally:
                cursor.close()
        finally:
            connection.close()
        return int(total)


def _row_to_recipe(row: Dict[str, Any]) -> Recipe:
    steps_data = _parse_json(row.get("steps")) or {}
    if not isinstance(steps_data, dict):
        steps_data = {}
    steps = RecipeSteps(
        video=steps_data.get("video"),
        step=tuple(
            RecipeStep(description=item.get("description"), image=item.get("image"))
            for item in steps_data.get("step") or []
            if isinstance(item, dict)
        ),
    )
    ingredients = _parse_json(row.get("ingredients")) or []
    if not isinstance(ingredients, list):
        ingredients = []
    return Recipe(
        id=row["id"],
        user_id=row["user_id"],
        title=row.get("title"),
        image=row.get("image"),
        description=row.get("description"),
        total_time=row.get("total_time"),
        ingredients=tuple(str(item) for item in ingredients if item is not None),
        steps=steps,
        category=row.get("category"),
        likes=int(row.get("likes") or 0),
        created_at=row.get("created_at"),
    )


def _row_to_nutrition(row: Dict[str, Any]) -> Nutrition:
    return Nutrition(
        id=row.get("id"),
        recipe_id=row["recipe_id"],
        total_cal=row["total_cal"],
        total_fat=NutrientAmount(row["total_fat_g"], row["total_fat_akg"]),
        fatsat=NutrientAmount(row["fatsat_g"], row["fatsat_akg"]),
        protein=NutrientAmount(row["protein_g"], row["protein_akg"]),
        carb=NutrientAmount(row["carb_g"], row["carb_akg"]),
        sugar=NutrientAmount(row["sugar_g"]),
        salt=NutrientAmount(row["salt_mg"], row["salt_akg"], unit="mg"),
    )


def _to_json_text(value: Optional[object]) -> Optional[str]:
    if value is None:
        return None
    return json.dumps(value, ensure_ascii=False)


def _parse_json(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except (TypeError, ValueError):
        return None
