"""Configuration objects for the recipe catalog service."""
from __future__ import annotations

import os
from dataclasses import dataclass


def _strtobool(value: str) -> bool:
    """Return ``True`` when *value* represents a truthy string."""

    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection details for the catalog database."""

    host: str = "localhost"
    port: int = 3306
    user: str = "recipecatalog"
    password: str = ""
    database: str = "recipecatalog"
    pool_name: str = "recipe_catalog_pool"
    pool_size: int = 5

    @classmethod
    def from_env(cls, prefix: str = "DB_") -> "DatabaseConfig":
        """Create a configuration from environment variables."""

        return cls(
            host=os.getenv(f"{prefix}HOST", cls.host),
            port=int(os.getenv(f"{prefix}PORT", cls.port)),
            user=os.getenv(f"{prefix}USER", cls.user),
            password=os.getenv(f"{prefix}PASSWORD", cls.password),
            database=os.getenv(f"{prefix}NAME", cls.database),
            pool_name=os.getenv(f"{prefix}POOL_NAME", cls.pool_name),
            pool_size=int(os.getenv(f"{prefix}POOL_SIZE", cls.pool_size)),
        )


@dataclass(frozen=True)
class TranslationConfig:
    """Settings for the DeepL ingredient translation API."""

    auth_key: str | None = None
    api_url: str = "https://api-free.deepl.com/v2/translate"
    source_lang: str = "ID"
    target_lang: str = "EN-US"
    timeout: int = 10

    @classmethod
    def from_env(cls, prefix: str = "DEEPL_") -> "TranslationConfig":
        """Create the configuration from environment variables."""

        return cls(
            auth_key=os.getenv(f"{prefix}AUTH_KEY"),
            api_url=os.getenv(f"{prefix}API_URL", cls.api_url),
            source_lang=os.getenv(f"{prefix}SOURCE_LANG", cls.source_lang),
            target_lang=os.getenv(f"{prefix}TARGET_LANG", cls.target_lang),
            timeout=int(os.getenv(f"{prefix}TIMEOUT", cls.timeout)),
        )


@dataclass(frozen=True)
class NutritionApiConfig:
    """Settings for the Edamam nutrition analysis API."""

    url: str = "https://api.edamam.com/api/nutrition-details"
    app_id: str | None = None
    app_key: str | None = None
    timeout: int = 20

    @classmethod
    def from_env(cls, prefix: str = "EDAMAM_") -> "NutritionApiConfig":
        """Create the configuration from environment variables."""

        return cls(
            url=os.getenv(f"{prefix}API_URL", cls.url),
            app_id=os.getenv(f"{prefix}APP_ID"),
            app_key=os.getenv(f"{prefix}APP_KEY"),
            timeout=int(os.getenv(f"{prefix}TIMEOUT", cls.timeout)),
        )


@dataclass(frozen=True)
class AppConfig:
    """Top level application configuration."""

    database: DatabaseConfig = DatabaseConfig()
    translation: TranslationConfig = TranslationConfig()
    nutrition: NutritionApiConfig = NutritionApiConfig()
    page_size: int = 10
    secret_key: str = "dev-secret-key"
    trust_user_header: bool = False

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create the configuration from environment variables."""

        database = DatabaseConfig.from_env()
        translation = TranslationConfig.from_env()
        nutrition = NutritionApiConfig.from_env()
        page_size = int(os.getenv("PAGE_SIZE", cls.page_size))
        secret_key = os.getenv("SECRET_KEY", cls.secret_key)
        trust_user_header = _strtobool(os.getenv("TRUST_USER_HEADER", "false"))
        return cls(
            database=database,
            translation=translation,
            nutrition=nutrition,
            page_size=page_size,
            secret_key=secret_key,
            trust_user_header=trust_user_header,
        )
