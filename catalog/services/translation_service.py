"""Translate free-text ingredient lists into the nutrition API's language."""
from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence

import requests

from ..config import TranslationConfig
from ..errors import TranslationUnavailable
from .http_client import HttpClient

logger = logging.getLogger(__name__)


class Translator(Protocol):
    """Protocol describing a batch text translation provider."""

    def translate(
        self, texts: Sequence[str], source_lang: str, target_lang: str
    ) -> List[str]:
        """Return *texts* translated, in the same order and count."""


class DeepLTranslator:
    """Translator backed by the DeepL REST API."""

    def __init__(self, auth_key: Optional[str], api_url: str, client: HttpClient) -> None:
        self._auth_key = auth_key
        self._api_url = api_url
        self._client = client

    @classmethod
    def from_config(cls, config: TranslationConfig) -> "DeepLTranslator":
        return cls(config.auth_key, config.api_url, HttpClient(timeout=config.timeout))

    def translate(
        self, texts: Sequence[str], source_lang: str, target_lang: str
    ) -> List[str]:
        if not self._auth_key:
            raise TranslationUnavailable("DeepL auth key is not configured")

        form = [("text", text) for text in texts]
        form.append(("source_lang", source_lang))
        form.append(("target_lang", target_lang))
        try:
            response = self._client.post(
                self._api_url,
                data=form,
                headers={"Authorization": f"DeepL-Auth-Key {self._auth_key}"},
            )
            payload = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise TranslationUnavailable(f"DeepL request failed: {exc}") from exc

        translations = payload.get("translations") if isinstance(payload, dict) else None
        if not isinstance(translations, list):
            raise TranslationUnavailable("DeepL response has no translations")
        try:
            return [item["text"] for item in translations]
        except (KeyError, TypeError) as exc:
            raise TranslationUnavailable("DeepL response is malformed") from exc


class IngredientNormalizer:
    """Translate ingredient strings from the source to the target language."""

    def __init__(
        self,
        translator: Translator,
        source_lang: str = "ID",
        target_lang: str = "EN-US",
    ) -> None:
        self._translator = translator
        self._source_lang = source_lang
        self._target_lang = target_lang

    @classmethod
    def from_config(cls, config: TranslationConfig) -> "IngredientNormalizer":
        return cls(
            DeepLTranslator.from_config(config),
            source_lang=config.source_lang,
            target_lang=config.target_lang,
        )

    def normalize(self, ingredients: Sequence[str]) -> List[str]:
        if not ingredients:
            return []

        try:
            translated = self._translator.translate(
                list(ingredients), self._source_lang, self._target_lang
            )
        except TranslationUnavailable:
            logger.warning("Ingredient translation failed", exc_info=True)
            raise
        except Exception as exc:
            logger.warning("Ingredient translation failed", exc_info=True)
            raise TranslationUnavailable(str(exc)) from exc

        if len(translated) != len(ingredients):
            raise TranslationUnavailable(
                f"Expected {len(ingredients)} translations, got {len(translated)}"
            )
        return list(translated)
