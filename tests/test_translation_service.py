"""Tests for ingredient translation."""
from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from catalog.config import TranslationConfig
from catalog.errors import TranslationUnavailable
from catalog.services import DeepLTranslator, IngredientNormalizer


class FakeTranslator:
    def __init__(self, result=None, error=None) -> None:
        self.result = result
        self.error = error
        self.calls = []

    def translate(self, texts, source_lang, target_lang):
        self.calls.append((list(texts), source_lang, target_lang))
        if self.error:
            raise self.error
        return self.result


def test_normalize_preserves_order() -> None:
    translator = FakeTranslator(result=["egg", "rice", "salt"])
    normalizer = IngredientNormalizer(translator, source_lang="ID", target_lang="EN-US")

    assert normalizer.normalize(["telur", "nasi", "garam"]) == ["egg", "rice", "salt"]
    assert translator.calls == [(["telur", "nasi", "garam"], "ID", "EN-US")]


def test_normalize_empty_list_skips_translator() -> None:
    translator = FakeTranslator(result=[])

    assert IngredientNormalizer(translator).normalize([]) == []
    assert translator.calls == []


def test_normalize_wraps_unexpected_errors() -> None:
    normalizer = IngredientNormalizer(FakeTranslator(error=ConnectionError("offline")))

    with pytest.raises(TranslationUnavailable):
        normalizer.normalize(["telur"])


def test_normalize_rejects_count_mismatch() -> None:
    normalizer = IngredientNormalizer(FakeTranslator(result=["egg"]))

    with pytest.raises(TranslationUnavailable):
        normalizer.normalize(["telur", "nasi"])


def _http_client(payload=None, error=None) -> MagicMock:
    client = MagicMock()
    if error is not None:
        client.post.side_effect = error
    else:
        client.post.return_value.json.return_value = payload
    return client


def test_deepl_sends_texts_and_languages() -> None:
    client = _http_client({"translations": [{"text": "egg"}, {"text": "rice"}]})
    translator = DeepLTranslator("secret", "https://deepl.test/v2/translate", client)

    assert translator.translate(["telur", "nasi"], "ID", "EN-US") == ["egg", "rice"]

    args, kwargs = client.post.call_args
    assert args == ("https://deepl.test/v2/translate",)
    assert kwargs["data"] == [
        ("text", "telur"),
        ("text", "nasi"),
        ("source_lang", "ID"),
        ("target_lang", "EN-US"),
    ]
    assert kwargs["headers"] == {"Authorization": "DeepL-Auth-Key secret"}


def test_deepl_requires_auth_key() -> None:
    client = _http_client({"translations": []})
    translator = DeepLTranslator(None, "https://deepl.test", client)

    with pytest.raises(TranslationUnavailable):
        translator.translate(["telur"], "ID", "EN-US")
    client.post.assert_not_called()


@pytest.mark.parametrize(
    "payload",
    [{}, {"translations": "nope"}, {"translations": [{"detected": "ID"}]}, ["egg"]],
)
def test_deepl_malformed_responses(payload) -> None:
    translator = DeepLTranslator("secret", "https://deepl.test", _http_client(payload))

    with pytest.raises(TranslationUnavailable):
        translator.translate(["telur"], "ID", "EN-US")


def test_deepl_transport_error() -> None:
    client = _http_client(error=requests.HTTPError("456 Quota exceeded"))
    translator = DeepLTranslator("secret", "https://deepl.test", client)

    with pytest.raises(TranslationUnavailable):
        translator.translate(["telur"], "ID", "EN-US")


def test_from_config_uses_configured_languages() -> None:
    config = TranslationConfig(auth_key="k", source_lang="DE", target_lang="EN-GB")

    normalizer = IngredientNormalizer.from_config(config)

    assert normalizer._source_lang == "DE"
    assert normalizer._target_lang == "EN-GB"
