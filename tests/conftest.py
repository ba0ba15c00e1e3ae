from unittest.mock import MagicMock

import pytest

from shop_translator.app_config import AppConfig
from shop_translator.models import Language


@pytest.fixture
def app_config():
    """Configuration for tests: no delays, no progress bars, no token budget (avoids loading a tokenizer)."""
    return AppConfig(
        api_key="sk-ant-test-key",
        source_language="de-DE",
        chunk_delay_seconds=0,
        max_chunk_tokens=None,
        show_progress=False,
    )


@pytest.fixture
def mock_client():
    """Stands in for TranslationClient; tests set translate_batch return values."""
    return MagicMock()


@pytest.fixture
def mock_languages():
    """Language directory knowing German (source), French and English."""
    languages = {
        "lang-de": Language(id="lang-de", locale_code="de-DE", name="Deutsch"),
        "lang-fr": Language(id="lang-fr", locale_code="fr-FR", name="Français"),
        "lang-en": Language(id="lang-en", locale_code="en-GB", name="English"),
    }
    by_locale = {language.locale_code: language.id for language in languages.values()}

    directory = MagicMock()
    directory.resolve_language.side_effect = languages.get
    directory.resolve_language_id_by_locale.side_effect = by_locale.get
    directory.list_languages.return_value = list(languages.values())
    return directory


@pytest.fixture
def mock_source_store():
    return MagicMock()


@pytest.fixture
def mock_target_store():
    return MagicMock()
