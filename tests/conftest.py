"""
Shared fixtures: temporary databases, seeded corpora and a fake AI client.
"""
import os
import sys
import json
import tempfile
from datetime import datetime, timedelta, timezone

import pytest

# Setup test environment before the package reads its configuration
os.environ.setdefault('VERBOSE_DEBUG', 'false')
os.environ.setdefault('CONTENT_TRANSLATOR_APP_DIR', tempfile.mkdtemp(prefix='content-translator-'))

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from content_translator.database import (  # noqa: E402
    Database,
    TranslationRepository,
    LanguageRepository,
    EvaluationProgressRepository
)
from content_translator.models.translation import TranslationRow  # noqa: E402
from content_translator.services.ai_client import AIResponse  # noqa: E402


class FakeAIClient:
    """
    Stands in for AIGatewayClient.

    By default every text is "translated" to "<lang>:<text>" and every
    translation scores 90. Queue responses to script failures.
    """

    def __init__(self):
        self.translate_calls = []
        self.evaluate_calls = []
        self.translate_queue = []
        self.evaluate_queue = []
        self.translate_handler = None
        self.score = 90

    def is_configured(self):
        return True

    def translate(self, items, target_language, system_prompt):
        self.translate_calls.append({
            'items': items,
            'target_language': target_language,
            'system_prompt': system_prompt,
        })
        if self.translate_queue:
            return self.translate_queue.pop(0)
        if self.translate_handler:
            return self.translate_handler(items, target_language)
        entries = [{'key': item['key'], 'text': f"{target_language}:{item['text']}"} for item in items]
        return AIResponse(success=True, text=json.dumps(entries), status_code=200)

    def evaluate(self, items, target_language):
        self.evaluate_calls.append({'items': items, 'target_language': target_language})
        if self.evaluate_queue:
            return self.evaluate_queue.pop(0)
        scores = [{'key': item['key'], 'score': self.score, 'issues': []} for item in items]
        return AIResponse(success=True, text=json.dumps(scores), status_code=200)


class FakeClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, start=None):
        self.now = start or datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def database(tmp_path):
    db = Database(tmp_path / 'content.db')
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def translations(database):
    return TranslationRepository(database)


@pytest.fixture
def languages(database):
    return LanguageRepository(database)


@pytest.fixture
def progress_repo(database):
    return EvaluationProgressRepository(database)


@pytest.fixture
def fake_client():
    return FakeAIClient()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def no_sleep():
    """Records requested sleeps instead of sleeping; pass no_sleep.append."""
    return []


@pytest.fixture
def add_row(translations):
    """Insert a translation row with sensible defaults."""
    def _add(key, language, text=None, **kwargs):
        kwargs.setdefault('page_location', key.split('.')[0])
        row = TranslationRow(translation_key=key, language_code=language, translated_text=text, **kwargs)
        translations.save(row)
        return row
    return _add


@pytest.fixture
def only_languages(languages):
    """Restrict the enabled target languages to the given codes."""
    def _only(*codes):
        for lang in languages.get_all():
            if lang.code != 'en':
                languages.set_enabled(lang.code, lang.code in codes)
    return _only
