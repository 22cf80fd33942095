"""
Tests for key sync and the translation repository
"""
import pytest

from content_translator.services.key_sync import KeySyncEngine
from content_translator.models.translation import TranslationRow
from content_translator.utils.exceptions import ValidationError


@pytest.fixture
def engine(translations, languages):
    return KeySyncEngine(translations, languages, source_language='en')


class TestKeySync:
    """Test creation of missing rows."""

    def test_creates_missing_keys_only(self, engine, translations, add_row):
        for key in ('a', 'b', 'c'):
            add_row(key, 'en', f"text {key}")
        add_row('a', 'no', 'tekst a')

        result = engine.sync(['no'])

        assert result.per_language == {'no': 2}
        assert result.rows_created == 2
        assert translations.get_keys('no') == {'a', 'b', 'c'}
        for key in ('b', 'c'):
            row = translations.get(key, 'no')
            assert row.translated_text is None
            assert row.is_stale is True

    def test_existing_row_untouched(self, engine, translations, add_row):
        add_row('a', 'en', 'text a')
        add_row('a', 'no', 'tekst a', approved=True, quality_score=95)

        engine.sync(['no'])

        row = translations.get('a', 'no')
        assert row.translated_text == 'tekst a'
        assert row.approved is True
        assert row.quality_score == 95
        assert row.is_stale is False

    def test_second_run_creates_nothing(self, engine, add_row):
        for key in ('home.title', 'home.body'):
            add_row(key, 'en', key.upper())

        first = engine.sync()
        second = engine.sync()

        assert first.rows_created == 2 * 5
        assert second.rows_created == 0
        assert all(count == 0 for count in second.per_language.values())

    def test_copies_page_and_context(self, engine, translations, add_row):
        add_row('pricing.hero.title', 'en', 'Pricing', context='Hero headline')

        engine.sync(['sv'])

        row = translations.get('pricing.hero.title', 'sv')
        assert row.page_location == 'pricing'
        assert row.context == 'Hero headline'

    def test_never_deletes(self, engine, translations, add_row):
        add_row('a', 'en', 'text a')
        add_row('legacy.key', 'no', 'gammel')

        engine.sync(['no'])

        assert translations.get('legacy.key', 'no') is not None

    def test_disabled_languages_skipped(self, engine, translations, add_row, only_languages):
        add_row('a', 'en', 'text a')
        only_languages('no')

        result = engine.sync()

        assert list(result.per_language) == ['no']
        assert translations.get_keys('sv') == set()
        assert translations.get_keys('fr') == set()

    def test_source_language_never_synced(self, engine, add_row):
        add_row('a', 'en', 'text a')

        result = engine.sync(['en', 'no'])

        assert 'en' not in result.per_language


class TestSourceEdits:
    """Test creating and editing canonical content."""

    def test_new_key_creates_source_row(self, engine, translations):
        result = engine.set_source_text('pricing.hero.title', 'Pricing', context='Hero headline')

        assert result.to_dict() == {
            'translationKey': 'pricing.hero.title',
            'created': True,
            'changed': True,
            'markedStale': 0,
        }
        row = translations.get('pricing.hero.title', 'en')
        assert row.translated_text == 'Pricing'
        assert row.page_location == 'pricing'
        assert row.context == 'Hero headline'
        assert translations.get_keys('no') == set()

    def test_edit_marks_translations_stale(self, engine, translations, add_row):
        add_row('a', 'en', 'old', context='Button')
        add_row('a', 'no', 'gammel')
        add_row('a', 'sv', None)

        result = engine.set_source_text('a', 'new', context='Primary button')

        assert result.created is False
        assert result.changed is True
        assert result.marked_stale == 2
        source = translations.get('a', 'en')
        assert source.translated_text == 'new'
        assert source.context == 'Primary button'
        assert translations.get('a', 'no').is_stale is True

    def test_edit_without_context_keeps_it(self, engine, translations, add_row):
        add_row('a', 'en', 'old', context='Button')

        engine.set_source_text('a', 'new')

        assert translations.get('a', 'en').context == 'Button'

    def test_unchanged_text_is_a_no_op(self, engine, translations, add_row):
        add_row('a', 'en', 'same', context='Button')
        add_row('a', 'no', 'lik')

        result = engine.set_source_text('a', 'same')

        assert result.changed is False
        assert result.marked_stale == 0
        assert translations.get('a', 'no').is_stale is False

    @pytest.mark.parametrize('key, text, context', [
        ('', 'text', None),
        (None, 'text', None),
        ('a', 42, None),
        ('a', 'text', ['ctx']),
    ])
    def test_invalid_edit(self, engine, translations, key, text, context):
        with pytest.raises(ValidationError):
            engine.set_source_text(key, text, context)
        assert translations.get_keys('en') == set()


class TestTranslationRepository:
    """Test the upsert behaviour writers rely on."""

    def test_upsert_is_idempotent(self, translations):
        records = [('home.title', 'Hjem', None), ('home.body', 'Tekst', 'ctx')]

        translations.upsert_translations('no', records)
        translations.upsert_translations('no', records)

        rows = translations.get_by_language('no')
        assert [row.translation_key for row in rows] == ['home.body', 'home.title']
        assert translations.get('home.body', 'no').context == 'ctx'

    def test_upsert_clears_review_state(self, translations, add_row):
        add_row('home.title', 'no', 'Gammel', approved=True, quality_score=91, is_stale=True)

        translations.upsert_translations('no', [('home.title', 'Ny', None)])

        row = translations.get('home.title', 'no')
        assert row.translated_text == 'Ny'
        assert row.approved is False
        assert row.quality_score is None
        assert row.is_stale is False
        assert row.page_location == 'home'

    def test_source_change_marks_targets_stale(self, translations, add_row):
        add_row('a', 'en', 'old')
        add_row('a', 'no', 'gammel')
        add_row('a', 'sv', 'gammal')

        marked = translations.update_source_text('a', 'en', 'new')

        assert marked == 2
        assert translations.get('a', 'en').translated_text == 'new'
        assert translations.get('a', 'en').is_stale is False
        assert translations.get('a', 'no').is_stale is True

    def test_untranslated_keys_skip_intentionally_empty(self, translations, add_row):
        add_row('a', 'no', None)
        add_row('b', 'no', '   ')
        add_row('c', 'no', None, is_intentionally_empty=True)
        add_row('d', 'no', 'ferdig')

        assert translations.get_untranslated_keys('no') == ['a', 'b']

    def test_score_constraint(self, translations):
        from content_translator.utils.exceptions import PersistenceError

        with pytest.raises(PersistenceError):
            translations.save(TranslationRow('a', 'no', 'x', quality_score=120))
