"""
Tests for health classification and remediation
"""
import pytest

from content_translator.models.translation import TranslateJobResult
from content_translator.services.health import HealthCheckAggregator
from content_translator.services.translator import BatchTranslator
from content_translator.utils.exceptions import ValidationError


class RecordingTranslator:
    """Records translate calls and reports every key as translated."""

    def __init__(self, max_keys=2000, fail_for=()):
        self.max_keys = max_keys
        self.fail_for = set(fail_for)
        self.calls = []

    def translate(self, target_language, keys, source_language=None, cancel_event=None):
        self.calls.append((target_language, sorted(keys)))
        if target_language in self.fail_for:
            raise RuntimeError(f"{target_language} exploded")
        return TranslateJobResult(language=target_language, translated=len(keys))


@pytest.fixture
def recorder():
    return RecordingTranslator()


@pytest.fixture
def aggregator(translations, languages, recorder):
    return HealthCheckAggregator(translations, languages, recorder, source_language='en')


@pytest.fixture
def mixed_corpus(add_row, only_languages):
    only_languages('no')
    add_row('a', 'en', 'Alpha')
    add_row('b', 'en', 'Beta')
    add_row('c', 'en', 'Gamma')
    add_row('empty', 'en', '')
    add_row('intentional', 'en', '', is_intentionally_empty=True)

    add_row('a', 'no', 'a', is_stale=True)
    add_row('b', 'no', 'Beta NO', is_stale=True)
    add_row('empty', 'no', 'Tom', is_stale=True)
    add_row('ghost', 'no', 'Spøkelse')
    add_row('intentional', 'no', None)
    add_row('a', 'fr', 'a')


class TestClassification:
    """Test the health partition."""

    def test_snapshot_counts(self, aggregator, mixed_corpus):
        snapshot = aggregator.scan()

        assert snapshot.to_dict() == {
            'brokenCount': 1,
            'missingCount': 1,
            'staleCount': 1,
            'orphanedCount': 2,
            'healthyCount': 6,
            'totalCount': 10,
        }
        assert snapshot.has_issues is True

    def test_row_level_classes(self, aggregator, mixed_corpus):
        report = aggregator.classify()

        assert report.broken == [('a', 'no')]
        assert report.stale == {'no': ['b']}
        assert sorted(report.orphaned) == [('empty', 'no'), ('ghost', 'no')]
        assert report.missing == {'no': ['c']}

    def test_classes_are_disjoint(self, aggregator, mixed_corpus):
        report = aggregator.classify()

        broken = set(report.broken)
        stale = {(key, lang) for lang, keys in report.stale.items() for key in keys}
        orphaned = set(report.orphaned)
        assert not (broken & stale or broken & orphaned or stale & orphaned)

    def test_intentionally_empty_target_not_orphaned(self, aggregator, add_row, only_languages):
        only_languages('sv')
        add_row('a', 'en', '')
        add_row('a', 'sv', None, is_intentionally_empty=True)

        snapshot = aggregator.scan()

        assert snapshot.orphaned_count == 0
        assert snapshot.healthy_count == 2

    def test_clean_corpus(self, aggregator, add_row, only_languages):
        only_languages('da')
        add_row('a', 'en', 'Alpha')
        add_row('a', 'da', 'Alfa')

        snapshot = aggregator.scan()

        assert snapshot.has_issues is False
        assert snapshot.healthy_count == snapshot.total_count == 2


class TestFixAll:
    """Test the two-phase fix procedure."""

    @pytest.fixture
    def damaged(self, add_row, only_languages):
        only_languages('no', 'sv')
        for key in ('k1', 'k2', 'k3', 'k4'):
            add_row(key, 'en', f"Source {key}")
        add_row('k1', 'no', 'k1')
        add_row('k2', 'no', 'k2')
        add_row('k1', 'sv', 'k1')
        for key in ('k3', 'k4'):
            add_row(key, 'no', f"old {key}", is_stale=True)
        for key in ('k2', 'k3', 'k4'):
            add_row(key, 'sv', f"old {key}", is_stale=True)

    def test_deletes_broken_then_translates_per_language(self, aggregator, recorder, translations, damaged):
        report = aggregator.fix_all()

        assert report.deleted_broken == 3
        assert translations.get('k1', 'no') is None
        assert translations.get('k1', 'sv') is None
        assert recorder.calls == [
            ('no', ['k3', 'k4']),
            ('sv', ['k2', 'k3', 'k4']),
        ]

    def test_language_failure_is_isolated(self, translations, languages, damaged):
        recorder = RecordingTranslator(fail_for={'no'})
        aggregator = HealthCheckAggregator(translations, languages, recorder, source_language='en')

        report = aggregator.fix_all()

        by_language = {lang.language: lang for lang in report.languages}
        assert 'exploded' in by_language['no'].error
        assert by_language['no'].failed == 2
        assert by_language['sv'].translated == 3

    def test_large_stale_sets_are_chunked(self, translations, languages, add_row, only_languages):
        only_languages('fi')
        for i in range(5):
            add_row(f"k{i}", 'en', f"Source {i}")
            add_row(f"k{i}", 'fi', f"old {i}", is_stale=True)
        recorder = RecordingTranslator(max_keys=2)
        aggregator = HealthCheckAggregator(translations, languages, recorder, source_language='en')

        aggregator.fix_all()

        assert [len(keys) for _, keys in recorder.calls] == [2, 2, 1]

    def test_orphans_reported_not_fixed(self, aggregator, recorder, translations, mixed_corpus):
        report = aggregator.fix_all()

        assert sorted(report.to_dict()['orphaned'], key=lambda o: o['key']) == [
            {'key': 'empty', 'language': 'no'},
            {'key': 'ghost', 'language': 'no'},
        ]
        assert translations.get('ghost', 'no').translated_text == 'Spøkelse'
        assert recorder.calls == [('no', ['b'])]

    def test_fix_with_real_translator(self, translations, languages, fake_client, damaged):
        translator = BatchTranslator(client=fake_client, translations=translations, source_language='en')
        aggregator = HealthCheckAggregator(translations, languages, translator, source_language='en')

        aggregator.fix_all()
        snapshot = aggregator.scan()

        assert snapshot.broken_count == 0
        assert snapshot.stale_count == 0
        assert translations.get('k3', 'sv').translated_text == 'sv:Source k3'
        assert snapshot.missing_count == 3


class TestRetranslateAll:
    """Test the confirmed full re-translation."""

    def test_requires_confirmation(self, aggregator, recorder, mixed_corpus):
        with pytest.raises(ValidationError):
            aggregator.retranslate_all()
        with pytest.raises(ValidationError):
            aggregator.retranslate_all(confirm='yes')
        assert recorder.calls == []

    def test_every_language_gets_full_key_set(self, aggregator, recorder, add_row, only_languages):
        only_languages('no', 'de')
        add_row('a', 'en', 'Alpha')
        add_row('b', 'en', 'Beta')
        add_row('blank', 'en', '')

        report = aggregator.retranslate_all(confirm=True)

        assert recorder.calls == [('de', ['a', 'b']), ('no', ['a', 'b'])]
        assert report.to_dict()['translated'] == 4
