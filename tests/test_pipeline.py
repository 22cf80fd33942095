"""
Tests for the pipeline runner
"""
import threading

import pytest

from content_translator.config.constants import EvaluationStatus
from content_translator.services.evaluator import QualityEvaluator
from content_translator.services.pipeline import PipelineRunner
from content_translator.services.progress import EvaluationProgressTracker
from content_translator.services.translator import BatchTranslator
from content_translator.utils.exceptions import ValidationError


@pytest.fixture
def runner(translations, languages, progress_repo, fake_client, clock, no_sleep, only_languages):
    only_languages('no', 'sv')
    translator = BatchTranslator(
        client=fake_client, translations=translations, source_language='en', sleep=no_sleep.append
    )
    evaluator = QualityEvaluator(
        client=fake_client,
        translations=translations,
        tracker=EvaluationProgressTracker(progress_repo, translations, clock=clock),
        source_language='en',
        sleep=no_sleep.append
    )
    return PipelineRunner(
        translations=translations,
        languages=languages,
        translator=translator,
        evaluator=evaluator,
        source_language='en'
    )


@pytest.fixture
def source(add_row):
    add_row('home.title', 'en', 'Welcome')
    add_row('home.body', 'en', 'Book your service')


class TestPipelineRunner:
    """Test single actions and the full pipeline."""

    def test_sync_step(self, runner, translations, source):
        result = runner.run('sync')

        assert result.success is True
        assert result.to_dict()['steps'][0]['rowsCreated'] == 4
        assert translations.get_keys('sv') == {'home.title', 'home.body'}

    def test_translate_fills_empty_rows(self, runner, translations, fake_client, source):
        runner.run('sync')

        result = runner.run('translate', ['no'])

        step = result.steps[0]
        assert step.success is True
        assert step.details['languages'] == [
            {'language': 'no', 'requested': 2, 'translated': 2, 'failed': 0}
        ]
        assert translations.get('home.title', 'no').translated_text == 'no:Welcome'
        assert translations.get_untranslated_keys('sv') == ['home.body', 'home.title']

    def test_full_pipeline(self, runner, translations, progress_repo, fake_client, source):
        fake_client.score = 92

        result = runner.run('full-pipeline', auto_approve_threshold=90)

        assert [step.name for step in result.steps] == ['sync', 'translate', 'evaluate', 'approve']
        assert result.success is True
        assert result.steps[-1].details['approved'] == 4
        assert progress_repo.get('sv').status == EvaluationStatus.COMPLETED
        assert translations.get('home.body', 'sv').approved is True

    def test_low_scores_not_approved(self, runner, translations, fake_client, source):
        fake_client.score = 60

        result = runner.run('full-pipeline')

        assert result.steps[-1].details['approved'] == 0
        assert translations.get('home.body', 'no').approved is False

    def test_step_failure_recorded(self, runner, fake_client, progress_repo, source, clock):
        runner.run('sync')
        runner.evaluator.tracker.start('no')

        result = runner.run('evaluate')

        assert result.success is False
        errors = [lang for lang in result.steps[0].details['languages'] if 'error' in lang]
        assert [lang['language'] for lang in errors] == ['no']

    def test_cancelled_before_steps(self, runner, fake_client, source):
        cancel = threading.Event()
        cancel.set()

        result = runner.run('full-pipeline', cancel_event=cancel)

        assert result.steps == []
        assert fake_client.translate_calls == []

    def test_unknown_action(self, runner):
        with pytest.raises(ValidationError):
            runner.run('publish')

    def test_source_language_not_a_target(self, runner):
        with pytest.raises(ValidationError):
            runner.run('translate', ['en'])
