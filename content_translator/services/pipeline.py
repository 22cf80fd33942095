"""
Pipeline Runner
===============
Runs sync, translate, evaluate and approve steps, alone or in sequence.
"""
import threading
from typing import Callable, Dict, List, Optional

from content_translator.config import config
from content_translator.config.constants import PipelineAction
from content_translator.database.repositories import TranslationRepository, LanguageRepository
from content_translator.models.translation import PipelineResult, PipelineStep
from content_translator.services.evaluator import QualityEvaluator
from content_translator.services.key_sync import KeySyncEngine
from content_translator.services.translator import BatchTranslator
from content_translator.utils.exceptions import ValidationError
from content_translator.utils.logging import get_logger, debug_print
from content_translator.utils.text_processing import split_into_batches
from content_translator.utils.validators import validate_language_code

FULL_PIPELINE_STEPS = [
    PipelineAction.SYNC,
    PipelineAction.TRANSLATE,
    PipelineAction.EVALUATE,
    PipelineAction.APPROVE,
]


class PipelineRunner:
    """Coordinates the pipeline services for one or more languages."""

    def __init__(
        self,
        translations: TranslationRepository = None,
        languages: LanguageRepository = None,
        sync_engine: KeySyncEngine = None,
        translator: BatchTranslator = None,
        evaluator: QualityEvaluator = None,
        source_language: str = None
    ):
        self.translations = translations or TranslationRepository()
        self.languages = languages or LanguageRepository(self.translations.db)
        self.source_language = source_language or config.pipeline.source_language
        self.sync_engine = sync_engine or KeySyncEngine(
            self.translations, self.languages, self.source_language
        )
        self._translator = translator
        self._evaluator = evaluator
        self.logger = get_logger().app_logger

    @property
    def translator(self) -> BatchTranslator:
        if self._translator is None:
            self._translator = BatchTranslator(
                translations=self.translations, source_language=self.source_language
            )
        return self._translator

    @property
    def evaluator(self) -> QualityEvaluator:
        if self._evaluator is None:
            self._evaluator = QualityEvaluator(
                translations=self.translations, source_language=self.source_language
            )
        return self._evaluator

    def _resolve_languages(self, language_codes: Optional[List[str]]) -> List[str]:
        enabled = [lang.code for lang in self.languages.get_enabled_targets(self.source_language)]
        if language_codes is None:
            return enabled

        errors = []
        for code in language_codes:
            valid, error = validate_language_code(code)
            if not valid:
                errors.append(error)
            elif code == self.source_language:
                errors.append(f"{code} is the source language")
        if errors:
            raise ValidationError(errors)
        return list(dict.fromkeys(language_codes))

    def run(
        self,
        action,
        language_codes: Optional[List[str]] = None,
        auto_approve_threshold: float = None,
        cancel_event: Optional[threading.Event] = None
    ) -> PipelineResult:
        """
        Run a pipeline action.

        Args:
            action: One of sync, translate, evaluate, approve, full-pipeline
            language_codes: Languages to work on (default: enabled targets)
            auto_approve_threshold: Score needed for approval
            cancel_event: Passed to translation and evaluation jobs

        Returns:
            PipelineResult with one entry per executed step

        Raises:
            ValidationError: for an unknown action or invalid languages
        """
        try:
            action = PipelineAction(action)
        except ValueError:
            valid = ', '.join(a.value for a in PipelineAction)
            raise ValidationError([f"Unknown action {action!r}, expected one of: {valid}"])

        codes = self._resolve_languages(language_codes)
        steps = FULL_PIPELINE_STEPS if action == PipelineAction.FULL_PIPELINE else [action]

        handlers: Dict[PipelineAction, Callable[[], PipelineStep]] = {
            PipelineAction.SYNC: lambda: self._sync(codes, language_codes),
            PipelineAction.TRANSLATE: lambda: self._translate(codes, cancel_event),
            PipelineAction.EVALUATE: lambda: self._evaluate(codes, cancel_event),
            PipelineAction.APPROVE: lambda: self._approve(auto_approve_threshold),
        }

        result = PipelineResult(action=action.value)
        self.logger.info(f"Pipeline {action.value} started for {', '.join(codes) or 'no languages'}")

        for step in steps:
            if cancel_event is not None and cancel_event.is_set():
                self.logger.warning(f"Pipeline {action.value} cancelled before {step.value}")
                break
            debug_print(f"▶️ Pipeline step: {step.value}", 'INFO', 'PIPELINE')
            try:
                result.steps.append(handlers[step]())
            except Exception as e:
                self.logger.exception(f"Pipeline step {step.value} failed: {e}")
                result.steps.append(PipelineStep(step.value, False, {'error': str(e)}))

        self.logger.info(f"Pipeline {action.value} finished, success={result.success}")
        return result

    def _sync(self, codes: List[str], requested: Optional[List[str]]) -> PipelineStep:
        sync = self.sync_engine.sync(codes if requested is not None else None)
        return PipelineStep(PipelineAction.SYNC.value, True, sync.to_dict())

    def _translate(self, codes: List[str], cancel_event: Optional[threading.Event]) -> PipelineStep:
        """Translate every row that has no text yet."""
        languages = []
        success = True
        for code in codes:
            keys = self.translations.get_untranslated_keys(code)
            jobs = []
            for chunk in split_into_batches(keys, self.translator.max_keys):
                job = self.translator.translate(code, chunk, cancel_event=cancel_event)
                jobs.append(job.to_dict())
                success = success and not job.failed
            languages.append({
                'language': code,
                'requested': len(keys),
                'translated': sum(job['count'] for job in jobs),
                'failed': sum(job['failed'] for job in jobs),
            })
        return PipelineStep(PipelineAction.TRANSLATE.value, success, {'languages': languages})

    def _evaluate(self, codes: List[str], cancel_event: Optional[threading.Event]) -> PipelineStep:
        languages = []
        success = True
        for code in codes:
            try:
                run = self.evaluator.evaluate(code, cancel_event=cancel_event)
                languages.append(run.to_dict())
            except Exception as e:
                self.logger.error(f"Evaluation of {code} not run: {e}")
                languages.append({'language': code, 'error': str(e)})
                success = False
        return PipelineStep(PipelineAction.EVALUATE.value, success, {'languages': languages})

    def _approve(self, threshold: Optional[float]) -> PipelineStep:
        if threshold is None:
            threshold = config.evaluation.auto_approve_threshold
        approved = self.evaluator.auto_approve(threshold)
        return PipelineStep(PipelineAction.APPROVE.value, True, {'approved': approved, 'threshold': threshold})
