"""
Quality Evaluator
=================
Scores existing translations in resumable batches and auto-approves
the ones that score high enough.
"""
import time
import threading
from typing import Callable, Dict, List, Optional

from content_translator.config import config
from content_translator.config.constants import EvaluationStatus
from content_translator.database.repositories import TranslationRepository
from content_translator.models.translation import (
    EvaluationProgress,
    EvaluationRunResult,
    KeyEvaluation,
    TranslationRow
)
from content_translator.services.ai_client import AIGatewayClient, get_ai_client
from content_translator.services.progress import EvaluationProgressTracker
from content_translator.utils.exceptions import (
    ExternalServiceError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
    ValidationError
)
from content_translator.utils.logging import get_logger, debug_print
from content_translator.utils.text_processing import split_into_batches, parse_quality_scores
from content_translator.utils.validators import validate_language_code


class QualityEvaluator:
    """Runs quality evaluation for one language at a time."""

    def __init__(
        self,
        client: AIGatewayClient = None,
        translations: TranslationRepository = None,
        tracker: EvaluationProgressTracker = None,
        source_language: str = None,
        batch_size: int = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.client = client or get_ai_client()
        self.translations = translations or TranslationRepository()
        self.tracker = tracker or EvaluationProgressTracker(translations=self.translations)
        self.source_language = source_language or config.pipeline.source_language
        self.batch_size = batch_size or config.evaluation.batch_size
        self.sleep = sleep
        self.logger = get_logger().evaluation_logger

    def _validate_language(self, language_code: str):
        valid, error = validate_language_code(language_code)
        if not valid:
            raise ValidationError([error])
        if language_code == self.source_language:
            raise ValidationError([f"{language_code} is the source language and is not evaluated"])

    def evaluate(
        self,
        language_code: str,
        resume: bool = False,
        cancel_event: Optional[threading.Event] = None
    ) -> EvaluationRunResult:
        """
        Evaluate every translation of a language, or continue a previous run.

        Args:
            language_code: Language to evaluate
            resume: Continue after the stored cursor instead of starting over
            cancel_event: Checked before every batch; once set the run is paused

        Returns:
            EvaluationRunResult for this invocation

        Raises:
            ValidationError: invalid language, or a live run already exists
            StaleJobError: the language has a stuck run that must be reset first
        """
        progress = self.begin(language_code, resume)
        return self.run(progress, cancel_event)

    def begin(self, language_code: str, resume: bool = False) -> EvaluationProgress:
        """Validate and move the progress record to in_progress."""
        self._validate_language(language_code)

        if resume:
            return self.tracker.resume(language_code)

        existing = self.tracker.ensure_live(language_code)
        if existing is not None and existing.status == EvaluationStatus.IN_PROGRESS:
            raise ValidationError([f"Evaluation already in progress for {language_code}"])
        return self.tracker.start(language_code)

    def run(
        self,
        progress: EvaluationProgress,
        cancel_event: Optional[threading.Event] = None
    ) -> EvaluationRunResult:
        """Evaluate the rows after the cursor of a record returned by begin()."""
        language_code = progress.language_code
        result = EvaluationRunResult(language=language_code, last_key=progress.last_evaluated_key)
        scores: List[float] = []

        try:
            source_texts = {
                row.translation_key: row.translated_text
                for row in self.translations.get_by_language(self.source_language)
            }
            rows = self.translations.get_by_language(language_code, after_key=progress.last_evaluated_key)
            batches = split_into_batches(rows, self.batch_size)
            self.logger.info(f"Evaluating {len(rows)} rows of {language_code} in {len(batches)} batches")

            for batch_number, batch in enumerate(batches, start=1):
                if self._should_stop(language_code, cancel_event):
                    result.cancelled = True
                    break

                debug_print(
                    f"🔍 {language_code}: evaluation batch {batch_number}/{len(batches)}",
                    'INFO', 'EVAL'
                )
                scores.extend(self._evaluate_batch(batch, source_texts, language_code, result))

                last_key = batch[-1].translation_key
                try:
                    self.tracker.advance(language_code, last_key, len(batch))
                except InvalidTransitionError:
                    # Paused or reset while the batch was in flight
                    result.cancelled = True
                    break
                result.last_key = last_key

            if not result.cancelled:
                try:
                    self.tracker.complete(language_code)
                    result.completed = True
                except InvalidTransitionError:
                    # Paused or reset after the last batch
                    result.cancelled = True
        except Exception as e:
            self.logger.exception(f"Evaluation of {language_code} failed: {e}")
            current = self.tracker.get(language_code)
            if current is not None and current.status == EvaluationStatus.IN_PROGRESS:
                self.tracker.fail(language_code, str(e))
            raise

        if scores:
            result.average_score = round(sum(scores) / len(scores), 1)
        self.logger.info(
            f"Evaluation run for {language_code}: {result.evaluated} scored, "
            f"{result.failed} failed, average={result.average_score}"
        )
        return result

    def _should_stop(self, language_code: str, cancel_event: Optional[threading.Event]) -> bool:
        current = self.tracker.get(language_code)
        if current is None or current.status != EvaluationStatus.IN_PROGRESS:
            return True
        if cancel_event is not None and cancel_event.is_set():
            self.tracker.pause(language_code)
            self.logger.info(f"Evaluation of {language_code} cancelled")
            return True
        return False

    def _evaluate_batch(
        self,
        batch: List[TranslationRow],
        source_texts: Dict[str, Optional[str]],
        language_code: str,
        result: EvaluationRunResult
    ) -> List[float]:
        """Score one batch; failures are counted, never raised."""
        items = [
            {
                'key': row.translation_key,
                'original': source_texts.get(row.translation_key) or '',
                'translation': row.translated_text,
            }
            for row in batch
            if not row.is_empty
        ]
        if not items:
            return []

        response = self.client.evaluate(items, language_code)
        if not response.success:
            self.logger.error(f"Evaluation request failed for {language_code}: {response.error}")
            if response.rate_limited:
                self.sleep(config.pipeline.rate_limit_delay)
            result.failed += len(items)
            return []

        try:
            parsed = parse_quality_scores(response.text)
        except ExternalServiceError as e:
            self.logger.error(f"Failed to parse evaluation for {language_code}: {e}")
            result.failed += len(items)
            return []

        batch_keys = {item['key'] for item in items}
        scored = {entry['key']: entry['score'] for entry in parsed if entry['key'] in batch_keys}
        for entry in parsed:
            if entry['issues'] and entry['key'] in scored:
                self.logger.debug(f"{language_code} {entry['key']}: {'; '.join(entry['issues'])}")

        try:
            self.translations.update_quality_scores(language_code, scored)
        except PersistenceError as e:
            self.logger.error(f"Failed to store scores for {language_code}: {e}")
            result.failed += len(items)
            return []

        result.evaluated += len(scored)
        result.failed += len(items) - len(scored)
        return list(scored.values())

    def evaluate_key(self, language_code: str, translation_key: str) -> KeyEvaluation:
        """
        Score a single translated row right away.

        Does not touch the language's evaluation progress record.

        Raises:
            ValidationError: invalid language or key
            NotFoundError: the row does not exist or has no text
            ExternalServiceError: the capability failed or returned no score
        """
        self._validate_language(language_code)
        if not isinstance(translation_key, str) or not translation_key:
            raise ValidationError(["translationKey must be a non-empty string"])

        row = self.translations.get(translation_key, language_code)
        if row is None or row.is_empty:
            raise NotFoundError(f"No {language_code} translation for {translation_key}")
        source = self.translations.get(translation_key, self.source_language)

        response = self.client.evaluate([{
            'key': translation_key,
            'original': source.translated_text if source is not None and source.translated_text else '',
            'translation': row.translated_text,
        }], language_code)
        if not response.success:
            raise ExternalServiceError(
                f"Evaluation of {translation_key} failed: {response.error}",
                status_code=response.status_code,
                rate_limited=response.rate_limited
            )

        entry = next(
            (e for e in parse_quality_scores(response.text) if e['key'] == translation_key),
            None
        )
        if entry is None:
            raise ExternalServiceError(f"No score returned for {translation_key}")

        self.translations.update_quality_scores(language_code, {translation_key: entry['score']})
        self.logger.info(f"{language_code} {translation_key} scored {entry['score']}")
        return KeyEvaluation(
            translation_key=translation_key,
            language=language_code,
            score=entry['score'],
            issues=entry['issues'],
        )

    def auto_approve(self, threshold: float = None) -> int:
        """
        Approve every non-source translation scoring at least threshold.

        Returns:
            Number of rows approved
        """
        if threshold is None:
            threshold = config.evaluation.auto_approve_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or not 0 <= threshold <= 100:
            raise ValidationError(["Auto-approve threshold must be a number between 0 and 100"])
        return self.translations.approve_above(float(threshold), self.source_language)
