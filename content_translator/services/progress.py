"""
Evaluation Progress Tracker
===========================
Persisted, per-language state machine for long-running evaluation runs.
"""
from datetime import datetime, timedelta
from typing import Callable, Dict, FrozenSet, List, Optional

from content_translator.config import config
from content_translator.config.constants import EvaluationStatus
from content_translator.database.repositories import (
    EvaluationProgressRepository,
    TranslationRepository,
    utcnow
)
from content_translator.models.translation import EvaluationProgress, StuckJob
from content_translator.utils.exceptions import InvalidTransitionError, StaleJobError
from content_translator.utils.logging import get_logger

ANY_STATUS = frozenset(EvaluationStatus)

# Allowed source statuses per operation
TRANSITIONS: Dict[str, FrozenSet[EvaluationStatus]] = {
    'start': ANY_STATUS,
    'advance': frozenset({EvaluationStatus.IN_PROGRESS}),
    'complete': frozenset({EvaluationStatus.IN_PROGRESS}),
    'fail': frozenset({EvaluationStatus.IN_PROGRESS}),
    'pause': frozenset({EvaluationStatus.IN_PROGRESS}),
    'resume': frozenset({EvaluationStatus.PAUSED, EvaluationStatus.ERROR, EvaluationStatus.IDLE}),
    'reset': ANY_STATUS,
}


class EvaluationProgressTracker:
    """
    Owns every mutation of evaluation progress records.

    Each mutation refreshes updated_at, which doubles as the liveness
    timestamp used for stuck detection. The clock is injectable so
    tests can move time without sleeping.
    """

    def __init__(
        self,
        repository: EvaluationProgressRepository = None,
        translations: TranslationRepository = None,
        clock: Callable[[], datetime] = None
    ):
        self.repository = repository or EvaluationProgressRepository()
        self.translations = translations or TranslationRepository(self.repository.db)
        self.clock = clock or utcnow
        self.stuck_after = timedelta(minutes=config.evaluation.stuck_after_minutes)
        self.stuck_idle_after = timedelta(minutes=config.evaluation.stuck_idle_after_minutes)
        self.logger = get_logger().evaluation_logger

    def get(self, language_code: str) -> Optional[EvaluationProgress]:
        return self.repository.get(language_code)

    def get_all(self) -> List[EvaluationProgress]:
        return self.repository.get_all()

    def _load(self, language_code: str, operation: str, target: EvaluationStatus) -> EvaluationProgress:
        progress = self.repository.get(language_code)
        current = progress.status if progress else None
        allowed = TRANSITIONS[operation]

        if progress is None:
            if allowed is ANY_STATUS:
                return EvaluationProgress(language_code=language_code)
            raise InvalidTransitionError(language_code, 'none', target.value)
        if current not in allowed:
            raise InvalidTransitionError(language_code, current.value, target.value)
        return progress

    def _save(self, progress: EvaluationProgress) -> EvaluationProgress:
        progress.updated_at = self.clock()
        self.repository.save(progress)
        return progress

    def start(self, language_code: str) -> EvaluationProgress:
        """Begin a fresh run over every row of the language."""
        progress = self._load(language_code, 'start', EvaluationStatus.IN_PROGRESS)
        progress.status = EvaluationStatus.IN_PROGRESS
        progress.total_keys = self.translations.count_by_language(language_code)
        progress.evaluated_keys = 0
        progress.last_evaluated_key = None
        progress.started_at = self.clock()
        progress.completed_at = None
        progress.error_message = None
        self.logger.info(f"Evaluation started for {language_code}: {progress.total_keys} keys")
        return self._save(progress)

    def advance(self, language_code: str, last_key: str, count: int = 1) -> EvaluationProgress:
        """Record that count more keys were evaluated, ending at last_key."""
        progress = self._load(language_code, 'advance', EvaluationStatus.IN_PROGRESS)
        progress.evaluated_keys += count
        progress.last_evaluated_key = last_key
        return self._save(progress)

    def complete(self, language_code: str) -> EvaluationProgress:
        progress = self._load(language_code, 'complete', EvaluationStatus.COMPLETED)
        progress.status = EvaluationStatus.COMPLETED
        progress.completed_at = self.clock()
        self.logger.info(
            f"Evaluation completed for {language_code}: "
            f"{progress.evaluated_keys}/{progress.total_keys} keys"
        )
        return self._save(progress)

    def fail(self, language_code: str, message: str) -> EvaluationProgress:
        """Move a running evaluation to error. Counters are preserved."""
        progress = self._load(language_code, 'fail', EvaluationStatus.ERROR)
        progress.status = EvaluationStatus.ERROR
        progress.error_message = message
        self.logger.error(f"Evaluation failed for {language_code}: {message}")
        return self._save(progress)

    def pause(self, language_code: str) -> EvaluationProgress:
        progress = self._load(language_code, 'pause', EvaluationStatus.PAUSED)
        progress.status = EvaluationStatus.PAUSED
        self.logger.info(f"Evaluation paused for {language_code} at {progress.evaluated_keys} keys")
        return self._save(progress)

    def resume(self, language_code: str) -> EvaluationProgress:
        """Continue from the stored cursor with counters kept."""
        progress = self._load(language_code, 'resume', EvaluationStatus.IN_PROGRESS)
        progress.status = EvaluationStatus.IN_PROGRESS
        progress.error_message = None
        progress.completed_at = None
        if progress.started_at is None:
            progress.started_at = self.clock()
        self.logger.info(
            f"Evaluation resumed for {language_code} after {progress.last_evaluated_key!r}"
        )
        return self._save(progress)

    def reset(self, language_code: str, message: str = None) -> EvaluationProgress:
        """Return the record to idle. Stored quality scores are not touched."""
        progress = self._load(language_code, 'reset', EvaluationStatus.IDLE)
        progress.status = EvaluationStatus.IDLE
        progress.error_message = message
        self.logger.info(f"Evaluation reset for {language_code}")
        return self._save(progress)

    def is_stuck(self, progress: EvaluationProgress, now: datetime = None) -> bool:
        """
        An in-progress record is stuck when it has not been touched for
        longer than the stuck threshold, or has made no progress at all
        for longer than the shorter idle threshold.
        """
        if progress.status != EvaluationStatus.IN_PROGRESS or progress.updated_at is None:
            return False
        elapsed = (now or self.clock()) - progress.updated_at
        if elapsed > self.stuck_after:
            return True
        return progress.evaluated_keys == 0 and elapsed > self.stuck_idle_after

    def _to_stuck_job(self, progress: EvaluationProgress, now: datetime) -> StuckJob:
        elapsed = now - progress.updated_at
        return StuckJob(
            language_code=progress.language_code,
            minutes_stuck=int(elapsed.total_seconds() // 60),
            evaluated_keys=progress.evaluated_keys,
        )

    def find_stuck(self, now: datetime = None) -> List[StuckJob]:
        now = now or self.clock()
        return [
            self._to_stuck_job(progress, now)
            for progress in self.repository.get_by_status(EvaluationStatus.IN_PROGRESS)
            if self.is_stuck(progress, now)
        ]

    def reset_stuck(self) -> List[StuckJob]:
        """
        Reset every stuck record to idle. Only invoked on operator request.

        Returns:
            The jobs that were reset
        """
        stuck = self.find_stuck()
        for job in stuck:
            self.reset(
                job.language_code,
                f"Reset by operator: evaluation was stuck for {job.minutes_stuck} minutes"
            )
        if stuck:
            self.logger.warning(
                f"Reset {len(stuck)} stuck evaluations: "
                f"{', '.join(job.language_code for job in stuck)}"
            )
        return stuck

    def ensure_live(self, language_code: str) -> Optional[EvaluationProgress]:
        """
        Raises:
            StaleJobError: if the language's in-progress record is stuck
        """
        progress = self.repository.get(language_code)
        if progress is None:
            return None
        now = self.clock()
        if self.is_stuck(progress, now):
            job = self._to_stuck_job(progress, now)
            raise StaleJobError(language_code, job.minutes_stuck)
        return progress

    def average_duration(self) -> Optional[timedelta]:
        """Mean wall-clock duration of runs that have both timestamps."""
        durations = [p.duration for p in self.repository.get_all() if p.duration is not None]
        if not durations:
            return None
        return sum(durations, timedelta()) / len(durations)
