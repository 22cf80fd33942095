"""
Translation Data Models
=======================
Core data structures for the translation store and pipeline results.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Any

from content_translator.config.constants import EvaluationStatus, JobStatus


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class TranslationRow:
    """One (key, language) entry of the translation store."""
    translation_key: str
    language_code: str
    translated_text: Optional[str] = None
    page_location: str = "general"
    context: Optional[str] = None
    approved: bool = False
    quality_score: Optional[float] = None
    is_stale: bool = False
    is_intentionally_empty: bool = False
    updated_at: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return not self.translated_text or not self.translated_text.strip()

    @property
    def is_broken(self) -> bool:
        """The model echoed the key instead of translating it."""
        return self.translated_text == self.translation_key

    def to_dict(self) -> dict:
        return {
            'translation_key': self.translation_key,
            'language_code': self.language_code,
            'translated_text': self.translated_text,
            'page_location': self.page_location,
            'context': self.context,
            'approved': self.approved,
            'quality_score': self.quality_score,
            'is_stale': self.is_stale,
            'is_intentionally_empty': self.is_intentionally_empty,
            'updated_at': _iso(self.updated_at),
        }


@dataclass
class Language:
    """A configured language."""
    code: str
    name: str
    enabled: bool = True
    show_in_switcher: bool = True

    def to_dict(self) -> dict:
        return {
            'code': self.code,
            'name': self.name,
            'enabled': self.enabled,
            'show_in_switcher': self.show_in_switcher,
        }


@dataclass
class EvaluationProgress:
    """Persisted progress of a per-language evaluation run."""
    language_code: str
    status: EvaluationStatus = EvaluationStatus.IDLE
    total_keys: int = 0
    evaluated_keys: int = 0
    last_evaluated_key: Optional[str] = None
    started_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    error_message: Optional[str] = None

    @property
    def duration(self) -> Optional[timedelta]:
        if self.started_at and self.completed_at:
            return self.completed_at - self.started_at
        return None

    def to_dict(self) -> dict:
        return {
            'language_code': self.language_code,
            'status': self.status.value if isinstance(self.status, EvaluationStatus) else self.status,
            'total_keys': self.total_keys,
            'evaluated_keys': self.evaluated_keys,
            'last_evaluated_key': self.last_evaluated_key,
            'started_at': _iso(self.started_at),
            'updated_at': _iso(self.updated_at),
            'completed_at': _iso(self.completed_at),
            'error_message': self.error_message,
        }


@dataclass
class StuckJob:
    """An in-progress evaluation that stopped advancing."""
    language_code: str
    minutes_stuck: int
    evaluated_keys: int

    def to_dict(self) -> dict:
        return {
            'language_code': self.language_code,
            'minutes_stuck': self.minutes_stuck,
            'evaluated_keys': self.evaluated_keys,
        }


@dataclass
class SourceEntry:
    """A source text queued for translation."""
    key: str
    text: str
    page: str
    context: str = ""

    def to_payload(self) -> dict:
        return {'key': self.key, 'text': self.text, 'page': self.page, 'context': self.context}


@dataclass
class TranslateJobResult:
    """Accounting for one batched translation job."""
    language: str
    translated: int = 0
    failed: int = 0
    failed_batches: List[int] = field(default_factory=list)
    cancelled: bool = False

    @property
    def status(self) -> JobStatus:
        if self.failed_batches or self.failed > 0:
            return JobStatus.PARTIAL
        return JobStatus.SUCCESS

    def to_dict(self) -> dict:
        result = {
            'language': self.language,
            'count': self.translated,
            'failed': self.failed,
            'failedBatches': list(self.failed_batches),
            'status': self.status.value,
        }
        if self.cancelled:
            result['cancelled'] = True
        return result


@dataclass
class SyncResult:
    """Rows created by a key sync run."""
    rows_created: int = 0
    per_language: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {'rowsCreated': self.rows_created, 'perLanguage': dict(self.per_language)}


@dataclass
class EvaluationRunResult:
    """Outcome of one quality evaluation invocation."""
    language: str
    evaluated: int = 0
    failed: int = 0
    average_score: Optional[float] = None
    last_key: Optional[str] = None
    completed: bool = False
    cancelled: bool = False

    def to_dict(self) -> dict:
        return {
            'language': self.language,
            'evaluated': self.evaluated,
            'failed': self.failed,
            'averageScore': self.average_score,
            'lastKey': self.last_key,
            'completed': self.completed,
            'cancelled': self.cancelled,
        }


@dataclass
class PipelineStep:
    """One executed step of a pipeline run."""
    name: str
    success: bool
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {'name': self.name, 'success': self.success, **self.details}


@dataclass
class PipelineResult:
    """Outcome of a pipeline run."""
    action: str
    steps: List[PipelineStep] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(step.success for step in self.steps)

    def to_dict(self) -> dict:
        return {
            'action': self.action,
            'steps': [step.to_dict() for step in self.steps],
            'success': self.success,
        }


@dataclass
class SingleKeyTranslation:
    """A key translated on its own, outside any batch job."""
    translation_key: str
    language: str
    source_text: str
    translated_text: str
    context: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'translationKey': self.translation_key,
            'targetLanguage': self.language,
            'sourceText': self.source_text,
            'translatedText': self.translated_text,
            'context': self.context,
        }


@dataclass
class KeyEvaluation:
    """Quality score of a single translated row."""
    translation_key: str
    language: str
    score: float
    issues: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'translationKey': self.translation_key,
            'language': self.language,
            'qualityScore': self.score,
            'issues': list(self.issues),
        }


@dataclass
class SourceUpdateResult:
    """Effect of editing one source text."""
    translation_key: str
    created: bool = False
    changed: bool = False
    marked_stale: int = 0

    def to_dict(self) -> dict:
        return {
            'translationKey': self.translation_key,
            'created': self.created,
            'changed': self.changed,
            'markedStale': self.marked_stale,
        }
