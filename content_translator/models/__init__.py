"""
Content Translator - Data Models
"""
from content_translator.models.translation import (
    TranslationRow,
    Language,
    EvaluationProgress,
    StuckJob,
    SourceEntry,
    TranslateJobResult,
    SyncResult,
    EvaluationRunResult,
    PipelineStep,
    PipelineResult,
    SingleKeyTranslation,
    KeyEvaluation,
    SourceUpdateResult
)
from content_translator.models.health import (
    HealthSnapshot,
    HealthReport,
    LanguageRemediation,
    FixReport,
    RetranslateReport
)
from content_translator.models.schemas import (
    TranslateRequest,
    PipelineRequest
)

__all__ = [
    "TranslationRow",
    "Language",
    "EvaluationProgress",
    "StuckJob",
    "SourceEntry",
    "TranslateJobResult",
    "SyncResult",
    "EvaluationRunResult",
    "PipelineStep",
    "PipelineResult",
    "SingleKeyTranslation",
    "KeyEvaluation",
    "SourceUpdateResult",
    "HealthSnapshot",
    "HealthReport",
    "LanguageRemediation",
    "FixReport",
    "RetranslateReport",
    "TranslateRequest",
    "PipelineRequest"
]
