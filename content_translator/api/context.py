"""
Application Services
====================
Wires repositories and services to the database and AI client of an app.
"""
import time
from dataclasses import dataclass, field
from typing import Callable

from flask import current_app

from content_translator.config import config
from content_translator.database.connection import Database
from content_translator.database.repositories import (
    TranslationRepository,
    LanguageRepository,
    EvaluationProgressRepository
)
from content_translator.services.ai_client import AIGatewayClient
from content_translator.services.evaluator import QualityEvaluator
from content_translator.services.health import HealthCheckAggregator
from content_translator.services.key_sync import KeySyncEngine
from content_translator.services.pipeline import PipelineRunner
from content_translator.services.progress import EvaluationProgressTracker
from content_translator.services.translator import BatchTranslator
from content_translator.api.jobs import JobManager

EXTENSION_NAME = 'content_translator'


@dataclass
class AppServices:
    """Builds services on demand; they are cheap and hold no job state."""
    database: Database
    client: AIGatewayClient
    jobs: JobManager
    source_language: str = field(default_factory=lambda: config.pipeline.source_language)
    sleep: Callable[[float], None] = time.sleep

    def translations(self) -> TranslationRepository:
        return TranslationRepository(self.database)

    def languages(self) -> LanguageRepository:
        return LanguageRepository(self.database)

    def tracker(self) -> EvaluationProgressTracker:
        return EvaluationProgressTracker(
            EvaluationProgressRepository(self.database), self.translations()
        )

    def sync_engine(self) -> KeySyncEngine:
        return KeySyncEngine(self.translations(), self.languages(), self.source_language)

    def translator(self) -> BatchTranslator:
        return BatchTranslator(
            client=self.client,
            translations=self.translations(),
            source_language=self.source_language,
            sleep=self.sleep
        )

    def evaluator(self) -> QualityEvaluator:
        translations = self.translations()
        return QualityEvaluator(
            client=self.client,
            translations=translations,
            tracker=EvaluationProgressTracker(EvaluationProgressRepository(self.database), translations),
            source_language=self.source_language,
            sleep=self.sleep
        )

    def health(self) -> HealthCheckAggregator:
        return HealthCheckAggregator(
            self.translations(), self.languages(), self.translator(), self.source_language
        )

    def pipeline(self) -> PipelineRunner:
        return PipelineRunner(
            translations=self.translations(),
            languages=self.languages(),
            sync_engine=self.sync_engine(),
            translator=self.translator(),
            evaluator=self.evaluator(),
            source_language=self.source_language
        )


def get_services() -> AppServices:
    return current_app.extensions[EXTENSION_NAME]
