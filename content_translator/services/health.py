"""
Translation Health Check
========================
Classifies the whole corpus into broken, missing, stale, orphaned and
healthy rows, and runs the remediation procedures.
"""
import threading
from typing import List, Optional

from content_translator.config import config
from content_translator.database.repositories import TranslationRepository, LanguageRepository
from content_translator.models.health import (
    FixReport,
    HealthReport,
    HealthSnapshot,
    LanguageRemediation,
    RetranslateReport
)
from content_translator.services.translator import BatchTranslator
from content_translator.utils.exceptions import ValidationError
from content_translator.utils.logging import get_logger, debug_print
from content_translator.utils.text_processing import split_into_batches


class HealthCheckAggregator:
    """Computes health on demand; nothing here is cached or persisted."""

    def __init__(
        self,
        translations: TranslationRepository = None,
        languages: LanguageRepository = None,
        translator: BatchTranslator = None,
        source_language: str = None
    ):
        self.translations = translations or TranslationRepository()
        self.languages = languages or LanguageRepository(self.translations.db)
        self.source_language = source_language or config.pipeline.source_language
        self._translator = translator
        self.logger = get_logger().translation_logger

    @property
    def translator(self) -> BatchTranslator:
        if self._translator is None:
            self._translator = BatchTranslator(
                translations=self.translations,
                source_language=self.source_language
            )
        return self._translator

    def _target_codes(self) -> List[str]:
        return [lang.code for lang in self.languages.get_enabled_targets(self.source_language)]

    def classify(self) -> HealthReport:
        """
        Classify every row of the source and enabled target languages.

        Source rows are always healthy. A target row falls in at most one
        class, checked in the order broken, orphaned, stale.
        """
        codes = self._target_codes()
        source_rows = self.translations.get_by_language(self.source_language)
        target_rows = self.translations.get_by_languages(codes)
        source_by_key = {row.translation_key: row for row in source_rows}

        report = HealthReport(total_count=len(source_rows) + len(target_rows))
        present = {code: set() for code in codes}

        for row in target_rows:
            present[row.language_code].add(row.translation_key)

            if row.is_broken:
                report.broken.append((row.translation_key, row.language_code))
                continue

            source = source_by_key.get(row.translation_key)
            source_empty = source is None or (source.is_empty and not source.is_intentionally_empty)
            if source_empty and not row.is_intentionally_empty:
                report.orphaned.append((row.translation_key, row.language_code))
                continue

            if row.is_stale:
                report.stale.setdefault(row.language_code, []).append(row.translation_key)

        expected = [row.translation_key for row in source_rows if not row.is_intentionally_empty]
        for code in codes:
            missing = [key for key in expected if key not in present[code]]
            if missing:
                report.missing[code] = missing

        return report

    def scan(self) -> HealthSnapshot:
        snapshot = self.classify().snapshot()
        self.logger.info(f"Health scan: {snapshot.to_dict()}")
        return snapshot

    def _translate_language(
        self,
        language_code: str,
        keys: List[str],
        cancel_event: Optional[threading.Event] = None
    ) -> LanguageRemediation:
        """Run the translator over keys in max-size chunks, isolating failures."""
        remediation = LanguageRemediation(language=language_code, requested=len(keys))
        try:
            for chunk in split_into_batches(keys, self.translator.max_keys):
                remediation.jobs.append(
                    self.translator.translate(language_code, chunk, cancel_event=cancel_event)
                )
        except Exception as e:
            self.logger.exception(f"Re-translation failed for {language_code}: {e}")
            remediation.error = str(e)
        return remediation

    def fix_all(self, cancel_event: Optional[threading.Event] = None) -> FixReport:
        """
        Delete broken rows, then re-translate stale keys per language.

        Each language gets its own translator call(s) covering only its
        own stale keys. Orphaned rows are reported and left alone.
        """
        report = self.classify()
        fix = FixReport(orphaned=list(report.orphaned))

        if report.broken:
            fix.deleted_broken = self.translations.delete_rows(report.broken)
            debug_print(f"🧹 Deleted {fix.deleted_broken} broken rows", 'INFO', 'HEALTH')

        for language_code, keys in sorted(report.stale.items()):
            self.logger.info(f"Re-translating {len(keys)} stale keys for {language_code}")
            fix.languages.append(self._translate_language(language_code, keys, cancel_event))

        if fix.orphaned:
            self.logger.warning(f"{len(fix.orphaned)} orphaned rows need manual resolution")
        return fix

    def retranslate_all(
        self,
        confirm: bool = False,
        cancel_event: Optional[threading.Event] = None
    ) -> RetranslateReport:
        """
        Re-translate every source key into every enabled language.

        Raises:
            ValidationError: unless confirm is True
        """
        if confirm is not True:
            raise ValidationError(["Full re-translation requires explicit confirmation"])

        keys = [
            row.translation_key
            for row in self.translations.get_by_language(self.source_language)
            if not row.is_empty
        ]
        report = RetranslateReport()
        for language_code in self._target_codes():
            self.logger.info(f"Full re-translation of {len(keys)} keys for {language_code}")
            if not keys:
                report.languages.append(LanguageRemediation(language=language_code, requested=0))
                continue
            report.languages.append(self._translate_language(language_code, keys, cancel_event))
        return report
