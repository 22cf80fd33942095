"""
Key Sync Engine
===============
Gives every enabled language a row for every source key and records
edits to source content.
"""
from typing import Iterable, Optional

from content_translator.config import config
from content_translator.database.repositories import TranslationRepository, LanguageRepository
from content_translator.models.translation import SourceUpdateResult, SyncResult, TranslationRow
from content_translator.utils.exceptions import ValidationError
from content_translator.utils.logging import get_logger, debug_print
from content_translator.utils.text_processing import page_location_from_key
from content_translator.utils.validators import validate_translation_keys


class KeySyncEngine:
    """Creates placeholder rows for source keys a language is missing."""

    def __init__(
        self,
        translations: TranslationRepository = None,
        languages: LanguageRepository = None,
        source_language: str = None
    ):
        self.translations = translations or TranslationRepository()
        self.languages = languages or LanguageRepository(self.translations.db)
        self.source_language = source_language or config.pipeline.source_language
        self.logger = get_logger().translation_logger

    def sync(self, language_codes: Optional[Iterable[str]] = None) -> SyncResult:
        """
        Insert a stale, empty row for every (source key, language) pair
        that does not exist yet. Existing rows are never touched.

        Args:
            language_codes: Restrict to these languages (default: every
                enabled non-source language)

        Returns:
            SyncResult with the number of rows created per language
        """
        targets = [lang.code for lang in self.languages.get_enabled_targets(self.source_language)]
        if language_codes is not None:
            wanted = set(language_codes)
            targets = [code for code in targets if code in wanted]

        source_rows = self.translations.get_by_language(self.source_language)
        result = SyncResult()

        for code in targets:
            existing = self.translations.get_keys(code)
            missing = [row for row in source_rows if row.translation_key not in existing]

            created = self.translations.insert_missing(code, missing) if missing else 0
            result.per_language[code] = created
            result.rows_created += created

            if created:
                self.logger.info(f"Synced {created} missing keys for {code}")
                debug_print(f"🔄 {code}: created {created} rows", 'INFO', 'SYNC')

        self.logger.info(
            f"Key sync complete: {result.rows_created} rows across {len(targets)} languages"
        )
        return result

    def set_source_text(
        self,
        translation_key: str,
        text: str,
        context: Optional[str] = None
    ) -> SourceUpdateResult:
        """
        Create or edit canonical content for one key.

        Editing the text marks every translated row of the key stale so the
        next remediation or pipeline run re-translates it. A new key only
        gets its source row; target rows follow on the next sync.

        Raises:
            ValidationError: bad key, text or context
        """
        errors = validate_translation_keys([translation_key], 1)
        if not isinstance(text, str):
            errors.append("text must be a string")
        if context is not None and not isinstance(context, str):
            errors.append("context must be a string")
        if errors:
            raise ValidationError(errors)

        result = SourceUpdateResult(translation_key=translation_key)
        existing = self.translations.get(translation_key, self.source_language)

        if existing is None:
            self.translations.save(TranslationRow(
                translation_key=translation_key,
                language_code=self.source_language,
                translated_text=text,
                page_location=page_location_from_key(translation_key),
                context=context,
            ))
            result.created = result.changed = True
            self.logger.info(f"Created source key {translation_key}")
            return result

        if existing.translated_text == text and context in (None, existing.context):
            return result

        result.changed = True
        result.marked_stale = self.translations.update_source_text(
            translation_key, self.source_language, text, context
        )
        self.logger.info(
            f"Source text of {translation_key} changed; {result.marked_stale} translations marked stale"
        )
        return result
