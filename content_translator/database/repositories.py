"""
Database Repositories
=====================
Data access for translations, languages and evaluation progress.
"""
import sqlite3
from datetime import datetime, timezone
from typing import Optional, List, Dict, Iterable, Set, Tuple

from content_translator.database.connection import Database, get_database
from content_translator.config.constants import EvaluationStatus
from content_translator.models.translation import TranslationRow, Language, EvaluationProgress
from content_translator.utils.text_processing import page_location_from_key
from content_translator.utils.logging import get_logger


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_db_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _from_db_time(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _row_to_translation(row: sqlite3.Row) -> TranslationRow:
    return TranslationRow(
        translation_key=row['translation_key'],
        language_code=row['language_code'],
        translated_text=row['translated_text'],
        page_location=row['page_location'],
        context=row['context'],
        approved=bool(row['approved']),
        quality_score=row['quality_score'],
        is_stale=bool(row['is_stale']),
        is_intentionally_empty=bool(row['is_intentionally_empty']),
        updated_at=_from_db_time(row['updated_at']),
    )


class TranslationRepository:
    """
    Repository for translation rows.

    Every write is keyed on (translation_key, language_code), so repeating
    a write converges on the same row.
    """

    def __init__(self, database: Database = None):
        self.db = database or get_database()
        self.logger = get_logger().db_logger

    def get(self, translation_key: str, language_code: str) -> Optional[TranslationRow]:
        row = self.db.fetchone(
            "SELECT * FROM translations WHERE translation_key = ? AND language_code = ?",
            (translation_key, language_code)
        )
        return _row_to_translation(row) if row else None

    def get_by_language(self, language_code: str, after_key: str = None) -> List[TranslationRow]:
        """Get all rows of a language ordered by key, optionally after a cursor."""
        if after_key is not None:
            rows = self.db.fetchall("""
                SELECT * FROM translations
                WHERE language_code = ? AND translation_key > ?
                ORDER BY translation_key
            """, (language_code, after_key))
        else:
            rows = self.db.fetchall("""
                SELECT * FROM translations
                WHERE language_code = ?
                ORDER BY translation_key
            """, (language_code,))
        return [_row_to_translation(row) for row in rows]

    def get_by_languages(self, language_codes: Iterable[str]) -> List[TranslationRow]:
        """Get all rows belonging to any of the given languages."""
        codes = list(language_codes)
        if not codes:
            return []
        placeholders = ', '.join('?' for _ in codes)
        rows = self.db.fetchall(
            f"SELECT * FROM translations WHERE language_code IN ({placeholders})",
            tuple(codes)
        )
        return [_row_to_translation(row) for row in rows]

    def get_keys(self, language_code: str) -> Set[str]:
        rows = self.db.fetchall(
            "SELECT translation_key FROM translations WHERE language_code = ?",
            (language_code,)
        )
        return {row['translation_key'] for row in rows}

    def get_untranslated_keys(self, language_code: str) -> List[str]:
        """Keys whose text is null or blank, intentionally empty rows excluded."""
        rows = self.db.fetchall("""
            SELECT translation_key FROM translations
            WHERE language_code = ?
              AND (translated_text IS NULL OR TRIM(translated_text) = '')
              AND is_intentionally_empty = 0
            ORDER BY translation_key
        """, (language_code,))
        return [row['translation_key'] for row in rows]

    def count_by_language(self, language_code: str) -> int:
        row = self.db.fetchone(
            "SELECT COUNT(*) AS total FROM translations WHERE language_code = ?",
            (language_code,)
        )
        return row['total'] if row else 0

    def save(self, row: TranslationRow) -> None:
        """Insert or fully overwrite a single row."""
        with self.db.transaction() as conn:
            conn.execute("""
                INSERT INTO translations (
                    translation_key, language_code, translated_text, page_location,
                    context, approved, quality_score, is_stale,
                    is_intentionally_empty, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(translation_key, language_code) DO UPDATE SET
                    translated_text = excluded.translated_text,
                    page_location = excluded.page_location,
                    context = excluded.context,
                    approved = excluded.approved,
                    quality_score = excluded.quality_score,
                    is_stale = excluded.is_stale,
                    is_intentionally_empty = excluded.is_intentionally_empty,
                    updated_at = excluded.updated_at
            """, (
                row.translation_key, row.language_code, row.translated_text,
                row.page_location, row.context, int(row.approved), row.quality_score,
                int(row.is_stale), int(row.is_intentionally_empty),
                _to_db_time(row.updated_at or utcnow())
            ))

    def update_source_text(
        self,
        translation_key: str,
        source_language: str,
        text: str,
        context: Optional[str] = None
    ) -> int:
        """
        Change canonical content and mark every other language stale.

        A context of None keeps the stored context.

        Returns:
            Number of target rows marked stale
        """
        now = _to_db_time(utcnow())
        with self.db.transaction() as conn:
            conn.execute("""
                UPDATE translations
                SET translated_text = ?, context = COALESCE(?, context), updated_at = ?
                WHERE translation_key = ? AND language_code = ?
            """, (text, context, now, translation_key, source_language))
            cursor = conn.execute("""
                UPDATE translations SET is_stale = 1, updated_at = ?
                WHERE translation_key = ? AND language_code != ?
            """, (now, translation_key, source_language))
            return cursor.rowcount

    def insert_missing(self, language_code: str, source_rows: List[TranslationRow]) -> int:
        """
        Create placeholder rows for a language.

        Existing (key, language) pairs are left untouched.

        Returns:
            Number of rows actually created
        """
        if not source_rows:
            return 0
        now = _to_db_time(utcnow())
        with self.db.transaction() as conn:
            before = conn.total_changes
            conn.executemany("""
                INSERT OR IGNORE INTO translations (
                    translation_key, language_code, translated_text, page_location,
                    context, approved, is_stale, updated_at
                ) VALUES (?, ?, NULL, ?, ?, 0, 1, ?)
            """, [
                (r.translation_key, language_code, r.page_location, r.context, now)
                for r in source_rows
            ])
            return conn.total_changes - before

    def upsert_translations(
        self,
        language_code: str,
        records: List[Tuple[str, str, Optional[str]]]
    ) -> int:
        """
        Write machine translations.

        Args:
            language_code: Target language
            records: (translation_key, translated_text, context) tuples

        Overwrites the text, clears is_stale and approval and drops the
        previous quality score. Raises PersistenceError on failure.
        """
        if not records:
            return 0
        now = _to_db_time(utcnow())
        with self.db.transaction() as conn:
            conn.executemany("""
                INSERT INTO translations (
                    translation_key, language_code, translated_text, page_location,
                    context, approved, quality_score, is_stale, updated_at
                ) VALUES (?, ?, ?, ?, ?, 0, NULL, 0, ?)
                ON CONFLICT(translation_key, language_code) DO UPDATE SET
                    translated_text = excluded.translated_text,
                    page_location = excluded.page_location,
                    context = COALESCE(excluded.context, translations.context),
                    approved = 0,
                    quality_score = NULL,
                    is_stale = 0,
                    updated_at = excluded.updated_at
            """, [
                (key, language_code, text, page_location_from_key(key), context, now)
                for key, text, context in records
            ])
        return len(records)

    def delete_rows(self, pairs: List[Tuple[str, str]]) -> int:
        """Delete rows by (translation_key, language_code)."""
        if not pairs:
            return 0
        with self.db.transaction() as conn:
            before = conn.total_changes
            conn.executemany(
                "DELETE FROM translations WHERE translation_key = ? AND language_code = ?",
                pairs
            )
            deleted = conn.total_changes - before
        self.logger.info(f"Deleted {deleted} translation rows")
        return deleted

    def update_quality_scores(self, language_code: str, scores: Dict[str, float]) -> int:
        """Record evaluation scores for existing rows."""
        if not scores:
            return 0
        now = _to_db_time(utcnow())
        with self.db.transaction() as conn:
            before = conn.total_changes
            conn.executemany("""
                UPDATE translations SET quality_score = ?, updated_at = ?
                WHERE translation_key = ? AND language_code = ?
            """, [(score, now, key, language_code) for key, score in scores.items()])
            return conn.total_changes - before

    def approve_above(self, threshold: float, source_language: str) -> int:
        """Approve unapproved translations scoring at least threshold."""
        with self.db.transaction() as conn:
            cursor = conn.execute("""
                UPDATE translations SET approved = 1
                WHERE language_code != ?
                  AND approved = 0
                  AND is_stale = 0
                  AND quality_score IS NOT NULL
                  AND quality_score >= ?
            """, (source_language, threshold))
            approved = cursor.rowcount
        self.logger.info(f"Approved {approved} translations at threshold {threshold}")
        return approved


class LanguageRepository:
    """Repository for configured languages."""

    def __init__(self, database: Database = None):
        self.db = database or get_database()

    @staticmethod
    def _to_language(row: sqlite3.Row) -> Language:
        return Language(
            code=row['code'],
            name=row['name'],
            enabled=bool(row['enabled']),
            show_in_switcher=bool(row['show_in_switcher']),
        )

    def get(self, code: str) -> Optional[Language]:
        row = self.db.fetchone("SELECT * FROM languages WHERE code = ?", (code,))
        return self._to_language(row) if row else None

    def get_all(self) -> List[Language]:
        rows = self.db.fetchall("SELECT * FROM languages ORDER BY code")
        return [self._to_language(row) for row in rows]

    def get_enabled_targets(self, source_language: str) -> List[Language]:
        """Enabled languages other than the source language."""
        rows = self.db.fetchall("""
            SELECT * FROM languages
            WHERE enabled = 1 AND code != ?
            ORDER BY code
        """, (source_language,))
        return [self._to_language(row) for row in rows]

    def set_enabled(self, code: str, enabled: bool) -> bool:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE languages SET enabled = ? WHERE code = ?",
                (int(enabled), code)
            )
            return cursor.rowcount > 0


class EvaluationProgressRepository:
    """Repository for per-language evaluation progress records."""

    def __init__(self, database: Database = None):
        self.db = database or get_database()

    @staticmethod
    def _to_progress(row: sqlite3.Row) -> EvaluationProgress:
        return EvaluationProgress(
            language_code=row['language_code'],
            status=EvaluationStatus(row['status']),
            total_keys=row['total_keys'],
            evaluated_keys=row['evaluated_keys'],
            last_evaluated_key=row['last_evaluated_key'],
            started_at=_from_db_time(row['started_at']),
            updated_at=_from_db_time(row['updated_at']),
            completed_at=_from_db_time(row['completed_at']),
            error_message=row['error_message'],
        )

    def get(self, language_code: str) -> Optional[EvaluationProgress]:
        row = self.db.fetchone(
            "SELECT * FROM evaluation_progress WHERE language_code = ?",
            (language_code,)
        )
        return self._to_progress(row) if row else None

    def get_all(self) -> List[EvaluationProgress]:
        rows = self.db.fetchall(
            "SELECT * FROM evaluation_progress ORDER BY updated_at DESC"
        )
        return [self._to_progress(row) for row in rows]

    def get_by_status(self, status: EvaluationStatus) -> List[EvaluationProgress]:
        rows = self.db.fetchall(
            "SELECT * FROM evaluation_progress WHERE status = ?",
            (status.value,)
        )
        return [self._to_progress(row) for row in rows]

    def save(self, progress: EvaluationProgress) -> None:
        with self.db.transaction() as conn:
            conn.execute("""
                INSERT INTO evaluation_progress (
                    language_code, status, total_keys, evaluated_keys,
                    last_evaluated_key, started_at, updated_at, completed_at,
                    error_message
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(language_code) DO UPDATE SET
                    status = excluded.status,
                    total_keys = excluded.total_keys,
                    evaluated_keys = excluded.evaluated_keys,
                    last_evaluated_key = excluded.last_evaluated_key,
                    started_at = excluded.started_at,
                    updated_at = excluded.updated_at,
                    completed_at = excluded.completed_at,
                    error_message = excluded.error_message
            """, (
                progress.language_code, progress.status.value, progress.total_keys,
                progress.evaluated_keys, progress.last_evaluated_key,
                _to_db_time(progress.started_at), _to_db_time(progress.updated_at),
                _to_db_time(progress.completed_at), progress.error_message
            ))
