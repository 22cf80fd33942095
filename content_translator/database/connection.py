"""
Translation Store
=================
SQLite schema (translations, languages, evaluation_progress) and the
thread-local connection manager shared by all repositories.
"""
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Generator

from content_translator.config import config
from content_translator.config.constants import DEFAULT_LANGUAGES
from content_translator.utils.exceptions import PersistenceError
from content_translator.utils.logging import get_logger


class Database:
    """
    Thread-safe SQLite database manager.

    Each thread gets its own connection; all writers rely on the
    (translation_key, language_code) primary key for idempotent upserts.
    """

    _instance: Optional['Database'] = None
    _lock = threading.Lock()

    def __init__(self, db_path: Path = None):
        self.db_path = Path(db_path or config.paths.db_path)
        self.logger = get_logger().db_logger
        self._local = threading.local()
        self._connections = []
        self._conn_lock = threading.Lock()
        self._initialized = False

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @classmethod
    def get_instance(cls, db_path: Path = None) -> 'Database':
        """Get singleton instance."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = cls(db_path)
            return cls._instance

    @property
    def connection(self) -> sqlite3.Connection:
        """Get thread-local connection."""
        if getattr(self._local, 'connection', None) is None:
            self._local.connection = self._create_connection()
        return self._local.connection

    def _create_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=config.security.db_timeout,
            check_same_thread=False
        )
        conn.row_factory = sqlite3.Row

        # WAL lets evaluation threads read while a translate job writes
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA foreign_keys=ON")

        with self._conn_lock:
            self._connections.append(conn)
        return conn

    def initialize(self) -> None:
        """Initialize database schema and seed configured languages."""
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return

            self._create_tables()
            self._create_indexes()
            self._seed_languages()
            self._initialized = True

            self.logger.info(f"Database initialized: {self.db_path}")

    def _create_tables(self) -> None:
        with self.connection:
            self.connection.execute("""
                CREATE TABLE IF NOT EXISTS languages (
                    code TEXT PRIMARY KEY,
                    name TEXT NOT NULL,
                    enabled INTEGER NOT NULL DEFAULT 1,
                    show_in_switcher INTEGER NOT NULL DEFAULT 1
                )
            """)

            self.connection.execute("""
                CREATE TABLE IF NOT EXISTS translations (
                    translation_key TEXT NOT NULL,
                    language_code TEXT NOT NULL,
                    translated_text TEXT,
                    page_location TEXT NOT NULL DEFAULT 'general',
                    context TEXT,
                    approved INTEGER NOT NULL DEFAULT 0,
                    quality_score REAL,
                    is_stale INTEGER NOT NULL DEFAULT 0,
                    is_intentionally_empty INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT,
                    PRIMARY KEY (translation_key, language_code),
                    CONSTRAINT valid_score CHECK (
                        quality_score IS NULL OR (quality_score >= 0 AND quality_score <= 100)
                    )
                )
            """)

            self.connection.execute("""
                CREATE TABLE IF NOT EXISTS evaluation_progress (
                    language_code TEXT PRIMARY KEY,
                    status TEXT NOT NULL DEFAULT 'idle',
                    total_keys INTEGER NOT NULL DEFAULT 0,
                    evaluated_keys INTEGER NOT NULL DEFAULT 0,
                    last_evaluated_key TEXT,
                    started_at TEXT,
                    updated_at TEXT,
                    completed_at TEXT,
                    error_message TEXT,
                    CONSTRAINT valid_status CHECK (
                        status IN ('idle', 'in_progress', 'paused', 'completed', 'error')
                    )
                )
            """)

    def _create_indexes(self) -> None:
        with self.connection:
            self.connection.execute("""
                CREATE INDEX IF NOT EXISTS idx_translations_language
                ON translations(language_code, translation_key)
            """)
            self.connection.execute("""
                CREATE INDEX IF NOT EXISTS idx_translations_stale
                ON translations(language_code, is_stale)
            """)
            self.connection.execute("""
                CREATE INDEX IF NOT EXISTS idx_progress_status
                ON evaluation_progress(status, updated_at)
            """)

    def _seed_languages(self) -> None:
        with self.connection:
            self.connection.executemany("""
                INSERT OR IGNORE INTO languages (code, name, enabled, show_in_switcher)
                VALUES (?, ?, ?, ?)
            """, [
                (code, name, int(enabled), int(show))
                for code, name, enabled, show in DEFAULT_LANGUAGES
            ])

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for write transactions.

        sqlite3 errors are rolled back and re-raised as PersistenceError.
        """
        conn = self.connection
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            self.logger.error(f"Transaction rolled back: {e}")
            raise PersistenceError(str(e)) from e
        except Exception as e:
            conn.rollback()
            self.logger.error(f"Transaction rolled back: {e}")
            raise

    def execute(self, query: str, params: tuple = None) -> sqlite3.Cursor:
        try:
            if params:
                return self.connection.execute(query, params)
            return self.connection.execute(query)
        except sqlite3.Error as e:
            self.logger.error(f"Database error: {e}")
            raise

    def fetchone(self, query: str, params: tuple = None) -> Optional[sqlite3.Row]:
        cursor = self.execute(query, params)
        return cursor.fetchone()

    def fetchall(self, query: str, params: tuple = None) -> list:
        cursor = self.execute(query, params)
        return cursor.fetchall()

    def close(self) -> None:
        """Close every connection opened by this manager."""
        with self._conn_lock:
            for conn in self._connections:
                conn.close()
            self._connections.clear()
        self._local = threading.local()


# Global accessor
_database: Optional[Database] = None


def get_database() -> Database:
    """Get database singleton."""
    global _database
    if _database is None:
        _database = Database.get_instance()
        _database.initialize()
    return _database


def reset_database() -> None:
    """Reset database singleton (for testing)."""
    global _database
    if _database:
        _database.close()
    _database = None
    Database._instance = None
