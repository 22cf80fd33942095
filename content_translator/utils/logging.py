"""
Logging Utilities
=================
Per-concern rotating log files plus an in-memory buffer that backs the
operator log console (``GET /api/logs``).
"""
import os
import re
import logging
import threading
from collections import deque
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import List, Dict, Optional
from content_translator.config import config


ANSI_PATTERN = re.compile(r'\033\[[0-9;]*m')

# attribute name -> (logger name, file name)
LOG_FILES = {
    'app_logger': ('content_translator.app', 'app.log'),
    'translation_logger': ('content_translator.translation', 'translations.log'),
    'evaluation_logger': ('content_translator.evaluation', 'evaluation.log'),
    'api_logger': ('content_translator.api', 'api.log'),
    'db_logger': ('content_translator.database', 'database.log'),
}

LEVEL_ORDER = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def strip_ansi(text: str) -> str:
    return ANSI_PATTERN.sub('', text)


class LogBuffer:
    """Bounded, thread-safe ring of recent log entries with increasing ids."""

    def __init__(self, max_size: int = None):
        self._entries = deque(maxlen=max_size or config.logging.log_buffer_size)
        self._lock = threading.Lock()
        self._next_id = 1

    def add(self, level: str, source: str, message: str) -> Dict:
        level = level.upper()
        if level not in LEVEL_ORDER:
            level = 'INFO'
        with self._lock:
            entry = {
                'id': self._next_id,
                'timestamp': datetime.now(timezone.utc).isoformat(timespec='milliseconds'),
                'level': level,
                'source': source,
                'message': message
            }
            self._next_id += 1
            self._entries.append(entry)
            return entry

    def get_all(self, min_level: str = None) -> List[Dict]:
        return self.get_since(0, min_level)

    def get_since(self, since_id: int, min_level: str = None) -> List[Dict]:
        """Entries newer than ``since_id``, optionally at or above ``min_level``."""
        min_level = (min_level or '').upper()
        floor = LEVEL_ORDER.index(min_level) if min_level in LEVEL_ORDER else 0
        with self._lock:
            return [
                entry for entry in self._entries
                if entry['id'] > since_id
                and LEVEL_ORDER.index(entry['level']) >= floor
            ]

    def clear(self):
        with self._lock:
            self._entries.clear()
            self._next_id = 1


log_buffer = LogBuffer()


class BufferHandler(logging.Handler):
    """Mirrors warnings and errors of the service loggers into the log buffer."""

    def __init__(self, buffer: LogBuffer, level=logging.WARNING):
        super().__init__(level)
        self.buffer = buffer

    def emit(self, record):
        level = record.levelname if record.levelname in LEVEL_ORDER else 'INFO'
        source = record.name.rsplit('.', 1)[-1].upper()
        self.buffer.add(level, source, strip_ansi(record.getMessage()))


class PlainFileFormatter(logging.Formatter):
    def format(self, record):
        message = super().format(record)
        return strip_ansi(message) if config.logging.strip_ansi_in_files else message


class AppLogger:
    """Holds one configured logger per concern listed in LOG_FILES."""

    def __init__(self, log_dir: str = None):
        self.log_dir = log_dir or config.paths.log_folder
        os.makedirs(self.log_dir, exist_ok=True)
        self.level = logging.DEBUG if config.logging.verbose_debug else logging.INFO

        for attr, (name, filename) in LOG_FILES.items():
            setattr(self, attr, self._configure(name, filename))

    def _configure(self, name: str, filename: str) -> logging.Logger:
        logger = logging.getLogger(name)
        logger.setLevel(self.level)
        if logger.handlers:
            return logger

        file_handler = RotatingFileHandler(
            os.path.join(self.log_dir, filename),
            maxBytes=config.logging.log_file_max_bytes,
            backupCount=config.logging.log_file_backup_count
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(PlainFileFormatter(
            '%(asctime)s [%(name)s] %(levelname)s %(message)s'
        ))

        console_handler = logging.StreamHandler()
        console_handler.setLevel(self.level)
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)-7s %(message)s', datefmt='%H:%M:%S'
        ))

        logger.addHandler(file_handler)
        logger.addHandler(console_handler)
        logger.addHandler(BufferHandler(log_buffer))
        return logger


_logger_instance: Optional[AppLogger] = None


def get_logger() -> AppLogger:
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = AppLogger()
    return _logger_instance


def debug_print(message: str, level: str = 'INFO', source: str = 'DEBUG'):
    """
    Record a progress message for the operator console.

    Args:
        message: Text to record; ANSI colour codes are stripped
        level: DEBUG, INFO, WARNING or ERROR
        source: Short tag shown next to the entry (e.g. TRANSLATE, HEALTH)
    """
    log_buffer.add(level, source, strip_ansi(message))
    if config.logging.verbose_debug:
        print(message)
