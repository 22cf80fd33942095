"""
Database Module
===============
Database connection and repository implementations.
"""
from content_translator.database.connection import Database, get_database, reset_database
from content_translator.database.repositories import (
    TranslationRepository,
    LanguageRepository,
    EvaluationProgressRepository
)

__all__ = [
    'Database',
    'get_database',
    'reset_database',
    'TranslationRepository',
    'LanguageRepository',
    'EvaluationProgressRepository'
]
