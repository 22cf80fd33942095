"""
Content Translator - Utility Functions
"""
from content_translator.utils.text_processing import (
    split_into_batches,
    page_location_from_key,
    clean_json_response,
    parse_translation_entries,
    parse_quality_scores
)
from content_translator.utils.validators import (
    validate_language_code,
    validate_translation_keys,
    validate_translate_request
)
from content_translator.utils.logging import (
    LogBuffer,
    AppLogger,
    get_logger,
    debug_print
)
from content_translator.utils.exceptions import (
    TranslatorError,
    ValidationError,
    InvalidTransitionError,
    ExternalServiceError,
    PersistenceError,
    StaleJobError,
    NotFoundError
)

__all__ = [
    "split_into_batches",
    "page_location_from_key",
    "clean_json_response",
    "parse_translation_entries",
    "parse_quality_scores",
    "validate_language_code",
    "validate_translation_keys",
    "validate_translate_request",
    "LogBuffer",
    "AppLogger",
    "get_logger",
    "debug_print",
    "TranslatorError",
    "ValidationError",
    "InvalidTransitionError",
    "ExternalServiceError",
    "PersistenceError",
    "StaleJobError",
    "NotFoundError"
]
