"""
Validation Utilities
====================
Functions for validating input data.
"""
from typing import Tuple, Optional, List, Any

from content_translator.config import config
from content_translator.config.constants import LANGUAGE_CODE_PATTERN


def validate_language_code(lang_code: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate a language code.

    Args:
        lang_code: The language code to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not lang_code:
        return False, "Language code is required"

    if not isinstance(lang_code, str) or not LANGUAGE_CODE_PATTERN.match(lang_code):
        return False, f"Invalid language code: {lang_code!r}"

    return True, None


def validate_translation_keys(keys: Any, max_keys: int = None) -> List[str]:
    """
    Validate a list of translation keys.

    Args:
        keys: Keys as received from the caller
        max_keys: Upper bound on the number of keys

    Returns:
        List of error messages (empty when valid)
    """
    max_keys = max_keys or config.pipeline.max_keys
    max_length = config.pipeline.max_key_length

    if not isinstance(keys, (list, tuple, set, frozenset)):
        return ["translationKeys must be a list of strings"]
    if len(keys) == 0:
        return ["translationKeys must not be empty"]
    if len(keys) > max_keys:
        return [f"translationKeys has {len(keys)} entries, maximum is {max_keys}"]

    errors = []
    for key in keys:
        if not isinstance(key, str):
            errors.append(f"Translation key must be a string: {key!r}")
        elif not 1 <= len(key) <= max_length:
            errors.append(f"Translation key length must be 1..{max_length}: {key[:40]!r}")
    return errors


def validate_translate_request(
    keys: Any,
    target_language: Any,
    source_language: Any
) -> Tuple[bool, List[str]]:
    """
    Validate a complete translate job request.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = validate_translation_keys(keys)

    valid, error = validate_language_code(target_language)
    if not valid:
        errors.append(f"Target language: {error}")

    valid, error = validate_language_code(source_language)
    if not valid:
        errors.append(f"Source language: {error}")

    if target_language and target_language == source_language:
        errors.append("Target language must differ from source language")

    return len(errors) == 0, errors
