"""
Text Processing Utilities
=========================
Batching helpers and parsing of model responses.
"""
import json
import re
from typing import Any, Dict, List, Sequence, TypeVar

from content_translator.utils.exceptions import ExternalServiceError
from content_translator.utils.logging import debug_print

T = TypeVar('T')

_FENCED_JSON = re.compile(r'```(?:json)?\s*(.*?)\s*```', re.DOTALL | re.IGNORECASE)


def split_into_batches(items: Sequence[T], batch_size: int) -> List[List[T]]:
    """Split items into consecutive batches of at most batch_size."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]


def page_location_from_key(translation_key: str) -> str:
    """'pricing.hero.title' -> 'pricing'."""
    return translation_key.split('.')[0]


def clean_json_response(content: str) -> str:
    """
    Strip the wrapping a model puts around a JSON answer.

    Removes reasoning tags and markdown code fences so the remaining
    text can be handed to json.loads.
    """
    if not content:
        return ""

    content = content.strip()
    content = re.sub(r'<think>.*?</think>', '', content, flags=re.DOTALL | re.IGNORECASE)
    content = re.sub(r'<thinking>.*?</thinking>', '', content, flags=re.DOTALL | re.IGNORECASE)
    content = content.strip()

    match = _FENCED_JSON.search(content)
    if match:
        return match.group(1).strip()
    return content


def _load_json_list(content: str, what: str) -> List[Any]:
    cleaned = clean_json_response(content)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ExternalServiceError(f"Invalid JSON in {what} response: {e}")

    # Some models wrap the array in an object
    if isinstance(payload, dict):
        for value in payload.values():
            if isinstance(value, list):
                payload = value
                break

    if not isinstance(payload, list):
        raise ExternalServiceError(f"Expected a JSON array in {what} response, got {type(payload).__name__}")
    return payload


def parse_translation_entries(content: str) -> List[Dict[str, str]]:
    """
    Parse a translation response into [{key, text}] entries.

    Args:
        content: Raw assistant message content

    Returns:
        Entries with string key and text. Entries of any other shape are
        skipped; the caller decides what a valid translation is.

    Raises:
        ExternalServiceError: if the content is not a JSON array
    """
    payload = _load_json_list(content, 'translation')

    entries = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        key = item.get('key')
        text = item.get('text')
        if not isinstance(key, str) or not isinstance(text, str):
            debug_print(f"[PARSE] Skipping malformed entry: {str(item)[:80]}", 'WARNING', 'PARSE')
            continue
        entries.append({'key': key, 'text': text})
    return entries


def parse_quality_scores(content: str) -> List[Dict[str, Any]]:
    """
    Parse an evaluation response into [{key, score, issues}] entries.

    Scores are clamped to 0..100. Entries without a key or a numeric
    score are skipped.
    """
    payload = _load_json_list(content, 'evaluation')

    scores = []
    for item in payload:
        if not isinstance(item, dict) or not isinstance(item.get('key'), str):
            continue
        score = item.get('score')
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            continue
        issues = item.get('issues') or []
        scores.append({
            'key': item['key'],
            'score': max(0.0, min(100.0, float(score))),
            'issues': [str(i) for i in issues] if isinstance(issues, list) else [],
        })
    return scores
