"""
Tests for parsing, batching and validation helpers
"""
import json

import pytest

from content_translator.utils.exceptions import ExternalServiceError
from content_translator.utils.logging import LogBuffer
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


class TestBatching:
    """Test batch splitting."""

    def test_split(self):
        assert split_into_batches(list(range(5)), 2) == [[0, 1], [2, 3], [4]]

    def test_empty(self):
        assert split_into_batches([], 100) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            split_into_batches([1], 0)

    def test_page_location(self):
        assert page_location_from_key('pricing.hero.title') == 'pricing'
        assert page_location_from_key('standalone') == 'standalone'


class TestResponseParsing:
    """Test parsing of model output."""

    def test_clean_strips_fences_and_thinking(self):
        content = '<think>hmm</think>\n```json\n[{"key": "a", "text": "b"}]\n```'
        assert json.loads(clean_json_response(content)) == [{'key': 'a', 'text': 'b'}]

    @pytest.mark.parametrize('content', [
        '```json [{"key": "a", "text": "b"}]```',
        '```[{"key": "a", "text": "b"}]```',
        '```JSON\n[{"key": "a", "text": "b"}]\n```',
    ])
    def test_fence_variants(self, content):
        assert parse_translation_entries(content) == [{'key': 'a', 'text': 'b'}]

    def test_wrapped_array(self):
        content = json.dumps({'translations': [{'key': 'a', 'text': 'A'}]})
        assert parse_translation_entries(content) == [{'key': 'a', 'text': 'A'}]

    def test_malformed_entries_skipped(self):
        content = json.dumps([{'key': 'a', 'text': 'A'}, {'key': 'b'}, 'junk', {'key': 3, 'text': 'x'}])
        assert parse_translation_entries(content) == [{'key': 'a', 'text': 'A'}]

    @pytest.mark.parametrize('content', ['', 'nope', '{"a": 1}', '"text"'])
    def test_invalid_payload_raises(self, content):
        with pytest.raises(ExternalServiceError):
            parse_translation_entries(content)

    def test_quality_scores(self):
        content = json.dumps([
            {'key': 'a', 'score': 77, 'issues': ['tone']},
            {'key': 'b', 'score': 'high'},
            {'key': 'c', 'score': 101.5},
        ])
        assert parse_quality_scores(content) == [
            {'key': 'a', 'score': 77.0, 'issues': ['tone']},
            {'key': 'c', 'score': 100.0, 'issues': []},
        ]


class TestValidators:
    """Test input validators."""

    @pytest.mark.parametrize('code', ['en', 'no', 'pt-BR'])
    def test_valid_codes(self, code):
        assert validate_language_code(code) == (True, None)

    @pytest.mark.parametrize('code', ['', None, 'EN', 'eng', 'pt-br', 'pt_BR', 5])
    def test_invalid_codes(self, code):
        valid, error = validate_language_code(code)
        assert valid is False
        assert error

    def test_key_limits(self):
        assert validate_translation_keys(['a'] * 3, max_keys=3) == []
        assert validate_translation_keys(['a'] * 4, max_keys=3)
        assert validate_translation_keys(['x' * 500]) == []
        assert validate_translation_keys(['x' * 501])

    def test_translate_request_collects_errors(self):
        valid, errors = validate_translate_request([], 'xx_X', 'en')
        assert valid is False
        assert len(errors) == 2


class TestLogBuffer:
    """Test the in-memory log buffer."""

    def test_since_and_capacity(self):
        buffer = LogBuffer(max_size=2)
        for i in range(3):
            buffer.add('INFO', 'TEST', f"message {i}")

        assert [e['message'] for e in buffer.get_all()] == ['message 1', 'message 2']
        assert [e['id'] for e in buffer.get_since(2)] == [3]

        buffer.clear()
        assert buffer.get_all() == []

    def test_level_filter(self):
        buffer = LogBuffer(max_size=10)
        buffer.add('info', 'SYNC', 'created rows')
        buffer.add('ERROR', 'TRANSLATE', 'batch failed')
        buffer.add('SUCCESS', 'APP', 'unknown level')

        assert [e['level'] for e in buffer.get_all()] == ['INFO', 'ERROR', 'INFO']
        assert [e['message'] for e in buffer.get_all('warning')] == ['batch failed']
