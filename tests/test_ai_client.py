"""
Tests for the AI gateway client
"""
import json
from unittest.mock import Mock, patch

import pytest
import requests

from content_translator.services.ai_client import AIGatewayClient


def gateway_response(status=200, content=None, body=None):
    response = Mock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.text = json.dumps(body) if body is not None else ''
    if body is not None:
        response.json.return_value = body
    else:
        response.json.return_value = {'choices': [{'message': {'content': content}}]}
    return response


@pytest.fixture
def client():
    gateway = AIGatewayClient(base_url='https://gateway.test/v1/', api_key='key-123', model='test-model')
    yield gateway
    gateway.close()


class TestChat:
    """Test request building and response handling."""

    @patch('requests.Session.post')
    def test_success(self, mock_post, client):
        mock_post.return_value = gateway_response(content='[]')

        response = client.chat('system', 'user')

        assert response.success is True
        assert response.text == '[]'
        args, kwargs = mock_post.call_args
        assert args[0] == 'https://gateway.test/v1/chat/completions'
        assert kwargs['headers']['Authorization'] == 'Bearer key-123'
        assert kwargs['json']['model'] == 'test-model'
        assert [m['role'] for m in kwargs['json']['messages']] == ['system', 'user']

    @patch('requests.Session.post')
    def test_rate_limit_flagged(self, mock_post, client):
        mock_post.return_value = gateway_response(status=429, body={'error': 'slow down'})

        response = client.chat('system', 'user')

        assert response.success is False
        assert response.rate_limited is True
        assert response.status_code == 429

    @patch('requests.Session.post')
    def test_server_error_not_rate_limited(self, mock_post, client):
        mock_post.return_value = gateway_response(status=502, body={'error': 'bad gateway'})

        response = client.chat('system', 'user')

        assert response.success is False
        assert response.rate_limited is False

    @patch('requests.Session.post')
    def test_timeout(self, mock_post, client):
        mock_post.side_effect = requests.Timeout()

        response = client.chat('system', 'user')

        assert response.success is False
        assert 'timed out' in response.error

    @patch('requests.Session.post')
    def test_connection_error(self, mock_post, client):
        mock_post.side_effect = requests.ConnectionError('refused')

        assert client.chat('system', 'user').success is False

    @patch('requests.Session.post')
    def test_missing_content(self, mock_post, client):
        mock_post.return_value = gateway_response(body={'choices': []})

        response = client.chat('system', 'user')

        assert response.success is False
        assert 'no message content' in response.error


class TestPrompts:
    """Test the translate and evaluate wrappers."""

    @patch('requests.Session.post')
    def test_translate_embeds_items(self, mock_post, client):
        mock_post.return_value = gateway_response(content='[]')
        items = [{'key': 'home.title', 'text': 'Welcome', 'page': 'home', 'context': ''}]

        client.translate(items, 'no', 'INSTRUCTION')

        messages = mock_post.call_args.kwargs['json']['messages']
        assert messages[0]['content'] == 'INSTRUCTION'
        assert '"home.title"' in messages[1]['content']
        assert 'to no' in messages[1]['content']

    @patch('requests.Session.post')
    def test_evaluate_uses_evaluation_model(self, mock_post, client):
        from content_translator.config import config

        mock_post.return_value = gateway_response(content='[]')

        client.evaluate([{'key': 'a', 'original': 'A', 'translation': 'Å'}], 'sv')

        assert mock_post.call_args.kwargs['json']['model'] == config.ai.evaluation_model

    def test_is_configured(self):
        assert AIGatewayClient(api_key='').is_configured() is False
        assert AIGatewayClient(api_key='x').is_configured() is True
