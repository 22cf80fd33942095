"""
AI Gateway Client
=================
Client for an OpenAI-compatible chat completions gateway.
"""
import json
import requests
from typing import Optional, List, Dict, Any
from dataclasses import dataclass

from content_translator.config import config
from content_translator.utils.logging import get_logger

RATE_LIMIT_STATUS = 429


@dataclass
class AIResponse:
    """Response from the AI gateway."""
    success: bool
    text: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    model: Optional[str] = None

    @property
    def rate_limited(self) -> bool:
        return self.status_code == RATE_LIMIT_STATUS


class AIGatewayClient:
    """
    Client for the external translation capability.

    Failures never raise: they come back as an AIResponse with
    success=False and, for HTTP errors, the status code.
    """

    def __init__(self, base_url: str = None, api_key: str = None, model: str = None):
        self.base_url = (base_url or config.ai.base_url).rstrip('/')
        self.api_key = api_key if api_key is not None else config.ai.api_key
        self.model = model or config.ai.model
        self.logger = get_logger().app_logger

        self.session = requests.Session()
        adapter = requests.adapters.HTTPAdapter(pool_connections=10, pool_maxsize=10)
        self.session.mount('http://', adapter)
        self.session.mount('https://', adapter)

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str = None,
        temperature: float = None
    ) -> AIResponse:
        """
        Send one system + user exchange to the gateway.

        Returns:
            AIResponse with the assistant message content
        """
        model = model or self.model
        temperature = temperature if temperature is not None else config.ai.temperature

        payload = {
            'model': model,
            'messages': [
                {'role': 'system', 'content': system_prompt},
                {'role': 'user', 'content': user_prompt},
            ],
            'temperature': temperature,
        }
        headers = {
            'Authorization': f"Bearer {self.api_key}",
            'Content-Type': 'application/json',
        }

        try:
            response = self.session.post(
                self.chat_url,
                json=payload,
                headers=headers,
                timeout=(config.ai.connect_timeout, config.ai.read_timeout)
            )
        except requests.Timeout:
            return AIResponse(success=False, error="Request timed out", model=model)
        except requests.RequestException as e:
            return AIResponse(success=False, error=str(e), model=model)

        if not response.ok:
            self.logger.error(f"AI gateway returned {response.status_code}: {response.text[:200]}")
            return AIResponse(
                success=False,
                error=f"HTTP {response.status_code}",
                status_code=response.status_code,
                model=model
            )

        try:
            data = response.json()
            content = data['choices'][0]['message']['content']
        except (json.JSONDecodeError, ValueError) as e:
            return AIResponse(success=False, error=f"Invalid JSON response: {e}",
                              status_code=response.status_code, model=model)
        except (KeyError, IndexError, TypeError):
            return AIResponse(success=False, error="Response has no message content",
                              status_code=response.status_code, model=model)

        return AIResponse(success=True, text=content or "", status_code=response.status_code, model=model)

    def translate(
        self,
        items: List[Dict[str, Any]],
        target_language: str,
        system_prompt: str
    ) -> AIResponse:
        """
        Ask for translations of {key, text, page, context} items.

        The assistant is asked for a JSON array of {key, text}.
        """
        user_prompt = (
            f"Translate the following texts to {target_language}. "
            f"Return ONLY valid JSON: an array of objects with \"key\" and \"text\". "
            f"Each \"text\" field must contain the actual translation in {target_language}, "
            f"NOT the English key:\n\n{json.dumps(items, ensure_ascii=False, indent=2)}"
        )
        return self.chat(system_prompt, user_prompt)

    def evaluate(self, items: List[Dict[str, Any]], target_language: str) -> AIResponse:
        """
        Ask for quality scores of {key, original, translation} items.

        The assistant is asked for a JSON array of {key, score, issues}.
        """
        system_prompt = (
            "You are a translation quality evaluator. Be critical but fair. "
            "Return ONLY valid JSON."
        )
        user_prompt = f"""Evaluate these {target_language} translations and return a quality score (0-100) for each.
Return ONLY a valid JSON array:
[{{"key": "x", "score": 85, "issues": ["issue1"]}}]

Evaluation criteria:
- Semantic accuracy (30%) - Does it convey the same meaning?
- Technical terms preserved (25%) - Product and technical terms stay in English
- Tone match (20%) - Professional yet human?
- Cultural fit (15%) - Appropriate for the target market?
- Grammar and length (10%)

Translations to evaluate:
{json.dumps(items, ensure_ascii=False, indent=2)}"""
        return self.chat(system_prompt, user_prompt, model=config.ai.evaluation_model)

    def close(self):
        self.session.close()


# Global client instance
_client_instance: Optional[AIGatewayClient] = None


def get_ai_client() -> AIGatewayClient:
    """Get or create the global AI gateway client."""
    global _client_instance
    if _client_instance is None:
        _client_instance = AIGatewayClient()
    return _client_instance
