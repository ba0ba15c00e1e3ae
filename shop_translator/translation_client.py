"""Single-shot HTTP client for the Anthropic Messages API."""
import logging
from typing import Any, Dict, List, Optional

import requests

from shop_translator.app_config import AppConfig
from shop_translator.errors import ConfigurationError, ProviderError, TransportError
from shop_translator.prompt_builder import build_batch_user_prompt, build_single_user_prompt

logger = logging.getLogger(__name__)

# Model families that accept the larger output budget.
LARGE_OUTPUT_MODEL_PATTERNS = (
    'claude-3-5', 'claude-3-7', 'claude-sonnet-4', 'claude-opus-4', 'claude-haiku-4',
)
LARGE_MAX_TOKENS = 8192
DEFAULT_MAX_TOKENS = 4096


def get_max_tokens(model_name: str) -> int:
    """Output token ceiling for a model, by name pattern."""
    if any(pattern in model_name for pattern in LARGE_OUTPUT_MODEL_PATTERNS):
        return LARGE_MAX_TOKENS
    return DEFAULT_MAX_TOKENS


class TranslationClient:
    """
    Sends translation requests to the provider.

    Every call is a single request: no retries happen here, callers decide
    what a failure means for their batch.
    """

    def __init__(self, config: AppConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        if not self.config.api_key:
            raise ConfigurationError("Anthropic API key not configured. Please set ANTHROPIC_API_KEY.")
        return {
            'x-api-key': self.config.api_key,
            'anthropic-version': self.config.api_version,
            'content-type': 'application/json',
        }

    def _url(self, path: str) -> str:
        return self.config.api_base_url.rstrip('/') + path

    def _send(self, method: str, path: str, timeout: float, payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        headers = self._headers()
        try:
            response = self.session.request(method, self._url(path), headers=headers, json=payload, timeout=timeout)
        except requests.Timeout as timeout_exc:
            logger.error("Anthropic API request timed out after %ss: %s", timeout, timeout_exc)
            raise TransportError(f"Request to Anthropic API timed out after {timeout}s") from timeout_exc
        except requests.RequestException as request_exc:
            logger.error("Anthropic API connection error: %s", request_exc)
            raise TransportError(f"Failed to connect to Anthropic API: {request_exc}") from request_exc

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            error = data.get('error') if isinstance(data, dict) else None
            message = error.get('message') if isinstance(error, dict) else None
            message = message or 'Unknown error'
            logger.error("Anthropic API error (status %s): %s", response.status_code, message)
            logger.debug("Anthropic API error response:\n---\n%s\n---", response.text)
            raise ProviderError(f"Anthropic API error: {message}", status_code=response.status_code)

        if not isinstance(data, dict):
            raise ProviderError("Invalid response structure from Anthropic API", status_code=response.status_code)
        return data

    def _create_message(self, user_prompt: str, system_prompt: str) -> str:
        payload = {
            'model': self.config.model_name,
            'max_tokens': get_max_tokens(self.config.model_name),
            'system': system_prompt,
            'messages': [
                {'role': 'user', 'content': user_prompt}
            ],
        }
        data = self._send('POST', '/v1/messages', self.config.request_timeout, payload)
        try:
            return data['content'][0]['text'].strip()
        except (KeyError, IndexError, TypeError, AttributeError) as structure_exc:
            raise ProviderError("Invalid response structure from Anthropic API") from structure_exc

    def translate_one(self, text: str, language_code: str, system_prompt: str) -> str:
        """Translate a single text and return the translated text."""
        user_prompt = build_single_user_prompt(text, language_code, self.config.source_language)
        return self._create_message(user_prompt, system_prompt)

    def translate_batch(self, texts: Dict[str, str], language_code: str, system_prompt: str) -> str:
        """
        Translate a ``{field_key: text}`` mapping in one request.

        Returns the raw response text; turning it into a mapping is the job of
        ``response_recovery.parse_batch_response``.
        """
        user_prompt = build_batch_user_prompt(texts, language_code, self.config.source_language)
        logger.debug("Sending batch of %d field(s) to model '%s' for '%s'.",
                     len(texts), self.config.model_name, language_code)
        return self._create_message(user_prompt, system_prompt)

    def list_models(self) -> List[Dict[str, Any]]:
        data = self._send('GET', '/v1/models', self.config.metadata_timeout)
        return data.get('data', [])
