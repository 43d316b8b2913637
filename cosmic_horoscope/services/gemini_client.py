"""
Gemini generateContent client.

This module provides the generation provider used by the horoscope service.
The client performs one HTTP call per generate() and classifies every failure
into the upstream exception hierarchy. Retrying is left to the caller.
"""

import asyncio
import functools
import logging
import time
from typing import Any, Dict, Optional

import requests

from cosmic_horoscope.exceptions import (
    ConfigurationError,
    UpstreamAuthError,
    UpstreamError,
    UpstreamOverloadedError,
    UpstreamRateLimitedError,
)
from cosmic_horoscope.utils.retry import RETRYABLE_MESSAGE_MARKERS

logger = logging.getLogger(__name__)


class GeminiClient:
    """
    Client for the Gemini generateContent endpoint.

    The blocking `requests` call runs in the event loop's default executor
    so concurrent generations do not block each other.

    Attributes:
        model: Model name used in the request path
        base_url: API base URL (without trailing slash)
        timeout_seconds: Per-request timeout
    """

    AUTH_STATUS_CODES = {401, 403}
    RATE_LIMIT_STATUS_CODE = 429
    OVERLOADED_STATUS_CODE = 503

    def __init__(
        self,
        api_key: Optional[str],
        model: str = 'gemini-2.5-flash',
        base_url: str = 'https://generativelanguage.googleapis.com/v1',
        temperature: float = 0.9,
        top_k: int = 40,
        top_p: float = 0.95,
        max_output_tokens: int = 1024,
        timeout_seconds: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize Gemini client.

        Args:
            api_key: Provider API key (a missing key fails on first generate)
            model: Model name
            base_url: API base URL
            temperature: Sampling temperature
            top_k: Top-k sampling parameter
            top_p: Nucleus sampling parameter
            max_output_tokens: Maximum generated tokens
            timeout_seconds: Per-request timeout in seconds
            session: Optional requests session (for testing)
        """
        self._api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip('/')
        self.timeout_seconds = timeout_seconds
        self.generation_config = {
            'temperature': temperature,
            'topK': top_k,
            'topP': top_p,
            'maxOutputTokens': max_output_tokens,
        }
        self._session = session or requests.Session()

        logger.info(
            f"Initialized GeminiClient with model={model}, "
            f"timeout={timeout_seconds}s"
        )

    @classmethod
    def from_settings(cls, settings, session: Optional[requests.Session] = None) -> 'GeminiClient':
        """
        Create a client from application settings.

        Args:
            settings: Settings instance
            session: Optional requests session

        Returns:
            Configured GeminiClient
        """
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_api_base_url,
            temperature=settings.temperature,
            top_k=settings.top_k,
            top_p=settings.top_p,
            max_output_tokens=settings.max_output_tokens,
            timeout_seconds=settings.timeout_seconds,
            session=session
        )

    @property
    def endpoint(self) -> str:
        """generateContent URL for the configured model."""
        return f'{self.base_url}/models/{self.model}:generateContent'

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        """
        Build the generateContent request body.

        Args:
            prompt: Prompt text

        Returns:
            Request body dictionary
        """
        return {
            'contents': [{
                'parts': [{
                    'text': prompt
                }]
            }],
            'generationConfig': dict(self.generation_config)
        }

    async def generate(self, prompt: str) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: Prompt text

        Returns:
            Generated text (text of all parts joined by newlines)

        Raises:
            ConfigurationError: If no API key is configured
            UpstreamAuthError: On 401/403
            UpstreamRateLimitedError: On 429
            UpstreamOverloadedError: On 503 or an overloaded/unavailable error
            UpstreamError: On any other failure
        """
        if not self._api_key:
            raise ConfigurationError(
                'API key not configured. Please set the GEMINI_API_KEY environment variable.'
            )

        loop = asyncio.get_running_loop()
        start_time = time.time()

        response = await loop.run_in_executor(
            None,
            functools.partial(self._post, prompt)
        )

        duration_ms = (time.time() - start_time) * 1000
        logger.debug(
            f"Gemini responded with {response.status_code} in {duration_ms:.2f}ms",
            extra={
                'status_code': response.status_code,
                'duration_ms': duration_ms
            }
        )

        return self._handle_response(response)

    def _post(self, prompt: str) -> requests.Response:
        """Send the blocking HTTP request."""
        try:
            return self._session.post(
                self.endpoint,
                params={'key': self._api_key},
                json=self.build_payload(prompt),
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout_seconds
            )
        except requests.Timeout as e:
            raise UpstreamError(
                f'Gemini request timed out after {self.timeout_seconds}s',
                details={'error': str(e)}
            ) from e
        except requests.RequestException as e:
            raise UpstreamError(
                f'Gemini request failed: {e}',
                details={'error': str(e)}
            ) from e

    def _handle_response(self, response: requests.Response) -> str:
        """
        Classify the provider response and extract the generated text.

        Args:
            response: Provider HTTP response

        Returns:
            Generated text
        """
        body = self._parse_body(response)
        status_code = response.status_code

        if 200 <= status_code < 300:
            return self._extract_text(body)

        error_message = self._error_message(body) or response.reason or ''

        logger.error(
            f"Gemini API error: {status_code} {error_message}",
            extra={
                'status_code': status_code,
                'error_body': body
            }
        )

        if status_code in self.AUTH_STATUS_CODES:
            raise UpstreamAuthError(
                'API authentication failed',
                status_code=status_code,
                details={'error': body, 'hint': 'Check GEMINI_API_KEY environment variable'}
            )

        if status_code == self.RATE_LIMIT_STATUS_CODE:
            raise UpstreamRateLimitedError(
                'Rate limit exceeded. Please wait before making more requests.',
                status_code=status_code,
                details={'error': body}
            )

        lowered = error_message.lower()
        if (status_code == self.OVERLOADED_STATUS_CODE
                or any(marker in lowered for marker in RETRYABLE_MESSAGE_MARKERS)):
            raise UpstreamOverloadedError(
                error_message or 'The model is overloaded',
                status_code=status_code,
                details={'error': body}
            )

        raise UpstreamError(
            f'Failed to generate horoscope: {status_code} {error_message}'.strip(),
            status_code=status_code,
            details={'error': body}
        )

    @staticmethod
    def _parse_body(response: requests.Response) -> Dict[str, Any]:
        """Decode a JSON body, returning {} when the body is not JSON."""
        try:
            body = response.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {}

    @staticmethod
    def _error_message(body: Dict[str, Any]) -> str:
        """Get the provider error message from an error body."""
        error = body.get('error')
        if isinstance(error, dict):
            return str(error.get('message') or error.get('status') or '')
        if isinstance(error, str):
            return error
        return ''

    @staticmethod
    def _extract_text(body: Dict[str, Any]) -> str:
        """
        Extract generated text from a successful response body.

        Raises:
            UpstreamError: If the body has no candidate text
        """
        candidates = body.get('candidates') or []
        content = candidates[0].get('content') if candidates and isinstance(candidates[0], dict) else None
        parts = content.get('parts') if isinstance(content, dict) else None

        if not parts:
            logger.error("Unexpected Gemini response", extra={'response_body': body})
            raise UpstreamError('Unexpected response from AI service', details={'response': body})

        text = '\n'.join(
            part.get('text', '') for part in parts
            if isinstance(part, dict) and part.get('text')
        )

        if not text.strip():
            raise UpstreamError('AI service returned empty text', details={'response': body})

        return text
