"""
Minimal client for OpenAI-compatible chat completion APIs.

Shared by the inference and refinement collaborators. Calls are made with
``requests`` and a hard timeout, temperature 0 for reproducibility, and
are accounted in the optional RateLimiter.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Type

import requests

from formprobe.config import Config
from formprobe.utils.rate_limiter import RateLimiter

from .errors import ExternalServiceError

logger = logging.getLogger(__name__)


class ChatCompletionClient:
    """Posts chat messages and returns the assistant's text content."""

    def __init__(
        self,
        service_name: str,
        api_key: Optional[str] = None,
        api_base: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout: Optional[float] = None,
        rate_limiter: Optional[RateLimiter] = None,
        error_class: Type[ExternalServiceError] = ExternalServiceError
    ):
        """
        Initialize the client.

        Args:
            service_name: Name used for rate limiting and logs
            api_key: API key (from Config if not provided)
            api_base: Base URL of the API (from Config if not provided)
            model_name: Model to use (from Config if not provided)
            timeout: Request timeout in seconds
            rate_limiter: Optional shared rate limiter
            error_class: Exception type raised on any failure
        """
        self.service_name = service_name
        self.api_key = api_key or Config.INFERENCE_API_KEY
        self.api_base = (api_base or Config.INFERENCE_API_BASE).rstrip('/')
        self.model_name = model_name or Config.INFERENCE_MODEL
        self.timeout = timeout or Config.INFERENCE_TIMEOUT_SECONDS
        self.rate_limiter = rate_limiter
        self.error_class = error_class

    @property
    def is_available(self) -> bool:
        """Check if the API can be called at all."""
        return bool(self.api_key)

    def complete(self, messages: List[Dict[str, Any]], max_tokens: int = 4096) -> str:
        """
        Run one chat completion.

        Returns:
            The assistant message content

        Raises:
            error_class: on missing credentials, exhausted call budget,
                transport errors, non-success status or malformed body
        """
        if not self.is_available:
            raise self.error_class(f"{self.service_name} API key is not configured")

        if self.rate_limiter:
            can_call, reason = self.rate_limiter.can_make_call(self.service_name)
            if not can_call:
                raise self.error_class(f"Rate limit exceeded: {reason}")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }
        payload = {
            "model": self.model_name,
            "messages": messages,
            "temperature": 0.0,
            "max_tokens": max_tokens
        }

        try:
            response = requests.post(
                f"{self.api_base}/chat/completions",
                headers=headers,
                json=payload,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise self.error_class(f"{self.service_name} request failed: {e}") from e
        finally:
            if self.rate_limiter:
                self.rate_limiter.record_call(self.service_name)

        if response.status_code >= 400:
            raise self._http_error(response)

        try:
            data = response.json()
            return data['choices'][0]['message']['content'] or ''
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise self.error_class(f"Malformed {self.service_name} response: {e}") from e

    def _http_error(self, response: requests.Response) -> ExternalServiceError:
        message = f"{self.service_name} returned HTTP {response.status_code}: {response.text[:500]}"
        logger.error(message)
        return self.error_class(message, status_code=response.status_code)


def parse_json_content(content: str) -> Any:
    """
    Parse JSON from a model reply.

    Handles replies wrapped in markdown code blocks.

    Raises:
        json.JSONDecodeError: if no valid JSON can be read
    """
    text = content.strip()

    if "```json" in text:
        start = text.find("```json") + 7
        end = text.find("```", start)
        text = text[start:end].strip()
    elif "```" in text:
        start = text.find("```") + 3
        end = text.find("```", start)
        text = text[start:end].strip()

    return json.loads(text)
