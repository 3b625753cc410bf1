"""
Gemini Generation Client

Calls the Google Generative Language REST API (generateContent).

API Documentation: https://ai.google.dev/api/generate-content
Free tier enforces both per-minute and per-day request quotas; pacing is
the job of RateLimitedCaller, this client only classifies failures.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from tipster_ai.domain.exceptions import (
    ModelNotFoundException,
    ServiceException,
    ThrottledException,
)
from tipster_ai.domain.repositories.repositories import TextGenerator


logger = logging.getLogger(__name__)

# Error markers the API uses when a quota is exhausted
QUOTA_MARKERS = ("RESOURCE_EXHAUSTED", "quota")


@dataclass
class GeminiConfig:
    """Configuration for the Generative Language API."""
    api_key: Optional[str] = None
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout: int = 60

    def __post_init__(self):
        if self.api_key is None:
            self.api_key = os.getenv("GEMINI_API_KEY")


class GeminiClient(TextGenerator):
    """
    Text generation through Gemini models.

    Returns the raw JSON envelope; text extraction happens in the domain.
    """

    def __init__(
        self,
        config: Optional[GeminiConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client. ``transport`` is for tests."""
        self.config = config or GeminiConfig()
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        """Check if API key is configured."""
        return bool(self.config.api_key)

    async def generate_text(self, prompt: str, model: str) -> dict:
        """
        Generate content for a prompt.

        Raises:
            ThrottledException: HTTP 429 or a quota-exhausted error
            ModelNotFoundException: HTTP 404 (unknown or unsupported model)
            ServiceException: any other failure
        """
        if not self.is_configured:
            raise ServiceException("Gemini not configured (no API key)")

        url = f"{self.config.base_url}/models/{model}:generateContent"
        headers = {
            "x-goog-api-key": self.config.api_key,
            "Content-Type": "application/json",
        }
        payload = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                response = await client.post(
                    url,
                    headers=headers,
                    json=payload,
                    timeout=self.config.timeout,
                )
        except httpx.HTTPError as e:
            logger.error(f"Gemini request error: {e}")
            raise ServiceException(f"Gemini request failed: {type(e).__name__}: {e}") from e

        if response.status_code == 429 or self._is_quota_error(response):
            logger.warning("Gemini quota exhausted")
            raise ThrottledException(f"Gemini quota exhausted: {self._error_message(response)}", response.status_code)

        if response.status_code == 404:
            raise ModelNotFoundException(model)

        if response.is_error:
            logger.error(f"Gemini HTTP error {response.status_code}: {self._error_message(response)}")
            raise ServiceException(f"Gemini error: {self._error_message(response)}", response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise ServiceException(f"Gemini returned invalid JSON: {e}", response.status_code) from e

    def _is_quota_error(self, response: httpx.Response) -> bool:
        if not response.is_error:
            return False
        body = response.text or ""
        return any(marker.lower() in body.lower() for marker in QUOTA_MARKERS)

    def _error_message(self, response: httpx.Response) -> str:
        try:
            error = response.json().get("error", {})
            return error.get("message") or error.get("status") or response.reason_phrase
        except (ValueError, AttributeError):
            return (response.text or response.reason_phrase)[:200]
