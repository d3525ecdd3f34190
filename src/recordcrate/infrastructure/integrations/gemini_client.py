"""Gemini text generation client (google-genai SDK)."""

import asyncio
import logging

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from recordcrate.config.settings import GeminiSettings
from recordcrate.domain.exceptions import ConfigurationError, ExternalServiceError

logger = logging.getLogger(__name__)


class GeminiClient:
    """Async wrapper around ``genai.Client`` for single-prompt JSON answers.

    Every failure (timeout, connection error, API error, empty answer) surfaces as
    ExternalServiceError with the API status code when there is one, so the
    caller decides whether to fall back or to stop calling the model.
    """

    def __init__(
        self, settings: GeminiSettings, client: genai.Client | None = None
    ) -> None:
        self.settings = settings
        self._client = client

    @property
    def is_configured(self) -> bool:
        return self._client is not None or bool(self.settings.api_key.strip())

    def _get_client(self) -> genai.Client:
        if self._client is None:
            if not self.settings.api_key.strip():
                raise ConfigurationError("GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=self.settings.api_key)
        return self._client

    async def generate_json_text(self, prompt: str) -> str:
        """Send ``prompt`` and return the raw text of the first candidate.

        Raises:
            ConfigurationError: no API key
            ExternalServiceError: timeout, transport failure, API error or empty
                response
        """
        client = self._get_client()
        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.settings.model,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        temperature=0.7,
                        response_mime_type="application/json",
                    ),
                ),
                timeout=self.settings.timeout_seconds,
            )
        except TimeoutError as e:
            raise ExternalServiceError(
                f"Gemini timed out after {self.settings.timeout_seconds}s",
                service="gemini",
            ) from e
        except genai_errors.APIError as e:
            logger.warning("Gemini API error %s: %s", e.code, e.message)
            raise ExternalServiceError(
                f"Gemini API error: {e.message}", service="gemini", http_status=e.code
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                f"Gemini unreachable: {e}", service="gemini"
            ) from e

        text = response.text
        if not text:
            raise ExternalServiceError("Gemini returned no text", service="gemini")
        return text
