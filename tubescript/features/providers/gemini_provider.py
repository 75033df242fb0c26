"""Google Gemini completion provider (google-genai SDK)."""
import logging
from typing import Any, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from tubescript.features.providers.base import (
    CompletionRequest,
    ProviderAuthError,
    ProviderError,
    ProviderResponseError,
    error_for_status,
)

logger = logging.getLogger("tubescript")

DEFAULT_MODEL = "gemini-1.5-pro"


class GeminiProvider:
    """CompletionProvider backed by the Gemini generate_content API."""

    name = "gemini"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        default_model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        client: Optional[Any] = None,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.timeout = timeout
        self._client = client

    def _get_client(self):
        if self._client is None:
            if not self.api_key:
                raise ProviderAuthError("GEMINI_API_KEY not configured", provider=self.name)
            # HttpOptions.timeout is milliseconds
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
            )
        return self._client

    async def complete(self, request: CompletionRequest) -> str:
        client = self._get_client()
        config = types.GenerateContentConfig(
            system_instruction=request.system or None,
            max_output_tokens=request.max_tokens,
        )
        try:
            response = await client.aio.models.generate_content(
                model=request.model or self.default_model,
                contents=request.user,
                config=config,
            )
        except genai_errors.APIError as e:
            code = getattr(e, "code", None) or 500
            logger.warning("provider.http_error", extra={"provider": self.name, "status": code})
            raise error_for_status(int(code), f"Gemini API error: {e}", self.name)
        except Exception as e:
            raise ProviderError(f"Gemini request failed: {e}", provider=self.name)

        try:
            text = response.text
        except (AttributeError, ValueError) as e:
            raise ProviderResponseError(f"Gemini returned an unreadable response: {e}", provider=self.name)
        return text or ""
