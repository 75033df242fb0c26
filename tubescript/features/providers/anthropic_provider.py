"""
Anthropic Claude completion provider over plain HTTP (httpx).

Talks to the Messages API directly rather than through an SDK so the
transport can be swapped for an httpx.MockTransport in tests.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from tubescript.features.providers.base import (
    CompletionRequest,
    ProviderAuthError,
    ProviderError,
    ProviderResponseError,
    error_for_status,
)

logger = logging.getLogger("tubescript")

ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-3-haiku-20240307"


class AnthropicProvider:
    """CompletionProvider backed by the Anthropic Messages API."""

    name = "anthropic"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        default_model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
        api_url: str = ANTHROPIC_API_URL,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.timeout = timeout
        self.api_url = api_url
        self._client = client

    def _headers(self) -> Dict[str, str]:
        return {
            "content-type": "application/json",
            "x-api-key": self.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
        }

    async def _post(self, body: Dict[str, Any]) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(self.api_url, json=body, headers=self._headers(), timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.api_url, json=body, headers=self._headers())

    async def send_messages(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """POST a raw Messages API body and return the decoded JSON response."""
        if not self.api_key:
            raise ProviderAuthError("ANTHROPIC_API_KEY not configured", provider=self.name)

        try:
            response = await self._post(body)
        except httpx.TimeoutException as e:
            raise ProviderError(f"Anthropic request timed out: {e}", provider=self.name)
        except httpx.HTTPError as e:
            raise ProviderError(f"Anthropic request failed: {e}", provider=self.name)

        if response.status_code != 200:
            logger.warning(
                "provider.http_error",
                extra={"provider": self.name, "status": response.status_code},
            )
            raise error_for_status(
                response.status_code,
                f"Anthropic API returned {response.status_code}: {response.text[:300]}",
                self.name,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderResponseError(f"Anthropic returned invalid JSON: {e}", provider=self.name)

    async def complete(self, request: CompletionRequest) -> str:
        body: Dict[str, Any] = {
            "model": request.model or self.default_model,
            "max_tokens": request.max_tokens,
            "messages": [{"role": "user", "content": request.user}],
        }
        if request.system:
            body["system"] = request.system

        data = await self.send_messages(body)
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise ProviderResponseError("Anthropic response has no content blocks", provider=self.name)
        if not all(isinstance(block, dict) for block in blocks):
            raise ProviderResponseError("Anthropic response has malformed content blocks", provider=self.name)
        return "".join(str(block.get("text") or "") for block in blocks if block.get("type") == "text")
