"""Groq completion provider through LangChain (langchain-groq)."""
import logging
from typing import Any, Callable, Dict, Optional, Tuple

import groq
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_groq import ChatGroq

from tubescript.features.providers.base import (
    CompletionRequest,
    ProviderAuthError,
    ProviderError,
    ProviderResponseError,
    error_for_status,
)

logger = logging.getLogger("tubescript")

DEFAULT_MODEL = "llama-3.1-8b-instant"


class GroqProvider:
    """CompletionProvider backed by a LangChain ChatGroq model."""

    name = "groq"

    def __init__(
        self,
        api_key: Optional[str],
        *,
        default_model: str = DEFAULT_MODEL,
        timeout: float = 60.0,
        temperature: float = 0.9,
        llm_factory: Optional[Callable[..., Any]] = None,
    ):
        self.api_key = api_key
        self.default_model = default_model
        self.timeout = timeout
        self.temperature = temperature
        self._llm_factory = llm_factory or ChatGroq
        self._models: Dict[Tuple[str, int], Any] = {}

    def _llm(self, model: str, max_tokens: int):
        key = (model, max_tokens)
        if key not in self._models:
            if not self.api_key:
                raise ProviderAuthError("GROQ_API_KEY not configured", provider=self.name)
            self._models[key] = self._llm_factory(
                model_name=model,
                api_key=self.api_key,
                temperature=self.temperature,
                max_tokens=max_tokens,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._models[key]

    async def complete(self, request: CompletionRequest) -> str:
        llm = self._llm(request.model or self.default_model, request.max_tokens)
        messages = []
        if request.system:
            messages.append(SystemMessage(content=request.system))
        messages.append(HumanMessage(content=request.user))

        try:
            response = await llm.ainvoke(messages)
        except groq.APIStatusError as e:
            logger.warning("provider.http_error", extra={"provider": self.name, "status": e.status_code})
            raise error_for_status(e.status_code, f"Groq API error: {e}", self.name)
        except groq.APIError as e:
            raise ProviderError(f"Groq request failed: {e}", provider=self.name)

        content = getattr(response, "content", None)
        if content is None:
            raise ProviderResponseError("Groq response has no content", provider=self.name)
        if isinstance(content, list):
            if not all(isinstance(part, (str, dict)) for part in content):
                raise ProviderResponseError("Groq response has malformed content parts", provider=self.name)
            content = "".join(part if isinstance(part, str) else str(part.get("text") or "") for part in content)
        if not isinstance(content, str):
            raise ProviderResponseError("Groq response content is not text", provider=self.name)
        return content
