"""
Completion provider protocol.

A completion provider turns one (system instruction, user instruction) pair
into generated text. Implementations exist per backend (Gemini, Anthropic,
Groq) and are chosen by configuration; callers never branch on which one
they hold.
"""
from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True)
class CompletionRequest:
    """One outbound completion call."""
    system: str
    user: str
    model: Optional[str] = None  # None = provider default
    max_tokens: int = 1024


class CompletionProvider(Protocol):
    """
    Protocol for completion providers.

    Implementations must:
    - Issue exactly one outbound call per complete()
    - Return the generated text (possibly empty; callers decide what empty means)
    - Raise a ProviderError subclass on any failure, never a raw SDK exception
    """

    name: str

    async def complete(self, request: CompletionRequest) -> str:
        """
        Run one completion.

        Args:
            request: System/user instruction, model and output budget

        Returns:
            Generated text

        Raises:
            ProviderError: On network, auth, quota or malformed-response failure
        """
        ...


class ProviderError(Exception):
    """Base exception for completion provider failures."""

    def __init__(self, message: str, *, provider: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ProviderAuthError(ProviderError):
    """Missing or rejected API key."""


class ProviderRateLimitError(ProviderError):
    """Provider quota or rate limit hit."""


class ProviderResponseError(ProviderError):
    """Malformed input or unusable response."""


def error_for_status(status_code: int, message: str, provider: str) -> ProviderError:
    """Map an HTTP status from a provider to the matching ProviderError kind."""
    if status_code in (401, 403):
        return ProviderAuthError(message, provider=provider, status_code=status_code)
    if status_code == 429:
        return ProviderRateLimitError(message, provider=provider, status_code=status_code)
    if 400 <= status_code < 500:
        return ProviderResponseError(message, provider=provider, status_code=status_code)
    return ProviderError(message, provider=provider, status_code=status_code)
