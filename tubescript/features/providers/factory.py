"""Build the configured completion provider."""
from typing import Optional

from tubescript.core.config import Settings, settings as default_settings
from tubescript.features.providers.anthropic_provider import AnthropicProvider
from tubescript.features.providers.base import CompletionProvider
from tubescript.features.providers.gemini_provider import GeminiProvider
from tubescript.features.providers.groq_provider import GroqProvider

PROVIDERS = {
    "gemini": lambda cfg: GeminiProvider(cfg.GEMINI_API_KEY, timeout=cfg.LLM_TIMEOUT_SECONDS),
    "anthropic": lambda cfg: AnthropicProvider(cfg.ANTHROPIC_API_KEY, timeout=cfg.LLM_TIMEOUT_SECONDS),
    "groq": lambda cfg: GroqProvider(cfg.GROQ_API_KEY, timeout=cfg.LLM_TIMEOUT_SECONDS),
}


def build_provider(settings_obj: Optional[Settings] = None) -> CompletionProvider:
    """
    Construct the provider named by LLM_PROVIDER.

    Raises:
        ValueError: Unknown provider name
    """
    cfg = settings_obj or default_settings
    name = (cfg.LLM_PROVIDER or "").lower()
    if name not in PROVIDERS:
        raise ValueError(f"Unknown LLM_PROVIDER: {cfg.LLM_PROVIDER!r} (expected one of {', '.join(PROVIDERS)})")
    return PROVIDERS[name](cfg)
