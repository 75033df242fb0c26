import logging

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional

class Settings(BaseSettings):
    # Environment
    ENV: str = "development"
    CONFIG_STRICT: bool = False
    LOG_LEVEL: Optional[str] = None  # defaults to INFO

    # Completion providers
    LLM_PROVIDER: str = "gemini"  # gemini | anthropic | groq
    GEMINI_API_KEY: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None
    GROQ_API_KEY: Optional[str] = None
    STYLE_MODEL: Optional[str] = None  # None = provider default
    SCRIPT_MODEL: Optional[str] = None
    STYLE_MAX_TOKENS: int = 1024
    SCRIPT_MAX_TOKENS: int = 2048
    LLM_TIMEOUT_SECONDS: float = 60.0
    SCRIPT_VOICEOVER_ONLY: bool = False

    # Usage gate
    FREE_TIER_LIMIT: int = 3

    # Auth (bearer JWT, HS256 shared secret)
    AUTH_JWT_SECRET: Optional[str] = None

    # Database
    DATABASE_URL: Optional[str] = "sqlite:///./tubescript.db"
    TEST_DATABASE_URL: Optional[str] = None

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = None
    STRIPE_WEBHOOK_SECRET: Optional[str] = None
    STRIPE_PRICE_ID: Optional[str] = None

    # App URLs
    BASE_URL: str = "http://localhost:9002"

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = False
    RATE_LIMIT_PER_MINUTE_DEFAULT: int = 120
    RATE_LIMIT_BURST_DEFAULT: int = 30

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )
settings = Settings()


PROVIDER_KEYS = {
    "gemini": "GEMINI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "groq": "GROQ_API_KEY",
}


def validate_config(strict: Optional[bool] = None, settings_obj: Optional[Settings] = None, logger: Optional[logging.Logger] = None) -> bool:
    """Validate required configuration.

    In strict mode raise RuntimeError; otherwise emit warnings only.
    Secrets are not logged, only missing keys.
    """
    cfg = settings_obj or settings
    log = logger or logging.getLogger("tubescript")
    strict_mode = strict if strict is not None else getattr(cfg, "CONFIG_STRICT", False)

    provider = (getattr(cfg, "LLM_PROVIDER", "") or "").lower()
    required_keys = [
        "DATABASE_URL",
        "AUTH_JWT_SECRET",
        "STRIPE_SECRET_KEY",
        "STRIPE_WEBHOOK_SECRET",
    ]
    if provider in PROVIDER_KEYS:
        required_keys.append(PROVIDER_KEYS[provider])

    missing = [key for key in required_keys if not getattr(cfg, key, None)]
    if provider not in PROVIDER_KEYS:
        missing.append(f"LLM_PROVIDER (unknown: {provider or 'unset'})")
    if missing:
        message = f"Missing required configuration: {', '.join(missing)}"
        if strict_mode:
            raise RuntimeError(message)
        log.warning(message)

    return True
