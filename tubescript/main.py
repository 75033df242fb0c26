import logging
import os
import time
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv

# Load env before settings are read
if "PYTEST_CURRENT_TEST" not in os.environ:
    load_dotenv()

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from tubescript.api import billing, claude, generate, health
from tubescript.core.config import Settings, settings, validate_config
from tubescript.core.database import create_all_tables
from tubescript.core.errors import (
    AppError,
    app_error_handler,
    http_error_handler,
    request_validation_handler,
    unhandled_exception_handler,
)
from tubescript.core.logging import configure_logging
from tubescript.core.middleware.request_id import RequestIdMiddleware
from tubescript.core.ratelimit import InMemoryRateLimiter, build_rate_limit_config
from tubescript.core.validation import validate_env
from tubescript.features.billing.service import BillingService, build_billing_service
from tubescript.features.generation.orchestrator import build_orchestrator
from tubescript.features.providers.anthropic_provider import AnthropicProvider
from tubescript.features.providers.base import CompletionProvider
from tubescript.features.providers.factory import build_provider
from tubescript.features.usage.gate import UsageGate
from tubescript.features.users.service import UserStore

logger = logging.getLogger("tubescript")


def configure_services(
    app: FastAPI,
    settings_obj: Settings,
    *,
    provider: Optional[CompletionProvider] = None,
    store: Optional[UserStore] = None,
    billing_service: Optional[BillingService] = None,
) -> None:
    """Build every external client once and hang it on app.state for route dependencies."""
    store = store or UserStore()
    app.state.settings = settings_obj
    app.state.provider = provider or build_provider(settings_obj)
    app.state.orchestrator = build_orchestrator(app.state.provider, settings_obj)
    app.state.usage_gate = UsageGate(store, limit=settings_obj.FREE_TIER_LIMIT)
    app.state.billing = billing_service or build_billing_service(settings_obj, store)
    app.state.claude = AnthropicProvider(settings_obj.ANTHROPIC_API_KEY, timeout=settings_obj.LLM_TIMEOUT_SECONDS)
    app.state.rate_limiter = InMemoryRateLimiter(build_rate_limit_config(settings_obj))


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting TubeScript backend...")
    app.state.startup_time = time.time()
    create_all_tables()
    try:
        yield
    finally:
        logger.info("Stopping TubeScript backend...")


def create_app(settings_obj: Optional[Settings] = None, **services) -> FastAPI:
    cfg = settings_obj or settings
    configure_logging(cfg.ENV, cfg.LOG_LEVEL)
    validate_env(settings_obj=cfg)
    validate_config(strict=cfg.CONFIG_STRICT, settings_obj=cfg)

    app = FastAPI(title="TubeScript AI", lifespan=lifespan)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[cfg.BASE_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(generate.router)
    app.include_router(billing.router)
    app.include_router(claude.router)
    app.include_router(health.router)

    configure_services(app, cfg, **services)
    return app


app = create_app()
