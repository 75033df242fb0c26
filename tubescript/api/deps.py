"""Route dependencies: services built at startup and held on app.state."""
from fastapi import Request

from tubescript.core.ratelimit import InMemoryRateLimiter
from tubescript.features.billing.service import BillingService
from tubescript.features.generation.orchestrator import GenerationOrchestrator
from tubescript.features.providers.base import CompletionProvider
from tubescript.features.usage.gate import UsageGate


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    return request.app.state.orchestrator


def get_usage_gate(request: Request) -> UsageGate:
    return request.app.state.usage_gate


def get_billing_service(request: Request) -> BillingService:
    return request.app.state.billing


def get_provider(request: Request) -> CompletionProvider:
    return request.app.state.provider


def get_rate_limiter(request: Request) -> InMemoryRateLimiter:
    return request.app.state.rate_limiter
