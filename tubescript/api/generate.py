"""Script generation API.

- POST /api/scripts/generate: gate -> orchestrate -> commit usage
- GET  /api/usage:            current tier and quota for the caller
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from tubescript.api.deps import get_orchestrator, get_rate_limiter, get_usage_gate
from tubescript.core.auth import get_identity
from tubescript.core.errors import RateLimitError
from tubescript.core.logging import get_request_id
from tubescript.core.ratelimit import InMemoryRateLimiter
from tubescript.features.generation.orchestrator import GenerationOrchestrator
from tubescript.features.usage.gate import ANONYMOUS_USAGE_KEY, UsageGate
from tubescript.models.generation import GenerationRequest
from tubescript.models.user import Identity

router = APIRouter(tags=["scripts"])

GENERATE_RATE_LIMIT_PER_MINUTE = 10
GENERATE_RATE_LIMIT_BURST = 5
ANONYMOUS_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


@router.post("/api/scripts/generate")
async def generate_script_endpoint(
    body: GenerationRequest,
    request: Request,
    identity: Identity = Depends(get_identity),
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
    gate: UsageGate = Depends(get_usage_gate),
    limiter: InMemoryRateLimiter = Depends(get_rate_limiter),
):
    """
    Generate a video script.

    Returns:
        {"success": true, "data": "<script>", "usage": {...}}
        {"success": false, "error": "There was a problem generating your script."}

    Errors:
        400: Invalid topic, content type or reference URL
        403: Free limit reached (error.action = "upgrade" | "sign_in")
        429: Rate limited
    """
    rid = getattr(request.state, "request_id", None) or get_request_id()

    if not limiter.allow(
        f"generate:{identity.key}",
        per_minute=GENERATE_RATE_LIMIT_PER_MINUTE,
        burst=GENERATE_RATE_LIMIT_BURST,
    ):
        raise RateLimitError("Rate limit exceeded for script generation", request_id=rid)

    gate.ensure_allowed(identity)

    result = await orchestrator.handle_generate(body, user_id=identity.user_id)
    if not result["success"]:
        return result

    record = gate.commit(identity)
    payload = dict(result)
    payload["usage"] = {
        "tier": record.subscription_tier.value,
        "scripts_generated": record.scripts_generated,
        "limit": gate.limit,
    }
    response = JSONResponse(content=payload)
    if identity.anonymous:
        response.set_cookie(
            ANONYMOUS_USAGE_KEY,
            str(record.scripts_generated),
            max_age=ANONYMOUS_COOKIE_MAX_AGE,
            samesite="lax",
        )
    return response


@router.get("/api/usage")
async def usage_endpoint(
    identity: Identity = Depends(get_identity),
    gate: UsageGate = Depends(get_usage_gate),
):
    return gate.summary(identity)
