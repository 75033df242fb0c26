"""
Billing API routes.

- POST /api/stripe/checkout: Create checkout session
- POST /api/stripe/webhook:  Handle Stripe webhooks (signature required)
- GET  /api/stripe/status:   Current subscription state for the caller
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field

from tubescript.api.deps import get_billing_service
from tubescript.core.auth import get_current_user_id
from tubescript.features.billing.service import BillingService

router = APIRouter(prefix="/api/stripe", tags=["billing"])


class CheckoutRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    price_id: Optional[str] = Field(default=None, alias="priceId")


class CheckoutResponse(BaseModel):
    sessionId: str
    url: Optional[str] = None


class SubscriptionStatusResponse(BaseModel):
    enabled: bool
    tier: str
    status: Optional[str]
    stripe_customer_id: Optional[str]
    stripe_subscription_id: Optional[str]


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(
    body: CheckoutRequest,
    user_id: str = Depends(get_current_user_id),
    billing: BillingService = Depends(get_billing_service),
):
    """
    Create a Stripe checkout session for the subscription price.

    Errors:
        401: Not authenticated
        400: No price id given or configured
        503: Billing disabled (STRIPE_SECRET_KEY not set)
        500: Stripe API error
    """
    session = billing.start_checkout(user_id, body.price_id)
    return {"sessionId": session.session_id, "url": session.url}


@router.post("/webhook")
async def handle_webhook(
    request: Request,
    billing: BillingService = Depends(get_billing_service),
):
    """
    Handle Stripe webhook events.

    The raw body is verified against STRIPE_WEBHOOK_SECRET before anything
    is read from it; a failed check returns 400 and changes nothing.
    """
    body = await request.body()
    headers = dict(request.headers)
    result, applied = billing.process_webhook_event(headers, body)
    return {"received": True, "event_id": result.event_id, "applied": applied}


@router.get("/status", response_model=SubscriptionStatusResponse)
async def get_status(
    user_id: str = Depends(get_current_user_id),
    billing: BillingService = Depends(get_billing_service),
):
    state = billing.get_status(user_id)
    return {
        "enabled": billing.enabled,
        "tier": state.tier.value,
        "status": state.status,
        "stripe_customer_id": state.stripe_customer_id,
        "stripe_subscription_id": state.stripe_subscription_id,
    }
