"""
Stripe billing provider implementation.

Implements BillingProvider protocol using the Stripe API.
Handles webhook signature verification and event parsing.
"""
import json
from typing import Dict, Any, Optional

import stripe

from tubescript.features.billing.provider import (
    BillingProviderError,
    BillingWebhookError,
    BillingWebhookResult,
    CheckoutSession,
)


class StripeProvider:
    """Stripe implementation of BillingProvider protocol."""

    def __init__(self, secret_key: Optional[str], webhook_secret: Optional[str] = None):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret

        if not self.secret_key:
            raise BillingProviderError("STRIPE_SECRET_KEY not configured")

        stripe.api_key = self.secret_key

    def create_customer(self, user_id: str, email: Optional[str] = None) -> str:
        customer_data: Dict[str, Any] = {"metadata": {"user_id": user_id}}
        if email:
            customer_data["email"] = email
        try:
            customer = stripe.Customer.create(**customer_data)
        except stripe.StripeError as e:
            raise BillingProviderError(f"Stripe customer creation failed: {e}")
        return customer.id

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None
    ) -> CheckoutSession:
        try:
            session = stripe.checkout.Session.create(
                customer=customer_id,
                payment_method_types=["card"],
                line_items=[{"price": price_id, "quantity": 1}],
                mode="subscription",
                success_url=success_url,
                cancel_url=cancel_url,
                metadata=metadata or {},
            )
        except stripe.StripeError as e:
            raise BillingProviderError(f"Stripe checkout session creation failed: {e}")
        return CheckoutSession(session_id=session.id, url=getattr(session, "url", None))

    def retrieve_subscription_status(self, subscription_id: str) -> Optional[str]:
        try:
            subscription = stripe.Subscription.retrieve(subscription_id)
        except stripe.StripeError as e:
            raise BillingProviderError(f"Stripe subscription lookup failed: {e}")
        return getattr(subscription, "status", None)

    def handle_webhook(self, headers: Dict[str, str], body: bytes) -> BillingWebhookResult:
        """Verify Stripe webhook signature and parse event."""
        if not self.webhook_secret:
            # Server misconfiguration, not a bad request from Stripe
            raise BillingProviderError("Webhook secret not configured. Set STRIPE_WEBHOOK_SECRET environment variable.")

        lowered = {k.lower(): v for k, v in headers.items()}
        sig_header = lowered.get("stripe-signature")
        if not sig_header:
            raise BillingWebhookError("Missing stripe-signature header")

        try:
            stripe.Webhook.construct_event(body, sig_header, self.webhook_secret)
        except ValueError as e:
            raise BillingWebhookError(f"Invalid payload: {e}")
        except stripe.SignatureVerificationError as e:
            raise BillingWebhookError(f"Invalid signature: {e}")

        # Signature checked above; read the plain JSON for field access
        try:
            event = json.loads(body)
        except ValueError as e:
            raise BillingWebhookError(f"Invalid payload: {e}")
        return self._parse_event(event)

    def _parse_event(self, event: Dict[str, Any]) -> BillingWebhookResult:
        """Parse Stripe event into normalized BillingWebhookResult."""
        event_type = event.get("type")
        event_id = event.get("id")
        if not event_type or not event_id:
            raise BillingWebhookError("Event is missing id or type")
        data = (event.get("data") or {}).get("object") or {}
        metadata = data.get("metadata") or {}

        subscription_id = None
        status = None

        if event_type == "checkout.session.completed":
            subscription_id = data.get("subscription")
        elif event_type == "invoice.payment_succeeded":
            subscription_id = data.get("subscription")
            status = "active"
        elif event_type.startswith("customer.subscription."):
            subscription_id = data.get("id")
            status = data.get("status")

        return BillingWebhookResult(
            event_id=event_id,
            event_type=event_type,
            user_id=metadata.get("user_id"),
            customer_id=data.get("customer"),
            subscription_id=subscription_id,
            status=status,
            metadata=metadata,
        )
