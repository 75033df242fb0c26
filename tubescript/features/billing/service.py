"""
Billing service.

Coordinates:
- Customer management (one Stripe customer per user, id kept on the user row)
- Checkout session creation
- Webhook processing (verify -> dedupe -> apply -> mark processed)

Subscription tier transitions come only from verified webhook events:
- checkout.session.completed     -> tier=paid, subscription id + status stored
- invoice.payment_succeeded      -> status=active
- customer.subscription.deleted  -> tier=free, status=canceled

All Stripe-specific code is in stripe_provider.py.
"""
import hashlib
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy import select, insert, update
from sqlalchemy.exc import IntegrityError

from tubescript.core.database import billing_events, get_db_session
from tubescript.core.errors import ValidationError
from tubescript.core.logging import log_event
from tubescript.features.billing.provider import (
    BillingDisabledError,
    BillingProvider,
    BillingWebhookError,
    BillingWebhookResult,
    CheckoutSession,
)
from tubescript.features.billing.stripe_provider import StripeProvider
from tubescript.features.users.service import SessionScope, UserStore
from tubescript.models.user import SubscriptionState, SubscriptionTier

HANDLED_EVENTS = (
    "checkout.session.completed",
    "invoice.payment_succeeded",
    "customer.subscription.deleted",
)


class BillingService:
    def __init__(
        self,
        provider: Optional[BillingProvider],
        store: UserStore,
        *,
        default_price_id: Optional[str] = None,
        base_url: str = "http://localhost:9002",
        session_scope: SessionScope = get_db_session,
    ):
        self.provider = provider
        self.store = store
        self.default_price_id = default_price_id
        self.base_url = base_url.rstrip("/")
        self.session_scope = session_scope

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    def _require_provider(self) -> BillingProvider:
        if self.provider is None:
            raise BillingDisabledError("Stripe is not configured. Set STRIPE_SECRET_KEY environment variable.")
        return self.provider

    def ensure_customer(self, user_id: str) -> str:
        """Return the user's Stripe customer id, creating the customer on first use."""
        provider = self._require_provider()
        self.store.get_or_create(user_id)
        state = self.store.get_subscription(user_id)
        if state and state.stripe_customer_id:
            return state.stripe_customer_id

        customer_id = provider.create_customer(user_id, email=self.store.get_email(user_id))
        self.store.set_customer_id(user_id, customer_id)
        return customer_id

    def start_checkout(self, user_id: str, price_id: Optional[str] = None) -> CheckoutSession:
        """
        Raises:
            BillingDisabledError: Stripe not configured
            ValidationError: No price id given or configured
            BillingProviderError: Stripe API failure
        """
        provider = self._require_provider()
        price = price_id or self.default_price_id
        if not price:
            raise ValidationError("Price ID is required", fields={"priceId": "Price ID is required"})

        customer_id = self.ensure_customer(user_id)
        session = provider.create_checkout_session(
            customer_id=customer_id,
            price_id=price,
            success_url=f"{self.base_url}/?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.base_url}/",
            metadata={"user_id": user_id},
        )
        log_event("info", "billing.checkout_created", user_id=user_id, event_type="billing")
        return session

    def get_status(self, user_id: str) -> SubscriptionState:
        self.store.get_or_create(user_id)
        return self.store.get_subscription(user_id) or SubscriptionState()

    def _resolve_user(self, result: BillingWebhookResult) -> Optional[str]:
        if result.user_id:
            return result.user_id
        if result.customer_id:
            return self.store.find_user_by_customer(result.customer_id)
        return None

    def apply_event(self, result: BillingWebhookResult) -> bool:
        """Apply one verified event. Returns True if a user record changed."""
        if result.event_type not in HANDLED_EVENTS:
            return False

        user_id = self._resolve_user(result)
        if not user_id:
            log_event(
                "warning",
                "billing.webhook_unknown_user",
                event_type=result.event_type,
                extra={"event_id": result.event_id, "customer_id": result.customer_id},
            )
            return False

        if result.event_type == "checkout.session.completed":
            if not result.subscription_id:
                log_event(
                    "warning",
                    "billing.webhook_missing_subscription",
                    user_id=user_id,
                    event_type=result.event_type,
                    extra={"event_id": result.event_id},
                )
                return False
            status = self._require_provider().retrieve_subscription_status(result.subscription_id)
            if result.customer_id:
                state = self.store.get_subscription(user_id)
                if state and not state.stripe_customer_id:
                    self.store.set_customer_id(user_id, result.customer_id)
            return self.store.update_subscription(
                user_id,
                tier=SubscriptionTier.PAID,
                stripe_subscription_id=result.subscription_id,
                status=status,
            )

        if result.event_type == "invoice.payment_succeeded":
            return self.store.update_subscription(user_id, status="active")

        return self.store.update_subscription(
            user_id,
            tier=SubscriptionTier.FREE,
            status="canceled",
        )

    def process_webhook_event(self, headers: dict, body: bytes) -> Tuple[BillingWebhookResult, bool]:
        """
        Process billing webhook event (idempotent).

        1. Verify signature (nothing is written if this fails)
        2. Skip if the event id was already processed
        3. Apply state changes
        4. Mark as processed (or record the error and re-raise)

        Returns:
            (result, applied)

        Raises:
            BillingWebhookError: If signature invalid or payload unparseable
            BillingProviderError: Webhook secret not configured, or applying the event
                needed Stripe and it failed
        """
        provider = self._require_provider()
        try:
            result = provider.handle_webhook(headers, body)
        except BillingWebhookError as e:
            log_event("warning", "billing.webhook_rejected", error_code=e.code, extra={"reason": e.message})
            raise
        log_event(
            "info",
            "billing.webhook_received",
            event_type=result.event_type,
            extra={"event_id": result.event_id},
        )

        payload_hash = hashlib.sha256(body).hexdigest()
        with self.session_scope() as session:
            existing = session.execute(
                select(billing_events.c.processed).where(billing_events.c.stripe_event_id == result.event_id)
            ).first()
        if existing and existing[0]:
            return result, False

        if not existing:
            try:
                with self.session_scope() as session:
                    session.execute(
                        insert(billing_events).values(
                            stripe_event_id=result.event_id,
                            event_type=result.event_type,
                            payload_hash=payload_hash,
                            processed=False,
                        )
                    )
            except IntegrityError:
                # Another delivery of the same event got here first
                return result, False

        try:
            applied = self.apply_event(result)
        except Exception as e:
            with self.session_scope() as session:
                session.execute(
                    update(billing_events)
                    .where(billing_events.c.stripe_event_id == result.event_id)
                    .values(error=str(e)[:1000])
                )
            log_event(
                "error",
                "billing.webhook_failed",
                event_type=result.event_type,
                error_code=getattr(e, "code", "internal_error"),
                extra={"event_id": result.event_id, "reason": str(e)},
            )
            raise

        with self.session_scope() as session:
            session.execute(
                update(billing_events)
                .where(billing_events.c.stripe_event_id == result.event_id)
                .values(processed=True, processed_at=datetime.now(timezone.utc), error=None)
            )
        log_event(
            "info",
            "billing.webhook_applied",
            event_type=result.event_type,
            extra={"event_id": result.event_id, "applied": applied},
        )
        return result, applied


def build_billing_service(settings_obj, store: UserStore) -> BillingService:
    """BillingService with a Stripe provider when STRIPE_SECRET_KEY is set, else disabled."""
    provider = None
    if settings_obj.STRIPE_SECRET_KEY:
        provider = StripeProvider(settings_obj.STRIPE_SECRET_KEY, settings_obj.STRIPE_WEBHOOK_SECRET)
    return BillingService(
        provider,
        store,
        default_price_id=settings_obj.STRIPE_PRICE_ID,
        base_url=settings_obj.BASE_URL,
    )
