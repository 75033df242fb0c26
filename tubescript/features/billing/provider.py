"""
Billing provider protocol.

Defines the interface for billing providers (Stripe, etc.).
This allows swapping providers without changing business logic.
"""
from typing import Protocol, Dict, Any, Optional
from dataclasses import dataclass, field

from tubescript.core.errors import BillingError


@dataclass
class CheckoutSession:
    session_id: str
    url: Optional[str]


@dataclass
class BillingWebhookResult:
    """A verified webhook event, reduced to the fields billing acts on."""
    event_id: str
    event_type: str
    user_id: Optional[str]
    customer_id: Optional[str]
    subscription_id: Optional[str]
    status: Optional[str]
    metadata: Dict[str, Any] = field(default_factory=dict)


class BillingProvider(Protocol):
    """
    Protocol for billing providers.

    Implementations must handle:
    - Customer creation
    - Checkout session creation
    - Subscription lookup
    - Webhook signature verification and parsing
    """

    def create_customer(self, user_id: str, email: Optional[str] = None) -> str:
        """
        Create a billing customer tagged with the internal user id.

        Returns:
            Provider customer ID

        Raises:
            BillingProviderError: If customer creation fails
        """
        ...

    def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: Optional[Dict[str, str]] = None
    ) -> CheckoutSession:
        """
        Create a subscription checkout session.

        Raises:
            BillingProviderError: If session creation fails
        """
        ...

    def retrieve_subscription_status(self, subscription_id: str) -> Optional[str]:
        """
        Look up the current status of a subscription.

        Raises:
            BillingProviderError: If the lookup fails
        """
        ...

    def handle_webhook(self, headers: Dict[str, str], body: bytes) -> BillingWebhookResult:
        """
        Verify webhook signature and parse event.

        Args:
            headers: HTTP headers (must include signature header)
            body: Raw webhook body (for signature verification)

        Raises:
            BillingWebhookError: If signature invalid or parsing fails
        """
        ...


class BillingProviderError(BillingError):
    """Base exception for billing provider errors."""
    status_code = 500


class BillingWebhookError(BillingProviderError):
    """Webhook could not be verified or parsed; nothing was applied."""
    code = "webhook_rejected"
    status_code = 400


class BillingDisabledError(BillingError):
    code = "billing_disabled"
    status_code = 503
