"""Tests for checkout and subscription status."""

import pytest

from tubescript.core.config import Settings
from tubescript.core.errors import ValidationError
from tubescript.features.billing.provider import BillingDisabledError, BillingWebhookResult
from tubescript.features.billing.service import BillingService
from tubescript.features.users.service import UserStore
from tubescript.models.user import SubscriptionTier
from tubescript.tests.mocks import FakeBillingProvider


@pytest.fixture
def provider():
    return FakeBillingProvider()


@pytest.fixture
def service(provider):
    return BillingService(provider, UserStore(), default_price_id="price_default", base_url="https://app.test/")


def test_checkout_creates_customer_once(service, provider):
    first = service.start_checkout("user_a")
    second = service.start_checkout("user_a")

    assert provider.customers == ["cus_user_a"]
    assert first.session_id == "cs_1"
    assert second.session_id == "cs_2"


def test_checkout_urls_and_metadata(service, provider):
    service.start_checkout("user_a", "price_override")

    checkout = provider.checkouts[0]
    assert checkout["price_id"] == "price_override"
    assert checkout["success_url"] == "https://app.test/?session_id={CHECKOUT_SESSION_ID}"
    assert checkout["cancel_url"] == "https://app.test/"
    assert checkout["metadata"] == {"user_id": "user_a"}


def test_checkout_requires_price(provider):
    service = BillingService(provider, UserStore())

    with pytest.raises(ValidationError):
        service.start_checkout("user_a")


def test_disabled_service_raises():
    service = BillingService(None, UserStore())

    assert service.enabled is False
    with pytest.raises(BillingDisabledError):
        service.start_checkout("user_a", "price_1")


def test_status_defaults_to_free(service):
    state = service.get_status("user_new")

    assert state.tier == SubscriptionTier.FREE
    assert state.stripe_subscription_id is None


def test_apply_checkout_uses_retrieved_status(provider):
    provider.subscription_status = "trialing"
    store = UserStore()
    store.get_or_create("user_t")
    service = BillingService(provider, store)

    applied = service.apply_event(
        BillingWebhookResult(
            event_id="evt_1",
            event_type="checkout.session.completed",
            user_id="user_t",
            customer_id="cus_t",
            subscription_id="sub_t",
            status=None,
        )
    )

    assert applied is True
    state = store.get_subscription("user_t")
    assert state.tier == SubscriptionTier.PAID
    assert state.status == "trialing"


def test_failed_event_is_retried(provider):
    store = UserStore()
    store.get_or_create("user_r")
    service = BillingService(provider, store)
    provider.webhook_result = BillingWebhookResult(
        event_id="evt_retry",
        event_type="checkout.session.completed",
        user_id="user_r",
        customer_id=None,
        subscription_id="sub_r",
        status=None,
    )

    def boom(subscription_id):
        raise RuntimeError("stripe unavailable")

    provider.retrieve_subscription_status = boom
    with pytest.raises(RuntimeError):
        service.process_webhook_event({"stripe-signature": "x"}, b"{}")
    assert store.get_subscription("user_r").tier == SubscriptionTier.FREE

    del provider.retrieve_subscription_status
    _, applied = service.process_webhook_event({"stripe-signature": "x"}, b"{}")

    assert applied is True
    assert store.get_subscription("user_r").tier == SubscriptionTier.PAID


def test_checkout_api(make_client, provider):
    client = make_client(billing_service=BillingService(provider, UserStore(), default_price_id="price_default"))

    resp = client.post("/api/stripe/checkout", json={"priceId": "price_9"}, headers={"X-User-Id": "user_api"})

    assert resp.status_code == 200
    assert resp.json() == {"sessionId": "cs_1", "url": "https://checkout.stripe.test/session"}
    assert provider.checkouts[0]["price_id"] == "price_9"


def test_checkout_api_requires_auth(make_client, provider):
    client = make_client(billing_service=BillingService(provider, UserStore(), default_price_id="price_default"))

    resp = client.post("/api/stripe/checkout", json={})

    assert resp.status_code == 401


def test_status_api(make_client, provider):
    client = make_client(billing_service=BillingService(provider, UserStore()))

    resp = client.get("/api/stripe/status", headers={"X-User-Id": "user_s"})

    assert resp.status_code == 200
    assert resp.json() == {
        "enabled": True,
        "tier": "free",
        "status": None,
        "stripe_customer_id": None,
        "stripe_subscription_id": None,
    }


def test_status_api_ignores_user_id_header_in_production(make_client, provider):
    store = UserStore()
    store.get_or_create("user_paid")
    store.set_customer_id("user_paid", "cus_paid")
    client = make_client(Settings(ENV="production"), billing_service=BillingService(provider, store))

    resp = client.get("/api/stripe/status", headers={"X-User-Id": "user_paid"})

    assert resp.status_code == 401
    assert "cus_paid" not in resp.text
