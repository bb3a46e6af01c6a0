"""
Unit tests for the Stripe payment provider.

The Stripe SDK's async resource methods are patched; no network calls.
"""

import pytest
import stripe
from unittest.mock import AsyncMock, MagicMock, patch
from datetime import datetime, timezone

from common.core.exceptions import NotFoundError, ProviderUnavailableError
from packages.billing.models.domain.enums import CheckoutMode, SubscriptionStatus
from packages.billing.providers.payment.stripe_payment import (
    StripePaymentProvider,
    to_provider_subscription,
)
from tests.factories.billing_factory import BillingFactory


class TestToProviderSubscription:
    """Tests for parsing Stripe subscription objects."""

    def test_parses_expanded_subscription(self):
        sub = to_provider_subscription(
            BillingFactory.create_stripe_subscription_dict(cancel_at_period_end=True)
        )

        assert sub.id == "sub_test_1"
        assert sub.customer == "cus_test_1"
        assert sub.status == SubscriptionStatus.ACTIVE
        assert sub.price_id == "price_monthly_test"
        assert sub.current_period_end == datetime.fromtimestamp(1_719_792_000, tz=timezone.utc)
        assert sub.cancel_at_period_end is True
        assert sub.payment_method_brand == "visa"
        assert sub.payment_method_last4 == "4242"
        assert sub.metadata == {"account_id": "acct_test_1"}

    def test_period_on_item_for_newer_api_versions(self):
        data = BillingFactory.create_stripe_subscription_dict()
        del data["current_period_start"]
        del data["current_period_end"]
        data["items"]["data"][0]["current_period_start"] = 1_700_000_000
        data["items"]["data"][0]["current_period_end"] = 1_702_592_000

        sub = to_provider_subscription(data)

        assert sub.current_period_end == datetime.fromtimestamp(1_702_592_000, tz=timezone.utc)

    def test_unexpanded_fields(self):
        data = BillingFactory.create_stripe_subscription_dict()
        data["default_payment_method"] = "pm_123"
        data["customer"] = {"id": "cus_expanded", "object": "customer"}
        data["items"]["data"][0]["price"] = "price_plain"

        sub = to_provider_subscription(data)

        assert sub.customer == "cus_expanded"
        assert sub.price_id == "price_plain"
        assert sub.payment_method_last4 is None

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("incomplete_expired", SubscriptionStatus.CANCELED),
            ("paused", SubscriptionStatus.UNPAID),
            ("trialing", SubscriptionStatus.TRIALING),
        ],
    )
    def test_status_folding(self, raw, expected):
        data = BillingFactory.create_stripe_subscription_dict(status=raw)
        assert to_provider_subscription(data).status == expected


@pytest.fixture
def stripe_provider():
    """Real provider class, SDK calls patched per test."""
    return StripePaymentProvider()


@patch("common.core.otel_axiom_exporter.axiom_tracer.start_as_current_span")
class TestStripePaymentProvider:
    """Tests for StripePaymentProvider error mapping and parameters."""

    @pytest.mark.asyncio
    async def test_retrieve_subscription(self, mock_start_span, stripe_provider):
        raw = stripe.Subscription.construct_from(
            BillingFactory.create_stripe_subscription_dict(), "sk_test_123"
        )
        with patch.object(
            stripe.Subscription, "retrieve_async", AsyncMock(return_value=raw)
        ) as retrieve:
            sub = await stripe_provider.retrieve_subscription("sub_test_1")

        assert sub.id == "sub_test_1"
        assert sub.payment_method_last4 == "4242"
        assert retrieve.call_args.args == ("sub_test_1",)
        assert "default_payment_method" in retrieve.call_args.kwargs["expand"]

    @pytest.mark.asyncio
    async def test_missing_subscription_is_not_found(self, mock_start_span, stripe_provider):
        error = stripe.InvalidRequestError(
            "No such subscription: 'sub_x'", param="id", code="resource_missing"
        )
        with patch.object(stripe.Subscription, "retrieve_async", AsyncMock(side_effect=error)):
            with pytest.raises(NotFoundError):
                await stripe_provider.retrieve_subscription("sub_x")

    @pytest.mark.asyncio
    async def test_transient_errors_retried_then_unavailable(
        self, mock_start_span, stripe_provider, no_backoff
    ):
        call = AsyncMock(side_effect=stripe.APIConnectionError("connection reset"))
        with patch.object(stripe.Subscription, "list_async", call):
            with pytest.raises(ProviderUnavailableError) as exc_info:
                await stripe_provider.list_subscriptions("cus_test_1", limit=10)

        assert call.call_count == 3
        assert exc_info.value.attempts == 3
        assert no_backoff.call_count == 2

    @pytest.mark.asyncio
    async def test_transient_error_then_success(
        self, mock_start_span, stripe_provider, no_backoff
    ):
        page = stripe.ListObject.construct_from(
            {
                "object": "list",
                "data": [BillingFactory.create_stripe_subscription_dict()],
                "has_more": False,
                "url": "/v1/subscriptions",
            },
            "sk_test_123",
        )
        call = AsyncMock(side_effect=[stripe.RateLimitError("slow down"), page])
        with patch.object(stripe.Subscription, "list_async", call):
            subs = await stripe_provider.list_subscriptions("cus_test_1", limit=10)

        assert [s.id for s in subs] == ["sub_test_1"]
        assert call.call_args.kwargs["status"] == "all"
        assert call.call_args.kwargs["customer"] == "cus_test_1"

    @pytest.mark.asyncio
    async def test_auth_error_is_unavailable_without_retry(
        self, mock_start_span, stripe_provider, no_backoff
    ):
        call = AsyncMock(side_effect=stripe.AuthenticationError("bad key"))
        with patch.object(stripe.Subscription, "list_async", call):
            with pytest.raises(ProviderUnavailableError):
                await stripe_provider.list_subscriptions("cus_test_1", limit=10)

        assert call.call_count == 1
        no_backoff.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_customer_is_idempotent_per_account(
        self, mock_start_span, stripe_provider
    ):
        customer = MagicMock(id="cus_created")
        with patch.object(
            stripe.Customer, "create_async", AsyncMock(return_value=customer)
        ) as create:
            customer_id = await stripe_provider.create_customer("acct_1", "a@b.co")

        assert customer_id == "cus_created"
        kwargs = create.call_args.kwargs
        assert kwargs["idempotency_key"] == "billing-customer-acct_1"
        assert kwargs["metadata"] == {"account_id": "acct_1"}

    @pytest.mark.asyncio
    async def test_subscription_checkout_tags_account(self, mock_start_span, stripe_provider):
        session = MagicMock(id="cs_1", url="https://checkout.stripe.com/c/pay/cs_1")
        with patch.object(
            stripe.checkout.Session, "create_async", AsyncMock(return_value=session)
        ) as create:
            url = await stripe_provider.create_checkout_session(
                customer_id="cus_1",
                account_id="acct_1",
                price_id="price_monthly_test",
                mode=CheckoutMode.SUBSCRIPTION,
                success_url="https://example.com/ok",
                cancel_url="https://example.com/cancel",
            )

        assert url == "https://checkout.stripe.com/c/pay/cs_1"
        kwargs = create.call_args.kwargs
        assert kwargs["client_reference_id"] == "acct_1"
        assert kwargs["mode"] == "subscription"
        assert kwargs["subscription_data"] == {"metadata": {"account_id": "acct_1"}}

    @pytest.mark.asyncio
    async def test_payment_checkout_has_no_subscription_data(
        self, mock_start_span, stripe_provider
    ):
        session = MagicMock(id="cs_2", url="https://checkout.stripe.com/c/pay/cs_2")
        with patch.object(
            stripe.checkout.Session, "create_async", AsyncMock(return_value=session)
        ) as create:
            await stripe_provider.create_checkout_session(
                customer_id="cus_1",
                account_id="acct_1",
                price_id="price_oneoff_test",
                mode=CheckoutMode.PAYMENT,
                success_url="https://example.com/ok",
                cancel_url="https://example.com/cancel",
            )

        assert "subscription_data" not in create.call_args.kwargs
