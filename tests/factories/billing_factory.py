import hashlib
import hmac
import json
import time
from datetime import datetime, timezone, timedelta
from typing import Optional

from packages.billing.models.domain.enums import SubscriptionStatus
from packages.billing.models.domain.subscription import ProviderSubscription

TEST_WEBHOOK_SECRET = "whsec_test_secret"
TEST_PRICE_MONTHLY = "price_monthly_test"
TEST_PRICE_YEARLY = "price_yearly_test"
TEST_PRICE_ONEOFF = "price_oneoff_test"


class BillingFactory:
    """Factory for creating billing test objects."""

    @staticmethod
    def create_subscription(
        id: str = "sub_test_1",
        customer: str = "cus_test_1",
        status: SubscriptionStatus = SubscriptionStatus.ACTIVE,
        price_id: Optional[str] = TEST_PRICE_MONTHLY,
        cancel_at_period_end: bool = False,
        period_end: Optional[datetime] = None,
        metadata: Optional[dict] = None,
    ) -> ProviderSubscription:
        """Create a subscription as the Stripe provider returns it."""
        now = datetime.now(timezone.utc).replace(microsecond=0)
        return ProviderSubscription(
            id=id,
            customer=customer,
            status=status,
            price_id=price_id,
            current_period_start=now - timedelta(days=1),
            current_period_end=period_end or now + timedelta(days=30),
            cancel_at_period_end=cancel_at_period_end,
            payment_method_brand="visa",
            payment_method_last4="4242",
            metadata=metadata or {},
        )

    @staticmethod
    def create_stripe_subscription_dict(
        id: str = "sub_test_1",
        customer: str = "cus_test_1",
        status: str = "active",
        price_id: str = TEST_PRICE_MONTHLY,
        cancel_at_period_end: bool = False,
        period_start: int = 1_717_200_000,
        period_end: int = 1_719_792_000,
        account_id: str = "acct_test_1",
    ) -> dict:
        """Create a raw Stripe subscription object (expanded, pinned API version)."""
        return {
            "id": id,
            "object": "subscription",
            "customer": customer,
            "status": status,
            "cancel_at_period_end": cancel_at_period_end,
            "current_period_start": period_start,
            "current_period_end": period_end,
            "default_payment_method": {
                "id": "pm_test_1",
                "object": "payment_method",
                "card": {"brand": "visa", "last4": "4242"},
            },
            "items": {
                "object": "list",
                "data": [
                    {
                        "id": "si_test_1",
                        "object": "subscription_item",
                        "price": {"id": price_id, "object": "price"},
                    }
                ],
            },
            "metadata": {"account_id": account_id},
        }

    @staticmethod
    def create_event(
        event_type: str,
        data_object: dict,
        event_id: str = "evt_test_1",
    ) -> bytes:
        """Serialize a Stripe event envelope the way Stripe sends it."""
        return json.dumps(
            {
                "id": event_id,
                "object": "event",
                "type": event_type,
                "created": int(time.time()),
                "livemode": False,
                "api_version": "2024-06-20",
                "data": {"object": data_object},
            }
        ).encode()

    @staticmethod
    def sign(
        payload: bytes,
        secret: str = TEST_WEBHOOK_SECRET,
        timestamp: Optional[int] = None,
    ) -> str:
        """Build a Stripe-Signature header over a raw body."""
        timestamp = timestamp or int(time.time())
        signed = f"{timestamp}.".encode() + payload
        signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
        return f"t={timestamp},v1={signature}"
