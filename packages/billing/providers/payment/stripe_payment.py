"""
Stripe implementation of payment provider.
"""

import json
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, TypeVar
import stripe

from common.core.config import settings
from common.core.exceptions import NotFoundError, ProviderUnavailableError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.models.domain.enums import CheckoutMode, SubscriptionStatus
from packages.billing.models.domain.subscription import ProviderSubscription
from packages.billing.providers.payment.interface import PaymentProviderInterface
from packages.billing.providers.payment.retry import call_with_retry

logger = get_logger(__name__)

T = TypeVar("T")

# Transient failures: network, 429, Stripe-side 5xx
RETRYABLE_STRIPE_ERRORS = (
    stripe.APIConnectionError,
    stripe.RateLimitError,
    stripe.APIError,
)

SUBSCRIPTION_EXPAND = ["default_payment_method", "items.data.price"]


def _timestamp(value: Optional[int]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


def _plain(obj: Any) -> dict:
    """StripeObject -> plain nested dict."""
    if isinstance(obj, dict) and not isinstance(obj, stripe.StripeObject):
        return obj
    return json.loads(str(obj))


def to_provider_subscription(data: dict) -> ProviderSubscription:
    """
    Parse a Stripe subscription object.

    Period bounds live on the subscription for our pinned API version and on
    the first item for newer ones; read either.
    """
    items = (data.get("items") or {}).get("data") or []
    first_item = items[0] if items else {}

    price = first_item.get("price")
    price_id = price.get("id") if isinstance(price, dict) else price

    period_start = data.get("current_period_start") or first_item.get(
        "current_period_start"
    )
    period_end = data.get("current_period_end") or first_item.get(
        "current_period_end"
    )

    brand = last4 = None
    payment_method = data.get("default_payment_method")
    if isinstance(payment_method, dict):
        card = payment_method.get("card") or {}
        brand = card.get("brand")
        last4 = card.get("last4")

    customer = data.get("customer")
    if isinstance(customer, dict):
        customer = customer.get("id")

    return ProviderSubscription(
        id=data["id"],
        customer=customer,
        status=SubscriptionStatus.from_stripe(data["status"]),
        price_id=price_id,
        current_period_start=_timestamp(period_start),
        current_period_end=_timestamp(period_end),
        cancel_at_period_end=bool(data.get("cancel_at_period_end")),
        payment_method_brand=brand,
        payment_method_last4=last4,
        metadata={k: str(v) for k, v in (data.get("metadata") or {}).items()},
    )


class StripePaymentProvider(PaymentProviderInterface):
    """Stripe-based payment implementation using the SDK's async methods."""

    def __init__(self):
        """Initialize Stripe with API credentials."""
        stripe.api_key = settings.stripe_secret_key
        stripe.api_version = settings.stripe_api_version
        stripe.max_network_retries = 0  # retries are ours, with our timeout
        stripe.default_http_client = stripe.HTTPXClient(
            timeout=settings.stripe_timeout_seconds
        )

    async def _call(self, operation: str, call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await call_with_retry(
                operation,
                call,
                retryable=RETRYABLE_STRIPE_ERRORS,
                max_attempts=settings.stripe_max_attempts,
                timeout_seconds=settings.stripe_timeout_seconds,
                base_delay_seconds=settings.stripe_retry_base_seconds,
                max_delay_seconds=settings.stripe_retry_max_seconds,
            )
        except stripe.InvalidRequestError as e:
            if e.code == "resource_missing":
                raise NotFoundError(f"{operation}: {e.user_message or e}") from e
            logger.error(
                f"Stripe rejected {operation}: {str(e)}",
                extra={"operation": operation, "error": str(e)},
            )
            raise
        except stripe.StripeError as e:
            # Auth/permission/idempotency errors: not transient, but still not "inactive"
            logger.error(
                f"Stripe {operation} failed: {str(e)}",
                extra={"operation": operation, "error": str(e)},
            )
            raise ProviderUnavailableError(
                f"{operation} failed: {e}", operation=operation, attempts=1
            ) from e

    @trace_span
    async def create_customer(self, account_id: str, email: Optional[str]) -> str:
        """Create a Stripe customer tagged with the account id."""
        customer = await self._call(
            "Customer.create",
            lambda: stripe.Customer.create_async(
                email=email,
                metadata={"account_id": account_id},
                idempotency_key=f"billing-customer-{account_id}",
            ),
        )

        logger.info(
            "Created Stripe customer",
            extra={"account_id": account_id, "customer_id": customer.id},
        )

        return customer.id

    @trace_span
    async def retrieve_subscription(self, subscription_id: str) -> ProviderSubscription:
        subscription = await self._call(
            "Subscription.retrieve",
            lambda: stripe.Subscription.retrieve_async(
                subscription_id, expand=SUBSCRIPTION_EXPAND
            ),
        )
        return to_provider_subscription(_plain(subscription))

    @trace_span
    async def list_subscriptions(
        self, customer_id: str, limit: int
    ) -> List[ProviderSubscription]:
        page = await self._call(
            "Subscription.list",
            lambda: stripe.Subscription.list_async(
                customer=customer_id,
                status="all",
                limit=limit,
                expand=[f"data.{field}" for field in SUBSCRIPTION_EXPAND],
            ),
        )
        return [to_provider_subscription(item) for item in _plain(page)["data"]]

    @trace_span
    async def create_checkout_session(
        self,
        customer_id: str,
        account_id: str,
        price_id: str,
        mode: CheckoutMode,
        success_url: str,
        cancel_url: str,
    ) -> str:
        """Create Stripe checkout session."""
        params: dict[str, Any] = {
            "customer": customer_id,
            "client_reference_id": account_id,
            "line_items": [{"price": price_id, "quantity": 1}],
            "mode": mode.value,
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": {"account_id": account_id},
        }
        if mode == CheckoutMode.SUBSCRIPTION:
            params["subscription_data"] = {"metadata": {"account_id": account_id}}

        session = await self._call(
            "checkout.Session.create",
            lambda: stripe.checkout.Session.create_async(**params),
        )

        logger.info(
            "Created Stripe checkout session",
            extra={
                "account_id": account_id,
                "customer_id": customer_id,
                "mode": mode.value,
                "session_id": session.id,
            },
        )

        return session.url

    @trace_span
    async def create_customer_portal_session(
        self,
        customer_id: str,
        return_url: str,
    ) -> str:
        """Create Stripe customer portal session."""
        session = await self._call(
            "billing_portal.Session.create",
            lambda: stripe.billing_portal.Session.create_async(
                customer=customer_id,
                return_url=return_url,
            ),
        )

        logger.info("Created Stripe portal session", extra={"customer_id": customer_id})

        return session.url

    @trace_span
    async def health_check(self) -> bool:
        """Check Stripe health."""
        try:
            await self._call("Account.retrieve", lambda: stripe.Account.retrieve_async())
            return True
        except Exception as e:
            logger.error(f"Payment health check failed: {e}")
            return False
