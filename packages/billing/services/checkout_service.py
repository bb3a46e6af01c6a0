"""
Service creating Stripe-hosted checkout and portal sessions.
"""

from typing import Optional

from common.core.config import settings
from common.core.exceptions import ValidationError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.models.domain.enums import CheckoutMode, PlanLabel
from packages.billing.providers.payment.factory import get_payment_provider
from packages.billing.services.identity_service import IdentityService

logger = get_logger(__name__)


class CheckoutService:
    """Thin façade over Stripe sessions. Guarantees an identity mapping first."""

    def __init__(self):
        self.identity = IdentityService()
        self.payment = get_payment_provider()

    def resolve_price(self, plan_id: str) -> tuple[PlanLabel, str]:
        """
        Accept a plan label ("monthly") or a configured price id.

        Raises:
            ValidationError: Plan is not one we sell
        """
        prices = settings.stripe_prices
        for label, price_id in prices.items():
            if plan_id == label or plan_id == price_id:
                return PlanLabel(label), price_id
        raise ValidationError(
            f"Unknown plan '{plan_id}'. Expected one of: {', '.join(prices)}"
        )

    @trace_span
    async def create_checkout_session(
        self,
        account_id: str,
        email: Optional[str],
        plan_id: str,
        success_url: Optional[str] = None,
        cancel_url: Optional[str] = None,
    ) -> str:
        """
        Create a checkout session and return its redirect URL.

        Recurring plans open a subscription checkout, the one-off reading a
        payment checkout.
        """
        plan, price_id = self.resolve_price(plan_id)
        mode = CheckoutMode.SUBSCRIPTION if plan.is_recurring() else CheckoutMode.PAYMENT

        customer_id = await self.identity.ensure(account_id, email)

        success_url = success_url or settings.site_url + settings.checkout_success_path.format(
            plan=plan.value
        )
        cancel_url = cancel_url or settings.site_url + settings.checkout_cancel_path

        logger.info(
            f"Creating {mode.value} checkout for account {account_id}",
            extra={"account_id": account_id, "customer_id": customer_id, "plan": plan.value},
        )

        return await self.payment.create_checkout_session(
            customer_id=customer_id,
            account_id=account_id,
            price_id=price_id,
            mode=mode,
            success_url=success_url,
            cancel_url=cancel_url,
        )

    @trace_span
    async def create_portal_session(
        self,
        account_id: str,
        email: Optional[str],
        return_url: Optional[str] = None,
    ) -> str:
        """Create a customer portal session and return its redirect URL."""
        customer_id = await self.identity.ensure(account_id, email)
        return await self.payment.create_customer_portal_session(
            customer_id=customer_id,
            return_url=return_url or settings.portal_return_url,
        )
