"""
Service that refreshes the subscription mirror from Stripe.
"""

from datetime import datetime, timezone
from typing import List, Optional

from common.core.config import settings
from common.core.exceptions import NotFoundError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.models.domain.subscription import (
    MirrorRecord,
    ProviderSubscription,
)
from packages.billing.providers.payment.factory import get_payment_provider
from packages.billing.repositories.customer_repository import CustomerRepository
from packages.billing.repositories.subscription_mirror_repository import (
    SubscriptionMirrorRepository,
)

logger = get_logger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def select_current_subscription(
    subscriptions: List[ProviderSubscription],
) -> Optional[ProviderSubscription]:
    """
    Pick the customer's current subscription.

    Entitled subscriptions always win over incomplete/unpaid ones, so an
    abandoned upgrade checkout never hides a paying subscription. Within the
    chosen group the latest current_period_end wins; input is Stripe's
    newest-first order and equal ends keep the newer one.
    """
    entitled = [sub for sub in subscriptions if sub.is_entitled()]
    candidates = entitled or [sub for sub in subscriptions if sub.is_selectable()]
    if not candidates:
        return None
    # max() keeps the first of equal keys, i.e. the most recent
    return max(candidates, key=lambda sub: sub.current_period_end or _EPOCH)


def _with_fresh(
    subscriptions: List[ProviderSubscription], fresh: ProviderSubscription
) -> List[ProviderSubscription]:
    """Swap in the just-retrieved copy; a lagging list may not have it yet."""
    if any(sub.id == fresh.id for sub in subscriptions):
        return [fresh if sub.id == fresh.id else sub for sub in subscriptions]
    return [fresh] + subscriptions


class ReconciliationService:
    """
    Re-derives canonical subscription state from Stripe and writes it whole.

    Never trusts a webhook body: every write comes from a fresh read, so
    duplicate or reordered events converge on whatever Stripe says last.
    """

    def __init__(self):
        self.mirror_repo = SubscriptionMirrorRepository()
        self.customer_repo = CustomerRepository()
        self.payment = get_payment_provider()

    @trace_span
    async def reconcile(
        self, provider_customer_id: str, subscription_id: Optional[str] = None
    ) -> MirrorRecord:
        """
        Refresh the mirror for one customer.

        With subscription_id (event-driven) that subscription is re-fetched and
        weighed against its siblings; without it (lazy pull) the customer's
        subscriptions are listed.

        Raises:
            ProviderUnavailableError: Stripe unreachable after retries
        """
        if subscription_id:
            return await self._reconcile_subscription(
                provider_customer_id, subscription_id
            )
        return await self._reconcile_customer(provider_customer_id)

    @trace_span
    async def reconcile_account(self, account_id: str) -> MirrorRecord:
        """Lazy pull for an account's customer."""
        customer = await self.customer_repo.get_by_account_id(account_id)
        if customer is None:
            raise NotFoundError(f"No Stripe customer for account {account_id}")
        return await self.reconcile(customer.provider_customer_id)

    async def _reconcile_subscription(
        self, provider_customer_id: str, subscription_id: str
    ) -> MirrorRecord:
        try:
            subscription = await self.payment.retrieve_subscription(subscription_id)
        except NotFoundError:
            logger.info(
                "Subscription no longer exists in Stripe; marking canceled",
                extra={
                    "customer_id": provider_customer_id,
                    "subscription_id": subscription_id,
                },
            )
            return await self.mirror_repo.mark_canceled(
                provider_customer_id, subscription_id
            )

        if subscription.customer != provider_customer_id:
            logger.warning(
                "Subscription belongs to a different customer than the event",
                extra={
                    "customer_id": provider_customer_id,
                    "subscription_customer_id": subscription.customer,
                    "subscription_id": subscription_id,
                },
            )
            provider_customer_id = subscription.customer

        # Siblings decide too: the named one may be incomplete next to an active one
        try:
            listed = await self._list_subscriptions(provider_customer_id)
        except NotFoundError:
            listed = []

        current = select_current_subscription(_with_fresh(listed, subscription))
        return await self._write(
            MirrorRecord.from_provider(current or subscription, _now())
        )

    async def _reconcile_customer(self, provider_customer_id: str) -> MirrorRecord:
        subscriptions = await self._list_subscriptions(provider_customer_id)
        current = select_current_subscription(subscriptions)
        synced_at = _now()

        if current is None:
            logger.info(
                "No current subscription for customer",
                extra={
                    "customer_id": provider_customer_id,
                    "subscriptions_seen": len(subscriptions),
                },
            )
            return await self._write(
                MirrorRecord.not_started(provider_customer_id, synced_at)
            )
        return await self._write(MirrorRecord.from_provider(current, synced_at))

    async def _list_subscriptions(
        self, provider_customer_id: str
    ) -> List[ProviderSubscription]:
        return await self.payment.list_subscriptions(
            provider_customer_id, limit=settings.stripe_subscription_list_limit
        )

    async def _write(self, record: MirrorRecord) -> MirrorRecord:
        return await self.mirror_repo.replace(record)


def _now() -> datetime:
    return datetime.now(timezone.utc)
