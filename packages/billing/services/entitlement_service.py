"""
Service answering "does this account have paid access, and on which plan".
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from common.core.config import settings
from common.core.exceptions import NotFoundError, ProviderUnavailableError
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.models.domain.entitlement import EntitlementDecision
from packages.billing.models.domain.enums import (
    EntitlementReason,
    EntitlementSource,
    EntitlementStatus,
    PlanLabel,
    SubscriptionStatus,
)
from packages.billing.models.domain.subscription import MirrorRecord
from packages.billing.repositories.subscription_mirror_repository import (
    SubscriptionMirrorRepository,
)
from packages.billing.services.identity_service import IdentityService
from packages.billing.services.reconciliation_service import ReconciliationService

logger = get_logger(__name__)


def classify_plan(plan_id: Optional[str]) -> Optional[PlanLabel]:
    """Map a Stripe price id onto monthly/yearly; other prices are unknown."""
    if plan_id is None:
        return None
    if plan_id == settings.stripe_price_monthly:
        return PlanLabel.MONTHLY
    if plan_id == settings.stripe_price_yearly:
        return PlanLabel.YEARLY
    return PlanLabel.UNKNOWN


def decide_from_mirror(
    record: MirrorRecord, source: EntitlementSource
) -> EntitlementDecision:
    """active = status in {active, trialing, past_due} and not cancel_at_period_end."""
    if record.is_entitled():
        reason = EntitlementReason.SUBSCRIPTION_ACTIVE
    elif record.status == SubscriptionStatus.NOT_STARTED:
        reason = EntitlementReason.NO_SUBSCRIPTION
    elif record.status.grants_access() and record.cancel_at_period_end:
        reason = EntitlementReason.CANCEL_AT_PERIOD_END
    else:
        reason = EntitlementReason.SUBSCRIPTION_INACTIVE

    return EntitlementDecision(
        active=record.is_entitled(),
        plan=classify_plan(record.plan_id),
        renews_at=record.current_period_end,
        status=EntitlementStatus.from_subscription(record.status),
        reason=reason,
        source=source,
    )


class EntitlementService:
    """
    Evaluates entitlement, in order: override list, identity mapping,
    fresh mirror, synchronous lazy pull.
    """

    def __init__(self):
        self.identity = IdentityService()
        self.mirror_repo = SubscriptionMirrorRepository()
        self.reconciliation = ReconciliationService()

    def is_override(self, email: Optional[str]) -> bool:
        return bool(email) and email.strip().lower() in settings.billing_override_emails

    def needs_refresh(self, record: MirrorRecord, now: datetime) -> bool:
        """Stale rows, and ambiguous rows past the recheck window, go back to Stripe."""
        age = record.age_seconds(now)
        if age > settings.billing_mirror_max_age_seconds:
            return True
        return (
            record.status.is_ambiguous()
            and age > settings.billing_ambiguous_recheck_seconds
        )

    @trace_span
    async def is_entitled(
        self, account_id: str, email: Optional[str] = None
    ) -> EntitlementDecision:
        now = datetime.now(timezone.utc)

        # Support/VIP grants beat anything billing says
        if self.is_override(email):
            logger.info("Entitlement granted by override", extra={"account_id": account_id})
            return EntitlementDecision(
                active=True,
                plan=PlanLabel(settings.billing_override_plan),
                renews_at=now + timedelta(days=settings.billing_override_renewal_days),
                status=EntitlementStatus.ACTIVE,
                reason=EntitlementReason.OVERRIDE,
                source=EntitlementSource.OVERRIDE,
            )

        provider_customer_id = await self.identity.resolve(account_id)
        if provider_customer_id is None:
            return EntitlementDecision(
                active=False,
                status=EntitlementStatus.NO_CUSTOMER,
                reason=EntitlementReason.NO_CUSTOMER_RECORD,
                source=EntitlementSource.IDENTITY,
            )

        record = await self.mirror_repo.get_by_customer_id(provider_customer_id)
        if record is not None and not self.needs_refresh(record, now):
            return decide_from_mirror(record, EntitlementSource.MIRROR)

        try:
            refreshed = await self.reconciliation.reconcile(provider_customer_id)
        except NotFoundError as e:
            # Customer deleted in Stripe: nothing to bill, so nothing to grant
            logger.warning(
                f"Stripe customer {provider_customer_id} not found; treating as no subscription",
                extra={
                    "account_id": account_id,
                    "customer_id": provider_customer_id,
                    "error": str(e),
                },
            )
            refreshed = await self.mirror_repo.replace(
                MirrorRecord.not_started(provider_customer_id, now)
            )
        except ProviderUnavailableError as e:
            # An ambiguous row may hide a payment that just landed: don't serve it
            if record is not None and not record.status.is_ambiguous():
                logger.warning(
                    "Stripe unavailable; serving last-known mirror state",
                    extra={
                        "account_id": account_id,
                        "customer_id": provider_customer_id,
                        "status": record.status.value,
                        "last_synced_at": record.last_synced_at.isoformat(),
                        "error": str(e),
                    },
                )
                return decide_from_mirror(record, EntitlementSource.STALE_MIRROR)

            logger.error(
                "Stripe unavailable and no mirror; entitlement unknown",
                extra={
                    "account_id": account_id,
                    "customer_id": provider_customer_id,
                    "error": str(e),
                },
            )
            return EntitlementDecision(
                active=None,
                status=EntitlementStatus.UNKNOWN,
                reason=EntitlementReason.PROVIDER_UNAVAILABLE,
                source=EntitlementSource.NONE,
            )

        return decide_from_mirror(refreshed, EntitlementSource.STRIPE)
