"""
Service for repairing the mirror after failed webhook processing.
"""

from typing import List

from pydantic import BaseModel

from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.models.domain.billing_event import BillingEvent
from packages.billing.models.domain.enums import BillingEventStatus
from packages.billing.models.domain.subscription import MirrorRecord
from packages.billing.repositories.billing_event_repository import (
    BillingEventRepository,
)
from packages.billing.services.reconciliation_service import ReconciliationService

logger = get_logger(__name__)


class ReplayResult(BaseModel):
    """Outcome of a replay run."""

    attempted: int = 0
    repaired: int = 0
    still_failing: int = 0
    skipped: int = 0


def summarize(records: List[MirrorRecord]) -> List[dict]:
    """Mirror rows as printable dicts."""
    return [
        {
            "customer_id": record.provider_customer_id,
            "subscription_id": record.provider_subscription_id,
            "status": record.status.value,
            "cancel_at_period_end": record.cancel_at_period_end,
        }
        for record in records
    ]


class ReplayService:
    """
    Re-runs reconciliation for events whose handler failed.

    Event bodies are not stored; the recorded customer/subscription ids are
    enough because reconciliation always re-reads Stripe anyway.
    """

    def __init__(self):
        self.event_repo = BillingEventRepository()
        self.reconciliation = ReconciliationService()

    @trace_span
    async def replay_failed(self, limit: int = 100) -> ReplayResult:
        result = ReplayResult()
        events = await self.event_repo.list_by_status(
            BillingEventStatus.FAILED, limit=limit
        )

        for event in events:
            result.attempted += 1
            if not event.provider_customer_id:
                logger.warning(
                    "Failed event has no customer id; cannot replay",
                    extra={"event_id": event.event_id, "event_type": event.event_type},
                )
                await self.event_repo.mark(
                    event, BillingEventStatus.IGNORED, error=event.last_error
                )
                result.skipped += 1
                continue

            if await self._replay_one(event):
                result.repaired += 1
            else:
                result.still_failing += 1

        logger.info("Replay finished", extra=result.model_dump())
        return result

    async def _replay_one(self, event: BillingEvent) -> bool:
        try:
            await self.reconciliation.reconcile(
                event.provider_customer_id, event.provider_subscription_id
            )
        except Exception as e:
            logger.error(
                f"Replay failed for event {event.event_id}: {str(e)}",
                extra={
                    "event_id": event.event_id,
                    "event_type": event.event_type,
                    "customer_id": event.provider_customer_id,
                },
            )
            await self.event_repo.mark(event, BillingEventStatus.FAILED, error=str(e))
            return False

        await self.event_repo.mark(event, BillingEventStatus.PROCESSED)
        return True

    @trace_span
    async def replay_customer(self, provider_customer_id: str) -> MirrorRecord:
        """Lazy-pull one Stripe customer."""
        return await self.reconciliation.reconcile(provider_customer_id)

    @trace_span
    async def replay_account(self, account_id: str) -> MirrorRecord:
        """Lazy-pull one account's customer."""
        return await self.reconciliation.reconcile_account(account_id)

