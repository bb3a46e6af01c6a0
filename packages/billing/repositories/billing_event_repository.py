"""
Repository for the webhook event log.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select

from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.billing.models.database.billing_event import BillingEventEntity
from packages.billing.models.domain.billing_event import (
    BillingEvent,
    BillingEventUpdateModel,
)
from packages.billing.models.domain.enums import BillingEventStatus


class BillingEventRepository(BaseRepository[BillingEventEntity, BillingEvent]):
    """Seen-set of Stripe event ids plus processing outcome."""

    def __init__(self):
        super().__init__(BillingEventEntity, BillingEvent)

    @trace_span
    async def get_by_event_id(self, event_id: str) -> Optional[BillingEvent]:
        return await self.get_by(event_id=event_id)

    @trace_span
    async def record_received(
        self,
        event_id: str,
        event_type: str,
        provider_customer_id: Optional[str],
        provider_subscription_id: Optional[str],
    ) -> BillingEvent:
        """
        Insert the event if unseen; a redelivery returns the existing row as is.
        """
        return await self.upsert(
            {
                "event_id": event_id,
                "event_type": event_type,
                "provider_customer_id": provider_customer_id,
                "provider_subscription_id": provider_subscription_id,
                "status": BillingEventStatus.RECEIVED.value,
                "attempts": 0,
            },
            conflict_column="event_id",
            overwrite=False,
        )

    @trace_span
    async def mark(
        self,
        event: BillingEvent,
        status: BillingEventStatus,
        error: Optional[str] = None,
    ) -> Optional[BillingEvent]:
        """Record the outcome of one processing attempt."""
        return await self.update(
            event.id,
            BillingEventUpdateModel(
                status=status,
                attempts=event.attempts + 1,
                last_error=error,
                processed_at=datetime.now(timezone.utc),
            ),
        )

    @trace_span
    async def list_by_status(
        self, status: BillingEventStatus, limit: int = 100
    ) -> List[BillingEvent]:
        async with self._get_session() as session:
            result = await session.execute(
                select(BillingEventEntity)
                .where(BillingEventEntity.status == status.value)
                .order_by(BillingEventEntity.created_at, BillingEventEntity.id)
                .limit(limit)
            )
            return self._entities_to_domain(result.scalars().all())
