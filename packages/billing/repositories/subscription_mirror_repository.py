"""
Repository for the subscription mirror.

A record store keyed by provider_customer_id. Writes are whole-row upserts
so concurrent writers for one customer never interleave field by field.
"""

from datetime import datetime, timezone
from typing import Optional

from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.models.database.subscription_mirror import (
    SubscriptionMirrorEntity,
)
from packages.billing.models.domain.enums import SubscriptionStatus
from packages.billing.models.domain.subscription import MirrorRecord

logger = get_logger(__name__)


class SubscriptionMirrorRepository(
    BaseRepository[SubscriptionMirrorEntity, MirrorRecord]
):
    """get / upsert / mark_canceled over the mirror table."""

    def __init__(self):
        super().__init__(SubscriptionMirrorEntity, MirrorRecord)

    @trace_span
    async def get_by_customer_id(
        self, provider_customer_id: str
    ) -> Optional[MirrorRecord]:
        return await self.get_by(provider_customer_id=provider_customer_id)

    @trace_span
    async def replace(self, record: MirrorRecord) -> MirrorRecord:
        """Full-record replace. Last write wins."""
        row = record.to_row()
        row["updated_at"] = datetime.now(timezone.utc)
        stored = await self.upsert(row, conflict_column="provider_customer_id")
        logger.info(
            "Mirror written",
            extra={
                "customer_id": record.provider_customer_id,
                "subscription_id": record.provider_subscription_id,
                "status": record.status.value,
                "cancel_at_period_end": record.cancel_at_period_end,
            },
        )
        return stored

    @trace_span
    async def mark_canceled(
        self,
        provider_customer_id: str,
        provider_subscription_id: Optional[str] = None,
    ) -> MirrorRecord:
        """
        Record that the subscription is gone.

        The row is kept (support still sees there used to be a subscription)
        and rewritten whole with status=canceled.
        """
        now = datetime.now(timezone.utc)
        existing = await self.get_by_customer_id(provider_customer_id)
        if existing:
            record = existing.model_copy(
                update={
                    "status": SubscriptionStatus.CANCELED,
                    "cancel_at_period_end": False,
                    "last_synced_at": now,
                }
            )
            if provider_subscription_id:
                record.provider_subscription_id = provider_subscription_id
        else:
            record = MirrorRecord(
                provider_customer_id=provider_customer_id,
                provider_subscription_id=provider_subscription_id,
                status=SubscriptionStatus.CANCELED,
                cancel_at_period_end=False,
                last_synced_at=now,
            )
        return await self.replace(record)
