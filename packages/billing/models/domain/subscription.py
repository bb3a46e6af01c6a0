"""
Domain models for subscriptions: provider snapshots and the local mirror.
"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from packages.billing.models.domain.enums import SubscriptionStatus


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; everything stored is UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ProviderSubscription(BaseModel):
    """
    Canonical subscription state as just read from Stripe.

    Never built from a webhook body; only from a fresh retrieve/list call.
    """

    id: str
    customer: str
    status: SubscriptionStatus
    price_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    payment_method_brand: Optional[str] = None
    payment_method_last4: Optional[str] = None
    metadata: dict[str, str] = Field(default_factory=dict)

    def is_selectable(self) -> bool:
        """Eligible to be the customer's current subscription."""
        return self.status.is_current() and not self.cancel_at_period_end

    def is_entitled(self) -> bool:
        return self.status.grants_access() and not self.cancel_at_period_end


class MirrorRecord(BaseModel):
    """
    Last-known subscription state for a Stripe customer.

    status and cancel_at_period_end always come from the same provider read.
    """

    model_config = ConfigDict(from_attributes=True)

    provider_customer_id: str
    provider_subscription_id: Optional[str] = None
    status: SubscriptionStatus
    plan_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    payment_method_brand: Optional[str] = None
    payment_method_last4: Optional[str] = None
    last_synced_at: datetime

    @field_validator(
        "current_period_start",
        "current_period_end",
        "last_synced_at",
        mode="after",
    )
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @classmethod
    def from_provider(
        cls, subscription: ProviderSubscription, synced_at: datetime
    ) -> "MirrorRecord":
        return cls(
            provider_customer_id=subscription.customer,
            provider_subscription_id=subscription.id,
            status=subscription.status,
            plan_id=subscription.price_id,
            current_period_start=subscription.current_period_start,
            current_period_end=subscription.current_period_end,
            cancel_at_period_end=subscription.cancel_at_period_end,
            payment_method_brand=subscription.payment_method_brand,
            payment_method_last4=subscription.payment_method_last4,
            last_synced_at=synced_at,
        )

    @classmethod
    def not_started(cls, provider_customer_id: str, synced_at: datetime) -> "MirrorRecord":
        """Record for a customer Stripe reports no qualifying subscription for."""
        return cls(
            provider_customer_id=provider_customer_id,
            status=SubscriptionStatus.NOT_STARTED,
            cancel_at_period_end=False,
            last_synced_at=synced_at,
        )

    def is_entitled(self) -> bool:
        return self.status.grants_access() and not self.cancel_at_period_end

    def age_seconds(self, now: datetime) -> float:
        return (now - self.last_synced_at).total_seconds()

    def to_row(self) -> dict:
        """Every mirrored column, for a full-row upsert."""
        row = self.model_dump()
        row["status"] = self.status.value
        return row
