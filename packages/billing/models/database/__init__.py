"""Database models for billing."""

from packages.billing.models.database.customer import BillingCustomerEntity
from packages.billing.models.database.subscription_mirror import (
    SubscriptionMirrorEntity,
)
from packages.billing.models.database.billing_event import BillingEventEntity

__all__ = [
    "BillingCustomerEntity",
    "SubscriptionMirrorEntity",
    "BillingEventEntity",
]
