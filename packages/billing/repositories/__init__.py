"""Billing repositories."""

from packages.billing.repositories.customer_repository import CustomerRepository
from packages.billing.repositories.subscription_mirror_repository import (
    SubscriptionMirrorRepository,
)
from packages.billing.repositories.billing_event_repository import (
    BillingEventRepository,
)

__all__ = [
    "CustomerRepository",
    "SubscriptionMirrorRepository",
    "BillingEventRepository",
]
