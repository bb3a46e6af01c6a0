"""Domain models for billing."""

from packages.billing.models.domain.enums import (
    SubscriptionStatus,
    PlanLabel,
    CheckoutMode,
    EntitlementReason,
    EntitlementSource,
    BillingEventStatus,
)
from packages.billing.models.domain.subscription import (
    MirrorRecord,
    ProviderSubscription,
)
from packages.billing.models.domain.customer import (
    BillingCustomer,
    BillingCustomerCreateModel,
)
from packages.billing.models.domain.billing_event import (
    BillingEvent,
    BillingEventUpdateModel,
)
from packages.billing.models.domain.entitlement import EntitlementDecision

__all__ = [
    # Enums
    "SubscriptionStatus",
    "PlanLabel",
    "CheckoutMode",
    "EntitlementReason",
    "EntitlementSource",
    "BillingEventStatus",
    # Subscription
    "MirrorRecord",
    "ProviderSubscription",
    # Customer
    "BillingCustomer",
    "BillingCustomerCreateModel",
    # Events
    "BillingEvent",
    "BillingEventUpdateModel",
    # Entitlement
    "EntitlementDecision",
]
