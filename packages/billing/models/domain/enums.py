"""
Billing enums - strongly typed enumerations for subscription and entitlement states.
"""

from enum import Enum


class SubscriptionStatus(str, Enum):
    """
    Mirrored subscription status.

    Closed set; Stripe statuses outside it are folded in by from_stripe().
    """

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"  # Payment failed, Stripe still retrying (grace period)
    INCOMPLETE = "incomplete"  # First payment not yet confirmed
    UNPAID = "unpaid"
    CANCELED = "canceled"
    NOT_STARTED = "not_started"  # Customer known to have no subscription

    @classmethod
    def from_stripe(cls, value: str) -> "SubscriptionStatus":
        """Map a raw Stripe subscription status onto the mirrored set."""
        folded = {
            "incomplete_expired": cls.CANCELED,
            "paused": cls.UNPAID,
        }
        if value in folded:
            return folded[value]
        return cls(value)

    def grants_access(self) -> bool:
        """Statuses that entitle the account (before cancel_at_period_end)."""
        return self in (
            SubscriptionStatus.ACTIVE,
            SubscriptionStatus.TRIALING,
            SubscriptionStatus.PAST_DUE,
        )

    def is_current(self) -> bool:
        """Statuses eligible to be picked as the customer's current subscription."""
        return self in (
            SubscriptionStatus.ACTIVE,
            SubscriptionStatus.TRIALING,
            SubscriptionStatus.PAST_DUE,
            SubscriptionStatus.INCOMPLETE,
            SubscriptionStatus.UNPAID,
        )

    def is_ambiguous(self) -> bool:
        """Statuses worth re-checking with Stripe before trusting the mirror."""
        return self in (SubscriptionStatus.INCOMPLETE, SubscriptionStatus.NOT_STARTED)


class PlanLabel(str, Enum):
    """Product plans, mapped to Stripe price ids by configuration."""

    MONTHLY = "monthly"
    YEARLY = "yearly"
    ONEOFF = "oneoff"  # One-time cusp reading purchase
    UNKNOWN = "unknown"

    def is_recurring(self) -> bool:
        return self in (PlanLabel.MONTHLY, PlanLabel.YEARLY)


class CheckoutMode(str, Enum):
    """Stripe checkout session modes."""

    SUBSCRIPTION = "subscription"
    PAYMENT = "payment"


class EntitlementReason(str, Enum):
    """Why an entitlement decision came out the way it did."""

    OVERRIDE = "override"
    NO_CUSTOMER_RECORD = "no_customer_record"
    SUBSCRIPTION_ACTIVE = "subscription_active"
    CANCEL_AT_PERIOD_END = "cancel_at_period_end"
    SUBSCRIPTION_INACTIVE = "subscription_inactive"
    NO_SUBSCRIPTION = "no_subscription"
    PROVIDER_UNAVAILABLE = "provider_unavailable"


class EntitlementStatus(str, Enum):
    """
    Status reported with an entitlement decision.

    The mirrored subscription statuses plus the two states that have no
    mirror row behind them.
    """

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    INCOMPLETE = "incomplete"
    UNPAID = "unpaid"
    CANCELED = "canceled"
    NOT_STARTED = "not_started"
    NO_CUSTOMER = "no_customer"  # Account never reached Stripe
    UNKNOWN = "unknown"  # Stripe unreachable and nothing safe to serve

    @classmethod
    def from_subscription(cls, status: SubscriptionStatus) -> "EntitlementStatus":
        return cls(status.value)


class EntitlementSource(str, Enum):
    """Where the data behind an entitlement decision came from."""

    OVERRIDE = "override"
    IDENTITY = "identity"  # Decided from the absence of a customer mapping
    MIRROR = "mirror"  # Fresh mirror row
    STRIPE = "stripe"  # Lazy pull just refreshed the mirror
    STALE_MIRROR = "stale_mirror"  # Stripe unreachable, served last-known state
    NONE = "none"


class BillingEventStatus(str, Enum):
    """Processing outcome of a received webhook event."""

    RECEIVED = "received"
    PROCESSED = "processed"
    FAILED = "failed"
    IGNORED = "ignored"

    def is_settled(self) -> bool:
        """Redeliveries of settled events are acknowledged without re-dispatch."""
        return self in (BillingEventStatus.PROCESSED, BillingEventStatus.IGNORED)
