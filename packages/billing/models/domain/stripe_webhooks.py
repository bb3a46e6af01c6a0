"""
Domain models for Stripe webhook payloads.

Only identifiers are read from event bodies. Subscription state itself is
always re-fetched from Stripe, since bodies can be stale or out of order.
"""

from typing import Optional, Any
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class StripeWebhookType(str, Enum):
    """Stripe webhook event types that trigger reconciliation."""

    # Checkout
    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"

    # Subscription
    SUBSCRIPTION_CREATED = "customer.subscription.created"
    SUBSCRIPTION_UPDATED = "customer.subscription.updated"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"
    SUBSCRIPTION_PAUSED = "customer.subscription.paused"
    SUBSCRIPTION_RESUMED = "customer.subscription.resumed"
    SUBSCRIPTION_TRIAL_WILL_END = "customer.subscription.trial_will_end"

    # Payment
    INVOICE_PAID = "invoice.paid"
    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
    INVOICE_PAYMENT_FAILED = "invoice.payment_failed"

    @classmethod
    def parse(cls, value: str) -> Optional["StripeWebhookType"]:
        """Known type, or None for anything we only acknowledge."""
        try:
            return cls(value)
        except ValueError:
            return None


class StripeMetadata(BaseModel):
    """Stripe metadata (we store account_id here)."""

    model_config = ConfigDict(extra="ignore")

    account_id: Optional[str] = None


class StripeSubscriptionData(BaseModel):
    """Identifiers from a subscription object."""

    model_config = ConfigDict(extra="ignore")

    id: str
    customer: str
    metadata: StripeMetadata = Field(default_factory=StripeMetadata)


class StripeInvoiceSubscriptionDetails(BaseModel):
    model_config = ConfigDict(extra="ignore")

    subscription: Optional[str] = None


class StripeInvoiceParent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    subscription_details: Optional[StripeInvoiceSubscriptionDetails] = None


class StripeInvoiceData(BaseModel):
    """Identifiers from an invoice object."""

    model_config = ConfigDict(extra="ignore")

    id: str
    customer: Optional[str] = None
    subscription: Optional[str] = None
    # Newer API versions move the subscription under parent
    parent: Optional[StripeInvoiceParent] = None

    @property
    def subscription_id(self) -> Optional[str]:
        if self.subscription:
            return self.subscription
        if self.parent and self.parent.subscription_details:
            return self.parent.subscription_details.subscription
        return None


class StripeCheckoutSessionData(BaseModel):
    """Identifiers from a checkout session object."""

    model_config = ConfigDict(extra="ignore")

    id: str
    mode: str
    customer: Optional[str] = None
    subscription: Optional[str] = None
    client_reference_id: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: StripeMetadata = Field(default_factory=StripeMetadata)

    @property
    def account_id(self) -> Optional[str]:
        return self.client_reference_id or self.metadata.account_id


class StripeEventData(BaseModel):
    """Stripe event data wrapper."""

    object: dict[str, Any]


class StripeWebhookPayload(BaseModel):
    """Complete Stripe webhook envelope."""

    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    data: StripeEventData
    created: int
    livemode: bool = False

    @property
    def customer_id(self) -> Optional[str]:
        customer = self.data.object.get("customer")
        return customer if isinstance(customer, str) else None

    @property
    def subscription_id(self) -> Optional[str]:
        obj = self.data.object
        if obj.get("object") == "subscription":
            return obj.get("id")
        subscription = obj.get("subscription")
        if isinstance(subscription, str):
            return subscription
        if obj.get("object") == "invoice":
            return StripeInvoiceData.model_validate(obj).subscription_id
        return None
