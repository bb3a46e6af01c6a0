"""
Domain models for the webhook event log.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict

from packages.billing.models.domain.enums import BillingEventStatus


class BillingEvent(BaseModel):
    """A received Stripe event and how processing went."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: str
    event_type: str
    provider_customer_id: Optional[str] = None
    provider_subscription_id: Optional[str] = None
    status: BillingEventStatus
    attempts: int = 0
    last_error: Optional[str] = None
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None


class BillingEventUpdateModel(BaseModel):
    """Model for recording a processing outcome."""

    model_config = ConfigDict(use_enum_values=True)

    status: Optional[BillingEventStatus] = None
    attempts: Optional[int] = None
    last_error: Optional[str] = None
    processed_at: Optional[datetime] = None
