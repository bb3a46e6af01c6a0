"""
Domain models for the account <-> Stripe customer mapping.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict


class BillingCustomer(BaseModel):
    """An account's Stripe customer."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: str
    provider_customer_id: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None


class BillingCustomerCreateModel(BaseModel):
    """Model for recording a new mapping."""

    account_id: str
    provider_customer_id: str
    email: Optional[str] = None
