"""
API schemas for billing operations.

Request and response models for billing endpoints. JSON uses camelCase.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from pydantic.alias_generators import to_camel

from packages.billing.models.domain.entitlement import EntitlementDecision
from packages.billing.models.domain.enums import (
    EntitlementReason,
    EntitlementSource,
    EntitlementStatus,
    PlanLabel,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Entitlement Schemas
# ============================================================================


class EntitlementStatusResponse(CamelModel):
    """Current entitlement for the caller."""

    active: Optional[bool] = Field(
        ..., description="null means Stripe could not be reached: show 'try again'"
    )
    plan: Optional[PlanLabel] = None
    renews_at: Optional[datetime] = None
    status: EntitlementStatus
    reason: EntitlementReason
    source: EntitlementSource

    @classmethod
    def from_decision(cls, decision: EntitlementDecision) -> "EntitlementStatusResponse":
        return cls.model_validate(decision.model_dump())


# ============================================================================
# Checkout Schemas
# ============================================================================


class CheckoutSessionRequest(CamelModel):
    """Request to create a checkout session."""

    plan_id: str = Field(
        ..., min_length=1, description="Plan label (monthly, yearly, oneoff) or Stripe price id"
    )
    success_url: Optional[HttpUrl] = None
    cancel_url: Optional[HttpUrl] = None


class SessionUrlResponse(CamelModel):
    """Response with a Stripe-hosted redirect URL."""

    url: str = Field(..., description="Stripe checkout or portal URL")


# ============================================================================
# Portal Schemas
# ============================================================================


class PortalSessionRequest(CamelModel):
    """Request to create a customer portal session."""

    return_url: Optional[HttpUrl] = None
