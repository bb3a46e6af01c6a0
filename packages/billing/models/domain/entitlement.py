"""
Domain model for entitlement decisions.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from packages.billing.models.domain.enums import (
    EntitlementReason,
    EntitlementSource,
    EntitlementStatus,
    PlanLabel,
)


class EntitlementDecision(BaseModel):
    """
    Computed at query time, never persisted.

    active is None only when Stripe could not be reached and no mirror
    exists: the caller must show "unknown, try again", not "inactive".
    """

    active: Optional[bool]
    plan: Optional[PlanLabel] = None
    renews_at: Optional[datetime] = None
    status: EntitlementStatus
    reason: EntitlementReason
    source: EntitlementSource
