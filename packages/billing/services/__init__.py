"""Billing services."""

from packages.billing.services.identity_service import IdentityService
from packages.billing.services.reconciliation_service import ReconciliationService
from packages.billing.services.entitlement_service import EntitlementService
from packages.billing.services.checkout_service import CheckoutService
from packages.billing.services.replay_service import ReplayService

__all__ = [
    "IdentityService",
    "ReconciliationService",
    "EntitlementService",
    "CheckoutService",
    "ReplayService",
]
