"""
Billing API routes.

Protected endpoints for entitlement and Stripe-hosted sessions.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status

from common.core.exceptions import ProviderUnavailableError, ValidationError
from common.providers.rate_limiter.limiter import limiter
from packages.auth.dependencies import get_current_active_user
from packages.auth.models.domain.authenticated_user import AuthenticatedUser
from packages.billing.services.checkout_service import CheckoutService
from packages.billing.services.entitlement_service import EntitlementService
from packages.billing.models.schemas.billing import (
    CheckoutSessionRequest,
    EntitlementStatusResponse,
    PortalSessionRequest,
    SessionUrlResponse,
)

router = APIRouter()


def _url(value) -> Optional[str]:
    return str(value) if value else None


# ============================================================================
# Entitlement
# ============================================================================


@router.post(
    "/status",
    response_model=EntitlementStatusResponse,
    response_model_by_alias=True,
)
@limiter.limit("30/minute")
async def get_entitlement_status(
    request: Request,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    """
    Get the caller's entitlement.

    Always 200 with a reason code; reason=provider_unavailable (active=null)
    means "unknown, try again", not "inactive".
    """
    entitlement_service = EntitlementService()
    decision = await entitlement_service.is_entitled(
        current_user.account_id, current_user.email
    )
    return EntitlementStatusResponse.from_decision(decision)


# ============================================================================
# Checkout & Portal
# ============================================================================


@router.post("/checkout", response_model=SessionUrlResponse)
@limiter.limit("10/minute")
async def create_checkout_session(
    request: Request,
    body: CheckoutSessionRequest,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    """Create a Stripe checkout session for a plan and return its URL."""
    checkout_service = CheckoutService()
    try:
        url = await checkout_service.create_checkout_session(
            account_id=current_user.account_id,
            email=current_user.email,
            plan_id=body.plan_id,
            success_url=_url(body.success_url),
            cancel_url=_url(body.cancel_url),
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ProviderUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment provider unavailable, try again",
        )

    return SessionUrlResponse(url=url)


@router.post("/portal", response_model=SessionUrlResponse)
@limiter.limit("10/minute")
async def create_portal_session(
    request: Request,
    body: Optional[PortalSessionRequest] = None,
    current_user: AuthenticatedUser = Depends(get_current_active_user),
):
    """
    Create a Stripe customer portal session.

    Allows customers to manage payment methods, view invoices, cancel subscription.
    """
    checkout_service = CheckoutService()
    try:
        url = await checkout_service.create_portal_session(
            account_id=current_user.account_id,
            email=current_user.email,
            return_url=_url(body.return_url) if body else None,
        )
    except ProviderUnavailableError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payment provider unavailable, try again",
        )

    return SessionUrlResponse(url=url)
