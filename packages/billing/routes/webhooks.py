"""
Webhook endpoints for billing events.

Public endpoints (no auth required) for Stripe webhooks.
"""

from fastapi import APIRouter, Request

from common.providers.rate_limiter.limiter import limiter
from packages.billing.webhooks.stripe_webhook import handle_stripe_webhook

router = APIRouter()


@router.post("/webhooks/stripe")
@limiter.exempt
async def stripe_webhook(request: Request) -> dict:
    """
    Receive webhook events from Stripe.

    No authentication - the signature over the raw body is verified instead.
    Exempt from rate limits: Stripe delivers bursts from a few addresses.
    """
    return await handle_stripe_webhook(request)
