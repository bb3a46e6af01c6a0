"""
Stripe webhook handler for payment events.

Verifies the signature over the raw body, records the event id, and routes
subscription-bearing events to reconciliation. Handler failures are logged
and recorded, and the event is still acknowledged: Stripe would otherwise
retry indefinitely and eventually disable the endpoint. Failed events are
repaired by the replay tool or the next lazy pull.
"""

from typing import Awaitable, Callable, Dict, Optional

import stripe
from fastapi import Request, HTTPException, status
from pydantic import ValidationError

from common.core.config import settings
from common.core.exceptions import VerificationError
from common.core.otel_axiom_exporter import get_logger, log_span_event, trace_span
from packages.billing.models.domain.billing_event import BillingEvent
from packages.billing.models.domain.enums import BillingEventStatus, CheckoutMode
from packages.billing.models.domain.stripe_webhooks import (
    StripeWebhookPayload,
    StripeWebhookType,
    StripeCheckoutSessionData,
    StripeSubscriptionData,
    StripeInvoiceData,
)
from packages.billing.repositories.billing_event_repository import (
    BillingEventRepository,
)
from packages.billing.services.identity_service import IdentityService
from packages.billing.services.reconciliation_service import ReconciliationService

logger = get_logger(__name__)


def verify_event(payload_bytes: bytes, sig_header: Optional[str]) -> StripeWebhookPayload:
    """
    Verify the Stripe-Signature header against the raw, unparsed body.

    Raises:
        VerificationError: Missing header, bad signature or malformed envelope
    """
    if not sig_header:
        raise VerificationError("Missing stripe-signature header")

    try:
        stripe.Webhook.construct_event(
            payload_bytes, sig_header, settings.stripe_webhook_secret
        )
    except stripe.SignatureVerificationError as e:
        raise VerificationError(f"Invalid signature: {e}") from e
    except ValueError as e:
        raise VerificationError(f"Invalid payload: {e}") from e

    # Signature is good, so the raw bytes are exactly what Stripe sent
    try:
        return StripeWebhookPayload.model_validate_json(payload_bytes)
    except ValidationError as e:
        raise VerificationError(f"Invalid event envelope: {e.error_count()} errors") from e


async def handle_stripe_webhook(request: Request) -> dict:
    """
    Handle incoming webhook from Stripe.

    400 if verification fails; otherwise 200 once the event is dispatched,
    whatever the handler outcome.
    """
    payload_bytes = await request.body()
    sig_header = request.headers.get("stripe-signature")

    try:
        payload = verify_event(payload_bytes, sig_header)
    except VerificationError as e:
        logger.warning(f"Stripe webhook rejected: {str(e)}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    logger.info(
        f"Received Stripe webhook: {payload.type}",
        extra={
            "event_id": payload.id,
            "event_type": payload.type,
            "livemode": payload.livemode,
        },
    )

    try:
        await process_event(payload)
    except Exception as e:
        # Event log itself failed (database down); still acknowledge
        logger.exception(
            f"Failed to record Stripe webhook: {str(e)}",
            extra={
                "event_id": payload.id,
                "event_type": payload.type,
                "customer_id": payload.customer_id,
            },
        )

    return {"received": True}


@trace_span
async def process_event(payload: StripeWebhookPayload) -> BillingEventStatus:
    """Record the event, skip settled redeliveries, dispatch, record the outcome."""
    event_repo = BillingEventRepository()
    event = await event_repo.record_received(
        event_id=payload.id,
        event_type=payload.type,
        provider_customer_id=payload.customer_id,
        provider_subscription_id=payload.subscription_id,
    )

    if event.status.is_settled():
        logger.info(
            "Duplicate Stripe event delivery, already handled",
            extra={"event_id": payload.id, "status": event.status.value},
        )
        return event.status

    event_type = StripeWebhookType.parse(payload.type)
    handler = _HANDLERS.get(event_type) if event_type else None
    if handler is None:
        logger.info(f"Unhandled Stripe webhook type: {payload.type}")
        await event_repo.mark(event, BillingEventStatus.IGNORED)
        return BillingEventStatus.IGNORED

    try:
        await handler(payload.data.object)
    except Exception as e:
        await _record_failure(event_repo, event, e)
        return BillingEventStatus.FAILED

    await event_repo.mark(event, BillingEventStatus.PROCESSED)
    log_span_event(
        "Stripe event processed",
        {"event_id": event.event_id, "event_type": event.event_type},
    )
    return BillingEventStatus.PROCESSED


async def _record_failure(
    event_repo: BillingEventRepository, event: BillingEvent, error: Exception
) -> None:
    logger.error(
        f"Stripe webhook handler failed: {str(error)}",
        exc_info=error,
        extra={
            "event_id": event.event_id,
            "event_type": event.event_type,
            "customer_id": event.provider_customer_id,
            "subscription_id": event.provider_subscription_id,
            "error": str(error),
        },
    )
    await event_repo.mark(event, BillingEventStatus.FAILED, error=str(error)[:2000])


async def _reconcile(customer_id: str, subscription_id: Optional[str]) -> None:
    account_id = await IdentityService().resolve_account(customer_id)
    if account_id is None:
        logger.info(
            "Stripe customer has no local account yet; mirroring anyway",
            extra={"customer_id": customer_id},
        )
    record = await ReconciliationService().reconcile(customer_id, subscription_id)
    logger.info(
        "Reconciled from webhook",
        extra={
            "account_id": account_id,
            "customer_id": record.provider_customer_id,
            "subscription_id": record.provider_subscription_id,
            "status": record.status.value,
        },
    )


async def _handle_checkout_completed(data: dict) -> None:
    """
    Handle checkout.session.completed event.

    Links the account to the customer from client_reference_id, then
    reconciles for subscription checkouts. One-off payments only link.
    """
    session = StripeCheckoutSessionData(**data)

    if not session.customer:
        logger.warning(
            "Checkout session without customer", extra={"session_id": session.id}
        )
        return

    if session.account_id:
        await IdentityService().link(
            session.account_id, session.customer, session.customer_email
        )

    if session.mode != CheckoutMode.SUBSCRIPTION.value:
        logger.info(
            f"Checkout completed in {session.mode} mode; nothing to mirror",
            extra={"session_id": session.id, "customer_id": session.customer},
        )
        return

    await _reconcile(session.customer, session.subscription)


async def _handle_subscription_event(data: dict) -> None:
    """
    Handle customer.subscription.* events.

    The body only tells us which subscription moved; its state is re-fetched.
    """
    subscription = StripeSubscriptionData(**data)

    if subscription.metadata.account_id:
        await IdentityService().link(subscription.metadata.account_id, subscription.customer)

    await _reconcile(subscription.customer, subscription.id)


async def _handle_invoice_event(data: dict) -> None:
    """Handle invoice.paid / payment_succeeded / payment_failed events."""
    invoice = StripeInvoiceData(**data)

    if not invoice.customer:
        logger.warning("Invoice without customer", extra={"invoice_id": invoice.id})
        return

    await _reconcile(invoice.customer, invoice.subscription_id)


_HANDLERS: Dict[StripeWebhookType, Callable[[dict], Awaitable[None]]] = {
    StripeWebhookType.CHECKOUT_SESSION_COMPLETED: _handle_checkout_completed,
    StripeWebhookType.SUBSCRIPTION_CREATED: _handle_subscription_event,
    StripeWebhookType.SUBSCRIPTION_UPDATED: _handle_subscription_event,
    StripeWebhookType.SUBSCRIPTION_DELETED: _handle_subscription_event,
    StripeWebhookType.SUBSCRIPTION_PAUSED: _handle_subscription_event,
    StripeWebhookType.SUBSCRIPTION_RESUMED: _handle_subscription_event,
    StripeWebhookType.SUBSCRIPTION_TRIAL_WILL_END: _handle_subscription_event,
    StripeWebhookType.INVOICE_PAID: _handle_invoice_event,
    StripeWebhookType.INVOICE_PAYMENT_SUCCEEDED: _handle_invoice_event,
    StripeWebhookType.INVOICE_PAYMENT_FAILED: _handle_invoice_event,
}
