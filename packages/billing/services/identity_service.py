"""
Service mapping local accounts to Stripe customers.
"""

from typing import Optional

from sqlalchemy.exc import IntegrityError

from common.core.otel_axiom_exporter import trace_span, get_logger
from packages.billing.models.domain.customer import (
    BillingCustomer,
    BillingCustomerCreateModel,
)
from packages.billing.providers.payment.factory import get_payment_provider
from packages.billing.repositories.customer_repository import CustomerRepository

logger = get_logger(__name__)


class IdentityService:
    """
    Resolves and creates the 1:1 account <-> Stripe customer mapping.

    No locks: unique constraints on both columns plus Stripe idempotency keys
    make concurrent first-time callers collapse onto one mapping.
    """

    def __init__(self):
        self.customer_repo = CustomerRepository()
        self.payment = get_payment_provider()

    @trace_span
    async def resolve(self, account_id: str) -> Optional[str]:
        """Stripe customer id for an account, or None."""
        customer = await self.customer_repo.get_by_account_id(account_id)
        return customer.provider_customer_id if customer else None

    @trace_span
    async def resolve_account(self, provider_customer_id: str) -> Optional[str]:
        """Account id for a Stripe customer, or None."""
        customer = await self.customer_repo.get_by_provider_customer_id(
            provider_customer_id
        )
        return customer.account_id if customer else None

    @trace_span
    async def ensure(self, account_id: str, email: Optional[str]) -> str:
        """
        Resolve the account's customer, creating it in Stripe on first sight.

        The mapping is persisted before returning. Losing an insert race
        re-reads and returns the winner's customer id.
        """
        existing = await self.resolve(account_id)
        if existing:
            return existing

        provider_customer_id = await self.payment.create_customer(
            account_id=account_id, email=email
        )
        customer = await self._insert_or_reread(
            BillingCustomerCreateModel(
                account_id=account_id,
                provider_customer_id=provider_customer_id,
                email=email,
            )
        )

        if customer.provider_customer_id != provider_customer_id:
            logger.warning(
                "Concurrent ensure created a second Stripe customer; kept the stored mapping",
                extra={
                    "account_id": account_id,
                    "customer_id": customer.provider_customer_id,
                    "orphan_customer_id": provider_customer_id,
                },
            )
        return customer.provider_customer_id

    @trace_span
    async def link(
        self, account_id: str, provider_customer_id: str, email: Optional[str] = None
    ) -> str:
        """
        Record a pairing Stripe told us about (checkout session, metadata).

        An existing mapping always wins; a disagreement is logged, never
        overwritten. Returns the account's stored customer id.
        """
        existing = await self.customer_repo.get_by_account_id(account_id)
        if existing is None:
            existing = await self._insert_or_reread(
                BillingCustomerCreateModel(
                    account_id=account_id,
                    provider_customer_id=provider_customer_id,
                    email=email,
                )
            )

        if existing.provider_customer_id != provider_customer_id:
            logger.warning(
                "Stripe reported a customer that conflicts with the stored mapping",
                extra={
                    "account_id": account_id,
                    "customer_id": existing.provider_customer_id,
                    "reported_customer_id": provider_customer_id,
                },
            )
        return existing.provider_customer_id

    async def _insert_or_reread(
        self, create_model: BillingCustomerCreateModel
    ) -> BillingCustomer:
        try:
            customer = await self.customer_repo.create(create_model)
            logger.info(
                "Linked account to Stripe customer",
                extra={
                    "account_id": create_model.account_id,
                    "customer_id": create_model.provider_customer_id,
                },
            )
            return customer
        except IntegrityError:
            winner = await self.customer_repo.get_by_account_id(
                create_model.account_id
            )
            if winner is None:
                # Customer id already mapped to a different account
                winner = await self.customer_repo.get_by_provider_customer_id(
                    create_model.provider_customer_id
                )
                logger.error(
                    "Stripe customer already belongs to another account",
                    extra={
                        "account_id": create_model.account_id,
                        "customer_id": create_model.provider_customer_id,
                        "owner_account_id": winner.account_id if winner else None,
                    },
                )
                raise
            return winner
