"""
Repository for the account <-> Stripe customer mapping.
"""

from typing import Optional

from common.repositories.base import BaseRepository
from common.core.otel_axiom_exporter import trace_span
from packages.billing.models.database.customer import BillingCustomerEntity
from packages.billing.models.domain.customer import BillingCustomer


class CustomerRepository(BaseRepository[BillingCustomerEntity, BillingCustomer]):
    """Reads and inserts identity mappings. Rows are never updated or deleted."""

    def __init__(self):
        super().__init__(BillingCustomerEntity, BillingCustomer)

    @trace_span
    async def get_by_account_id(self, account_id: str) -> Optional[BillingCustomer]:
        return await self.get_by(account_id=account_id)

    @trace_span
    async def get_by_provider_customer_id(
        self, provider_customer_id: str
    ) -> Optional[BillingCustomer]:
        return await self.get_by(provider_customer_id=provider_customer_id)
