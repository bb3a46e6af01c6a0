"""
Database entity for the account <-> Stripe customer mapping.
"""

from sqlalchemy import Column, String

from common.db.base import Base, BigIntegerType, TimestampMixin


class BillingCustomerEntity(TimestampMixin, Base):
    """
    One row per account that has touched billing.

    Both sides are unique, so the mapping is strictly 1:1. Rows are never
    deleted by the billing package.
    """

    __tablename__ = "billing_customers"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    account_id = Column(String(255), nullable=False, unique=True, index=True)
    provider_customer_id = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=True)
