"""
Database entity for the local mirror of Stripe subscription state.
"""

from sqlalchemy import Boolean, Column, DateTime, Index, String

from common.db.base import Base, BigIntegerType, TimestampMixin


class SubscriptionMirrorEntity(TimestampMixin, Base):
    """
    Last-known subscription snapshot for a Stripe customer.

    Keyed by provider_customer_id and always written as a whole row.
    A null provider_subscription_id means the customer is known to have no
    subscription (status not_started).
    """

    __tablename__ = "billing_subscription_mirror"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    provider_customer_id = Column(String(255), nullable=False, unique=True, index=True)
    provider_subscription_id = Column(String(255), nullable=True)

    status = Column(String(32), nullable=False, index=True)
    plan_id = Column(String(255), nullable=True)

    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)
    cancel_at_period_end = Column(Boolean, nullable=False, default=False)

    # Card on the subscription's default payment method, for support views
    payment_method_brand = Column(String(32), nullable=True)
    payment_method_last4 = Column(String(4), nullable=True)

    last_synced_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_billing_mirror_subscription", "provider_subscription_id"),
    )
