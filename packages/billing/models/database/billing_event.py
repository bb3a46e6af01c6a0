"""
Database entity for received Stripe webhook events.
"""

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.sql import func

from common.db.base import Base, BigIntegerType


class BillingEventEntity(Base):
    """
    Seen-set and replay log for webhook deliveries.

    Only identifiers and outcome are stored, never the payload body.
    """

    __tablename__ = "billing_events"

    id = Column(BigIntegerType, primary_key=True, index=True, autoincrement=True)
    event_id = Column(String(255), nullable=False, unique=True, index=True)
    event_type = Column(String(100), nullable=False)

    provider_customer_id = Column(String(255), nullable=True, index=True)
    provider_subscription_id = Column(String(255), nullable=True)

    status = Column(String(20), nullable=False)  # received, processed, failed, ignored
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    processed_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_billing_events_status", "status"),)
