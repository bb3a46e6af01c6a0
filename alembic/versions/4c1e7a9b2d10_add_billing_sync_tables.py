"""add_billing_sync_tables

Revision ID: 4c1e7a9b2d10
Revises:
Create Date: 2026-10-19 09:12:44.318027

Tables:
- billing_customers: 1:1 account <-> Stripe customer mapping
- billing_subscription_mirror: last-known subscription state per Stripe customer
- billing_events: seen-set / replay log of Stripe webhook deliveries
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '4c1e7a9b2d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create billing sync tables with unique keys used by upserts."""

    op.create_table(
        'billing_customers',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('account_id', sa.String(255), nullable=False),
        sa.Column('provider_customer_id', sa.String(255), nullable=False),
        sa.Column('email', sa.String(320), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_billing_customers_id', 'billing_customers', ['id'])
    op.create_index('ix_billing_customers_account_id', 'billing_customers', ['account_id'], unique=True)
    op.create_index('ix_billing_customers_provider_customer_id', 'billing_customers', ['provider_customer_id'], unique=True)

    op.create_table(
        'billing_subscription_mirror',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('provider_customer_id', sa.String(255), nullable=False),
        sa.Column('provider_subscription_id', sa.String(255), nullable=True),

        # Written together from one Stripe read
        sa.Column('status', sa.String(32), nullable=False),
        sa.Column('plan_id', sa.String(255), nullable=True),
        sa.Column('current_period_start', sa.DateTime(timezone=True), nullable=True),
        sa.Column('current_period_end', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancel_at_period_end', sa.Boolean(), nullable=False, server_default=sa.false()),

        sa.Column('payment_method_brand', sa.String(32), nullable=True),
        sa.Column('payment_method_last4', sa.String(4), nullable=True),

        sa.Column('last_synced_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_billing_subscription_mirror_id', 'billing_subscription_mirror', ['id'])
    op.create_index(
        'ix_billing_subscription_mirror_provider_customer_id',
        'billing_subscription_mirror',
        ['provider_customer_id'],
        unique=True,
    )
    op.create_index('ix_billing_subscription_mirror_status', 'billing_subscription_mirror', ['status'])
    op.create_index('idx_billing_mirror_subscription', 'billing_subscription_mirror', ['provider_subscription_id'])

    op.create_table(
        'billing_events',
        sa.Column('id', sa.BigInteger(), nullable=False, autoincrement=True),
        sa.Column('event_id', sa.String(255), nullable=False),
        sa.Column('event_type', sa.String(100), nullable=False),
        sa.Column('provider_customer_id', sa.String(255), nullable=True),
        sa.Column('provider_subscription_id', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True, server_default=sa.func.now()),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_billing_events_id', 'billing_events', ['id'])
    op.create_index('ix_billing_events_event_id', 'billing_events', ['event_id'], unique=True)
    op.create_index('ix_billing_events_provider_customer_id', 'billing_events', ['provider_customer_id'])
    op.create_index('idx_billing_events_status', 'billing_events', ['status'])


def downgrade() -> None:
    """Drop billing sync tables."""
    op.drop_table('billing_events')
    op.drop_table('billing_subscription_mirror')
    op.drop_table('billing_customers')
