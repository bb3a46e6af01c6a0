"""Billing API routes."""

from packages.billing.routes import billing, webhooks

__all__ = ["billing", "webhooks"]
