"""
Billing package - keeps a local mirror of Stripe subscription state.

This package integrates with:
- Stripe: customers, subscriptions, checkout and portal sessions, webhooks

Entitlement is answered from the mirror, with a synchronous pull from
Stripe when the mirror is missing, stale or ambiguous.
"""
