"""
Interface for payment providers.

Everything the billing package asks of Stripe goes through here, so tests
can swap in a mock and reconciliation never touches the SDK directly.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from packages.billing.models.domain.enums import CheckoutMode
from packages.billing.models.domain.subscription import ProviderSubscription


class PaymentProviderInterface(ABC):
    """Abstract interface for payment providers."""

    @abstractmethod
    async def create_customer(self, account_id: str, email: Optional[str]) -> str:
        """
        Create a customer for an account.

        Must be idempotent per account_id so concurrent first-time callers
        converge on a single provider customer.

        Returns:
            customer_id: Payment provider customer ID
        """
        pass

    @abstractmethod
    async def retrieve_subscription(self, subscription_id: str) -> ProviderSubscription:
        """
        Fetch one subscription's current state.

        Raises:
            NotFoundError: The subscription no longer exists
            ProviderUnavailableError: Provider unreachable after retries
        """
        pass

    @abstractmethod
    async def list_subscriptions(
        self, customer_id: str, limit: int
    ) -> List[ProviderSubscription]:
        """
        List a customer's subscriptions in every status, newest first.

        Raises:
            ProviderUnavailableError: Provider unreachable after retries
        """
        pass

    @abstractmethod
    async def create_checkout_session(
        self,
        customer_id: str,
        account_id: str,
        price_id: str,
        mode: CheckoutMode,
        success_url: str,
        cancel_url: str,
    ) -> str:
        """
        Create a hosted checkout session.

        Returns:
            checkout_url: URL to redirect the customer to
        """
        pass

    @abstractmethod
    async def create_customer_portal_session(
        self,
        customer_id: str,
        return_url: str,
    ) -> str:
        """
        Create a customer portal session for managing subscription.

        Returns:
            portal_url: URL to customer portal
        """
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """
        Check if the payment backend is available and healthy.

        Returns:
            True if healthy, False otherwise
        """
        pass
