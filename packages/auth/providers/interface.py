from abc import ABC, abstractmethod

from packages.auth.providers.models import VerifiedIdentity, IdentityProviderType


class IdentityProviderInterface(ABC):
    """Interface for hosted identity providers"""

    @abstractmethod
    async def verify_token(self, token: str) -> VerifiedIdentity:
        """
        Verify a bearer token and return the caller's identity.

        Raises:
            AuthenticationError: Token invalid, expired or revoked
            ProviderUnavailableError: Identity provider unreachable
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> IdentityProviderType:
        """Get the provider name"""
        pass
